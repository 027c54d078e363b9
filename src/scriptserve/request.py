"""
Request parsing: raw bytes from the connection into a ParsedRequest.

The grammar is fixed: one request line, header lines, a blank line and an
optional body. Chunked bodies and keep-alive are not understood.
"""

import asyncio
import logging
from typing import Dict

from pydantic import BaseModel, ConfigDict

from .errors import BadRequest

logger = logging.getLogger(__name__)

HEADER_TERMINATORS = (b"\r\n\r\n", b"\n\n")


class ParsedRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: str
    path: str  # raw request-target, query string included
    version: str
    headers: Dict[str, str]
    body: bytes = b""

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup; the stored names keep their case."""
        if name in self.headers:
            return self.headers[name]
        lowered = name.lower()
        for k, v in self.headers.items():
            if k.lower() == lowered:
                return v
        return None


def split_head(data: bytes) -> tuple[bytes, bytes]:
    """Split on the first blank line. No blank line means no body."""
    best = None
    for sep in HEADER_TERMINATORS:
        idx = data.find(sep)
        if idx != -1 and (best is None or idx < best[0]):
            best = (idx, sep)
    if best is None:
        return data, b""
    idx, sep = best
    return data[:idx], data[idx + len(sep):]


def parse_request(data: bytes) -> ParsedRequest:
    head, body = split_head(data)
    lines = head.decode("utf-8", errors="replace").splitlines()
    if not lines:
        raise BadRequest("Empty request line")

    parts = lines[0].split()
    if len(parts) != 3:
        raise BadRequest("Malformed request line")
    method, target, version = parts

    headers: Dict[str, str] = {}
    for line in lines[1:]:
        if ": " not in line:
            continue
        key, value = line.split(": ", 1)
        headers[key] = value

    return ParsedRequest(method=method, path=target, version=version, headers=headers, body=body)


def _expected_length(head: bytes) -> int:
    for line in head.decode("latin-1").splitlines()[1:]:
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        if key.strip().lower() == "content-length":
            try:
                return max(int(value.strip()), 0)
            except ValueError:
                return 0
    return 0


def _complete(data: bytes) -> bool:
    if not any(sep in data for sep in HEADER_TERMINATORS):
        return False
    head, body = split_head(data)
    return len(body) >= _expected_length(head)


async def read_request(reader: asyncio.StreamReader, limit: int = 8192, timeout: float | None = 10.0) -> bytes:
    """
    Read one request from the connection, at most `limit` bytes.

    Stops once the headers and the announced body have arrived, on EOF, when
    the buffer is full, or when the peer goes quiet for `timeout` seconds.
    Whatever arrived is returned; oversized requests are simply truncated.
    """
    data = b""
    while len(data) < limit:
        try:
            chunk = await asyncio.wait_for(reader.read(limit - len(data)), timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Read timed out after {len(data)} bytes")
            break
        if not chunk:
            break
        data += chunk
        if _complete(data):
            break
    return data
