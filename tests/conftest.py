"""
Shared fixtures: a throwaway served root and a running server on it.
"""

import asyncio
import os

import httpx
import pytest

from scriptserve.config import ServerConfig
from scriptserve.server import ScriptServer

SCRIPTS = {
    "hello.sh": ("#!/bin/sh\nprintf hello\n", 0o755),
    "boom.sh": ("#!/bin/sh\nprintf boom >&2\nexit 3\n", 0o755),
    "noexec.sh": ("#!/bin/sh\nprintf never\n", 0o644),
    "owner_only.sh": ("#!/bin/sh\nprintf owner\n", 0o744),
    "env.sh": ('#!/bin/sh\nprintf "%s|%s|%s|%s" "$Method" "$Path" "$Query_name" "$X_Token"\n', 0o755),
    "post.sh": ('#!/bin/sh\nprintf "%s|%s|" "$CONTENT_LENGTH" "$CONTENT_TYPE"\ncat\n', 0o755),
    "pwd.sh": ("#!/bin/sh\npwd\n", 0o755),
    "slow.sh": ("#!/bin/sh\nsleep 5\nprintf late\n", 0o755),
}


def write(path, data, mode=None):
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(data, str):
        data = data.encode("utf-8")
    path.write_bytes(data)
    if mode is not None:
        os.chmod(path, mode)
    return path


@pytest.fixture
def outside_file(tmp_path):
    return write(tmp_path / "secret.txt", "top secret")


@pytest.fixture
def root(tmp_path, outside_file):
    base = tmp_path / "www"
    write(base / "index.html", "<h1>hello</h1>")
    write(base / "notes.txt", "plain notes\n")
    write(base / "data.bin", bytes(range(256)) * 4)
    write(base / "docs" / "a.txt", "alpha")
    write(base / "docs" / "b.json", '{"b": 1}')
    (base / "docs" / "nested").mkdir()
    for name, (body, mode) in SCRIPTS.items():
        write(base / "scripts" / name, body, mode)
    os.symlink(outside_file, base / "escape.txt")
    os.symlink(base / "notes.txt", base / "alias.txt")
    return base


@pytest.fixture
def config(root):
    return ServerConfig(host="127.0.0.1", port=0, root=root, script_timeout=5.0, read_timeout=2.0)


@pytest.fixture
async def server(config):
    srv = ScriptServer(config)
    await srv.start()
    yield srv
    await srv.stop()


@pytest.fixture
async def client(server):
    async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{server.port}", trust_env=False, timeout=10.0) as c:
        yield c


async def raw_request(port: int, data: bytes) -> bytes:
    """Send raw bytes and read until the server closes the connection."""
    reader, writer = await asyncio.open_connection("127.0.0.1", port)
    writer.write(data)
    await writer.drain()
    writer.write_eof()
    response = await reader.read()
    writer.close()
    await writer.wait_closed()
    return response


def split_response(raw: bytes):
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    status = int(lines[0].split(" ")[1])
    headers = {}
    for line in lines[1:]:
        k, v = line.split(": ", 1)
        headers[k] = v
    return status, headers, body
