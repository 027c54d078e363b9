"""
CGI-like script execution.

A request under the script prefix runs an executable from `<root>/scripts`.
The child gets the request metadata in its environment:

- every request header under its own name (renamed `Header_<name>` when it
  would collide with one of the variables below),
- `Query_<key>` for each query-string parameter,
- `Method` and `Path` (the decoded request path, without query string),
- for POST, `CONTENT_LENGTH` and `CONTENT_TYPE`.

The POST body is written to the child's stdin. Its stdout becomes the
response body untouched; on a nonzero exit status the response is a 500
carrying its stderr instead.
"""

import asyncio
import logging
import os
import signal
import stat
from pathlib import Path
from typing import Dict, Mapping, Optional
from urllib.parse import parse_qsl, urlsplit

from pydantic import BaseModel

from .errors import Forbidden, InternalError, NotFound
from .paths import contain
from .request import ParsedRequest
from .response import Response, build_response

logger = logging.getLogger(__name__)

SCRIPT_CONTENT_TYPE = "application/octet-stream"
QUERY_PREFIX = "Query_"
HEADER_PREFIX = "Header_"
RESERVED_NAMES = {"PATH", "Method", "Path", "CONTENT_LENGTH", "CONTENT_TYPE"}


class ScriptInvocation(BaseModel):
    command: Path
    cwd: Path
    environment: Dict[str, str]
    stdin: bytes = b""


def _valid_env_name(name: str) -> bool:
    return bool(name) and "=" not in name and "\x00" not in name


def _is_reserved(name: str) -> bool:
    return name in RESERVED_NAMES or name.startswith(QUERY_PREFIX)


def locate_script(root: Path, scripts_dir: Path, script_prefix: str, path: str) -> Path:
    prefix = "/" + script_prefix.strip("/")
    relative = path[len(prefix):].lstrip("/")
    candidate = os.path.join(scripts_dir, relative)

    real = contain(root, candidate)
    real = contain(Path(os.path.realpath(scripts_dir)), real)

    try:
        st = os.stat(real)
    except PermissionError:
        raise Forbidden("Permission denied")
    except OSError:
        raise NotFound(f"Script {path} does not exist")
    if not stat.S_ISREG(st.st_mode):
        raise Forbidden(f"{path} is not a script")
    if not st.st_mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH):
        raise Forbidden(f"{path} is not executable")
    return real


def build_environment(request: ParsedRequest, path: str,
                      base_env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    env: Dict[str, str] = dict(base_env or {})

    for key, value in request.headers.items():
        if not _valid_env_name(key) or "\x00" in value:
            continue
        name = HEADER_PREFIX + key if _is_reserved(key) else key
        env[name] = value

    query = urlsplit(request.path).query
    for key, value in parse_qsl(query, keep_blank_values=True):
        if not _valid_env_name(key) or "\x00" in value:
            continue
        env[QUERY_PREFIX + key] = value

    env["Method"] = request.method
    env["Path"] = path
    if request.method == "POST":
        env["CONTENT_LENGTH"] = str(len(request.body))
        env["CONTENT_TYPE"] = request.header("Content-Type") or ""
    return env


def prepare_invocation(request: ParsedRequest, path: str, command: Path, scripts_dir: Path,
                       base_env: Optional[Mapping[str, str]] = None) -> ScriptInvocation:
    return ScriptInvocation(
        command=command,
        cwd=scripts_dir,
        environment=build_environment(request, path, base_env),
        stdin=request.body if request.method == "POST" else b"",
    )


async def execute_script(invocation: ScriptInvocation, timeout: float | None = 30.0) -> Response:
    try:
        proc = await asyncio.create_subprocess_exec(
            str(invocation.command),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(invocation.cwd),
            env=invocation.environment,
            start_new_session=True,
        )
    except OSError as e:
        logger.error(f"Failed to start {invocation.command}: {e}")
        raise InternalError("Could not start script")

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(invocation.stdin), timeout)
    except asyncio.TimeoutError:
        # own session, so the whole group goes, children included
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        await proc.wait()
        logger.warning(f"Script {invocation.command} killed after {timeout}s")
        raise InternalError(f"Script did not finish within {timeout} seconds")

    if proc.returncode != 0:
        logger.warning(f"Script {invocation.command} exited with status {proc.returncode}")
        return build_response(stderr, 500, SCRIPT_CONTENT_TYPE)
    return build_response(stdout, 200, SCRIPT_CONTENT_TYPE)
