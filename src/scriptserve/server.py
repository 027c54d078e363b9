"""
Connection acceptor and request pipeline.

Each accepted connection gets its own asyncio task: one read, one
parse/route/respond cycle, one write, then the connection is closed.
The only state shared between tasks is the frozen ServerConfig.
"""

import asyncio
import logging
from typing import Optional

from .config import ServerConfig
from .errors import HttpError, InternalError, Unauthorized
from .request import ParsedRequest, parse_request, read_request
from .response import Response, error_response
from .router import Route, RouteKind, route
from .scripts import execute_script, locate_script, prepare_invocation
from .static import render_listing, serve_file

logger = logging.getLogger(__name__)


def authorize(request: ParsedRequest, config: ServerConfig) -> None:
    if config.authorizer is None:
        return
    if not config.authorizer(request.header("Authorization")):
        logger.warning(f"Rejected credentials for {request.method} {request.path}")
        raise Unauthorized(
            "Valid credentials are required",
            headers={"WWW-Authenticate": f'Basic realm="{config.auth_realm}"'},
        )


async def dispatch(request: ParsedRequest, matched: Route, config: ServerConfig) -> Response:
    if matched.kind == RouteKind.REJECTED:
        raise matched.error
    if matched.kind == RouteKind.STATIC_FILE:
        return await asyncio.to_thread(serve_file, matched.target, config.mime)
    if matched.kind == RouteKind.DIRECTORY_LISTING:
        return await asyncio.to_thread(render_listing, matched.target, matched.path)

    command = locate_script(config.root, config.scripts_dir, config.script_prefix, matched.path)
    invocation = prepare_invocation(request, matched.path, command, config.scripts_dir, config.script_env)
    return await execute_script(invocation, config.script_timeout)


async def handle_request(data: bytes, config: ServerConfig) -> Optional[Response]:
    """Run one request through the pipeline. Returns None for an empty read."""
    if not data:
        return None
    try:
        request = parse_request(data)
        authorize(request, config)
        matched = route(request, config.root, config.script_prefix)
        return await dispatch(request, matched, config)
    except HttpError as e:
        return error_response(e)
    except Exception:
        logger.exception("Unhandled error while handling request")
        return error_response(InternalError())


async def handle_connection(reader: asyncio.StreamReader, writer: asyncio.StreamWriter, config: ServerConfig) -> None:
    peer = writer.get_extra_info("peername")
    try:
        data = await read_request(reader, config.read_buffer, config.read_timeout)
        response = await handle_request(data, config)
        if response is None:
            return
        request_line = data.split(b"\n", 1)[0].decode("utf-8", errors="replace").strip()
        logger.info(f"{peer} \"{request_line}\" -> {response.status}")
        writer.write(response.serialize())
        await writer.drain()
    except (ConnectionError, OSError) as e:
        logger.error(f"Connection error with {peer}: {e}")
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError):
            pass


class ScriptServer:
    """Accepts connections and spawns one handler task per connection."""

    def __init__(self, config: ServerConfig):
        self.config = config
        self._server: Optional[asyncio.AbstractServer] = None
        self._bound_port: Optional[int] = None

    async def __aenter__(self) -> "ScriptServer":
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.stop()

    async def _on_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await handle_connection(reader, writer, self.config)

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._on_connection, self.config.host, self.config.port)
        await self._server.start_serving()

        # Actual port when bound to port 0
        sockets = self._server.sockets
        if sockets:
            self._bound_port = sockets[0].getsockname()[1]
        logger.info(f"Serving {self.config.root} on http://{self.config.host}:{self.port}")

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    async def serve_forever(self) -> None:
        if self._server is None:
            await self.start()
        async with self._server:
            await self._server.serve_forever()

    @property
    def port(self) -> int:
        return self._bound_port if self._bound_port is not None else self.config.port

    @property
    def is_running(self) -> bool:
        return self._server is not None


async def run_server(config: ServerConfig) -> None:
    server = ScriptServer(config)
    await server.serve_forever()
