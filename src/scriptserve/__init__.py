"""Concurrent HTTP/1.x server for static files, directory listings and CGI-like scripts."""

from .config import ServerConfig, config_from_env
from .server import ScriptServer, handle_request, run_server

__version__ = "0.1.0"

__all__ = ["ServerConfig", "ScriptServer", "config_from_env", "handle_request", "run_server"]
