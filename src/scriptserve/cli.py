import argparse
import asyncio
import logging
import os
import sys

from pydantic import ValidationError

from .auth import BasicAuth
from .config import config_from_env
from .mime import default_resolver
from .server import run_server

logger = logging.getLogger(__name__)


def parse_mime(values: list[str]) -> dict[str, str]:
    table = {}
    for item in values:
        if "=" not in item:
            raise ValueError(f"Invalid MIME mapping (expected ext=type): {item}")
        ext, ctype = item.split("=", 1)
        table[ext.strip()] = ctype.strip()
    return table


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="scriptserve", description="Serve files, directory listings and scripts over HTTP")
    ap.add_argument("port", type=int, nargs="?", help="port to listen on (default: $PORT or 8080)")
    ap.add_argument("root", nargs="?", help="root folder to serve (default: $ROOT or .)")
    ap.add_argument("--host", default=None, help="address to bind (default: $HOST or 0.0.0.0)")
    ap.add_argument("--auth", default=None, metavar="USER:PASSWORD", help="require HTTP basic auth")
    ap.add_argument("--mime", action="append", default=[], metavar="EXT=TYPE", help="extra MIME type mapping (repeatable)")
    ap.add_argument("--script-timeout", type=float, default=None, help="seconds before a script is killed, 0 = no limit")
    ap.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"), help="logging level (default: INFO)")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    given = {"port": args.port, "root": args.root, "host": args.host}
    overrides = {k: v for k, v in given.items() if v is not None}
    try:
        if args.mime:
            overrides["mime"] = default_resolver.extended(parse_mime(args.mime))
        if args.auth:
            overrides["authorizer"] = BasicAuth.parse(args.auth)
        if args.script_timeout is not None:
            overrides["script_timeout"] = args.script_timeout if args.script_timeout > 0 else None
        config = config_from_env(**overrides)
    except (ValidationError, ValueError) as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        logger.info("Shutting down server")
    except OSError as e:
        logger.error(f"Failed to bind to port {config.port}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
