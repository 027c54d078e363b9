import html
import logging
import os
from urllib.parse import quote

from .errors import Forbidden, InternalError
from .mime import MimeResolver, default_resolver
from .paths import ResolvedTarget
from .response import TEXT_HTML, Response, build_response

logger = logging.getLogger(__name__)


def serve_file(target: ResolvedTarget, mime: MimeResolver = default_resolver) -> Response:
    try:
        with open(target.absolute_path, "rb") as f:
            body = f.read()
    except PermissionError:
        raise Forbidden("Permission denied")
    except OSError as e:
        logger.error(f"Failed to read {target.absolute_path}: {e}")
        raise InternalError("Could not read file")
    return build_response(body, 200, mime.resolve(target.absolute_path))


def render_listing(target: ResolvedTarget, req_path: str) -> Response:
    """
    HTML listing of the immediate children of a directory.

    Entries come out in whatever order the filesystem enumerates them.
    Links are relative to a <base> pointing at the directory itself, so
    they also work when the request path lacks a trailing slash.
    """
    try:
        names = os.listdir(target.absolute_path)
    except PermissionError:
        raise Forbidden("Permission denied")
    except OSError as e:
        logger.error(f"Failed to list {target.absolute_path}: {e}")
        raise InternalError("Could not list directory")

    base = req_path if req_path.startswith("/") else "/" + req_path
    base = base.rstrip("/") + "/"

    items = ['<li><a href="..">..</a></li>']
    for name in names:
        raw = os.fsencode(name)  # undecodable names arrive surrogate-escaped
        label = html.escape(raw.decode("utf-8", errors="replace"))
        items.append(f'<li><a href="{quote(raw)}">{label}</a></li>')
    title = html.escape(base)
    page = (
        "<html>"
        f'<head><base href="{html.escape(quote(base))}"><title>Index of {title}</title></head>'
        f"<body><h1>Directory listing for {title}</h1><ul>{''.join(items)}</ul></body>"
        "</html>"
    )
    return build_response(page.encode("utf-8"), 200, TEXT_HTML)
