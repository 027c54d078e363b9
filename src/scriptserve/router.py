"""
Classifies a parsed request into a route.

Classification does not read file contents or run anything; it only stats
the target to tell files, directories and missing paths apart.
"""

import os
import posixpath
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .errors import Forbidden, HttpError, MethodNotImplemented, NotFound
from .paths import ResolvedTarget, TargetKind, request_path, resolve_target
from .request import ParsedRequest

SUPPORTED_METHODS = ("GET", "POST")


class RouteKind(str, Enum):
    STATIC_FILE = "static-file"
    DIRECTORY_LISTING = "directory-listing"
    SCRIPT = "script"
    REJECTED = "rejected"


class Route(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: RouteKind
    path: str = "/"
    target: Optional[ResolvedTarget] = None
    error: Optional[HttpError] = None


def normalize(path: str) -> str:
    """Collapse duplicate slashes and dot segments of a URL path."""
    collapsed = posixpath.normpath("/" + path.lstrip("/"))
    if path.endswith("/") and collapsed != "/":
        collapsed += "/"
    return collapsed


def is_script_path(path: str, script_prefix: str) -> bool:
    prefix = "/" + script_prefix.strip("/")
    path = normalize(path)
    return path == prefix or path.startswith(prefix + "/")


def _under(path: Path, base: Path) -> bool:
    return path == base or base in path.parents


def _rejected(path: str, error: HttpError) -> Route:
    return Route(kind=RouteKind.REJECTED, path=path, error=error)


def route(request: ParsedRequest, root: Path, script_prefix: str = "/scripts") -> Route:
    if request.method not in SUPPORTED_METHODS:
        return _rejected(request.path, MethodNotImplemented(f"Method {request.method} is not supported"))

    try:
        path = request_path(request.path)
    except HttpError as e:
        return _rejected(request.path, e)

    if is_script_path(path, script_prefix):
        return Route(kind=RouteKind.SCRIPT, path=normalize(path))

    if request.method == "POST":
        return _rejected(path, Forbidden("POST is only accepted for scripts"))

    try:
        target = resolve_target(root, path)
    except HttpError as e:
        return _rejected(path, e)

    scripts_dir = Path(os.path.realpath(root / script_prefix.strip("/")))
    if _under(target.absolute_path, scripts_dir):
        return _rejected(path, Forbidden("Scripts are not served as files"))

    if target.kind == TargetKind.FILE:
        return Route(kind=RouteKind.STATIC_FILE, path=path, target=target)
    if target.kind == TargetKind.DIRECTORY:
        return Route(kind=RouteKind.DIRECTORY_LISTING, path=path, target=target)
    return _rejected(path, NotFound(f"{path} does not exist"))
