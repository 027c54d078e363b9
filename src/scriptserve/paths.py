"""
Path resolution and containment.

Every filesystem-touching route goes through `contain`: the candidate is
canonicalized (".", ".." and symlinks resolved) and must stay at or below
the canonical base. Anything else is Forbidden.
"""

import os
import stat
from enum import Enum
from pathlib import Path
from urllib.parse import urlsplit, unquote

from pydantic import BaseModel, ConfigDict

from .errors import BadRequest, Forbidden


class TargetKind(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    MISSING = "missing"


class ResolvedTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    absolute_path: Path
    kind: TargetKind


def canonical_root(root: str | os.PathLike) -> Path:
    real = Path(os.path.realpath(root))
    if not real.is_dir():
        raise ValueError(f"Root folder is not a directory: {root}")
    return real


def request_path(target: str) -> str:
    """Path component of a request-target, query removed and unescaped."""
    if target.startswith("/"):
        raw = target.split("?", 1)[0].split("#", 1)[0]
    else:
        raw = urlsplit(target).path  # absolute-form
    path = unquote(raw or "/")
    if "\x00" in path:
        raise BadRequest("NUL byte in request path")
    return path


def contain(base: Path, candidate: str | os.PathLike) -> Path:
    real = os.path.realpath(candidate)
    base_str = os.fspath(base)
    if os.path.commonpath([real, base_str]) != base_str:
        raise Forbidden("Path escapes the served root")
    return Path(real)


def resolve_target(root: Path, path: str) -> ResolvedTarget:
    if "\x00" in path:
        raise BadRequest("NUL byte in request path")
    relative = path.lstrip("/")
    real = contain(root, os.path.join(root, relative))
    try:
        st = os.stat(real)
    except PermissionError:
        raise Forbidden("Permission denied")
    except OSError:
        return ResolvedTarget(absolute_path=real, kind=TargetKind.MISSING)
    if stat.S_ISDIR(st.st_mode):
        kind = TargetKind.DIRECTORY
    elif stat.S_ISREG(st.st_mode):
        kind = TargetKind.FILE
    else:
        kind = TargetKind.MISSING
    return ResolvedTarget(absolute_path=real, kind=kind)
