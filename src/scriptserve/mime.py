import os
from typing import Dict, Mapping

DEFAULT_TYPE = "application/octet-stream"

DEFAULT_MIME_TYPES: Dict[str, str] = {
    "html": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "txt": "text/plain",
    "json": "application/json",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "zip": "application/zip",
}


class MimeResolver:
    """Maps a file extension to a content type."""

    def __init__(self, table: Mapping[str, str] | None = None):
        source = DEFAULT_MIME_TYPES if table is None else table
        self._table = {ext.lower().lstrip("."): ctype for ext, ctype in source.items()}

    def resolve(self, path: str | os.PathLike) -> str:
        ext = os.path.splitext(os.fspath(path))[1].lower().lstrip(".")
        return self._table.get(ext, DEFAULT_TYPE)

    def extended(self, extra: Mapping[str, str]) -> "MimeResolver":
        table = dict(self._table)
        table.update({ext.lower().lstrip("."): ctype for ext, ctype in extra.items()})
        return MimeResolver(table)

    @property
    def table(self) -> Dict[str, str]:
        return dict(self._table)


default_resolver = MimeResolver()
