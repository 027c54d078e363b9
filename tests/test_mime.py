import pytest

from scriptserve.mime import DEFAULT_MIME_TYPES, MimeResolver, default_resolver


@pytest.mark.parametrize("ext,expected", [
    ("html", "text/html"),
    ("css", "text/css"),
    ("js", "text/javascript"),
    ("txt", "text/plain"),
    ("json", "application/json"),
    ("png", "image/png"),
    ("jpg", "image/jpeg"),
    ("jpeg", "image/jpeg"),
    ("gif", "image/gif"),
    ("zip", "application/zip"),
])
def test_default_table(ext, expected):
    assert default_resolver.resolve(f"/srv/file.{ext}") == expected


def test_table_has_only_documented_types():
    assert set(DEFAULT_MIME_TYPES) == {"html", "css", "js", "txt", "json", "png", "jpg", "jpeg", "gif", "zip"}


def test_unknown_and_missing_extension():
    assert default_resolver.resolve("archive.tar.xz") == "application/octet-stream"
    assert default_resolver.resolve("Makefile") == "application/octet-stream"
    assert default_resolver.resolve("dir.d/noext") == "application/octet-stream"


def test_extension_is_case_insensitive():
    assert default_resolver.resolve("INDEX.HTML") == "text/html"
    assert default_resolver.resolve("photo.JpG") == "image/jpeg"


def test_extended_does_not_touch_default():
    custom = default_resolver.extended({".svg": "image/svg+xml", "txt": "text/x-custom"})
    assert custom.resolve("logo.svg") == "image/svg+xml"
    assert custom.resolve("a.txt") == "text/x-custom"
    assert default_resolver.resolve("logo.svg") == "application/octet-stream"
    assert default_resolver.resolve("a.txt") == "text/plain"


def test_custom_table_replaces_defaults():
    resolver = MimeResolver({"md": "text/markdown"})
    assert resolver.resolve("README.md") == "text/markdown"
    assert resolver.resolve("index.html") == "application/octet-stream"
    assert resolver.table == {"md": "text/markdown"}
