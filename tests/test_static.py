"""Tests for the local static file handler."""

import asyncio
import os
import threading

import pytest

from assetproxy import static as static_module
from assetproxy.errors import AssetNotFoundError, UnsafePathError
from assetproxy.static import StaticFileHandler


@pytest.fixture
def static_root(tmp_path):
    root = tmp_path / "static"
    (root / "foo").mkdir(parents=True)
    (root / "foo" / "bar.js").write_bytes(b"console.log('bar');")
    (root / "site.css").write_bytes(b"body{}")
    return root


def test_serves_existing_file(static_root):
    """Scenario A: existing file is returned with its content type."""
    handler = StaticFileHandler(static_root)

    asset = asyncio.run(handler.serve("foo/bar.js"))

    assert asset.body == b"console.log('bar');"
    assert asset.content_type == "application/javascript"


def test_missing_file_is_not_found(static_root):
    """Unreadable files raise a 404 error naming the path."""
    handler = StaticFileHandler(static_root)

    with pytest.raises(AssetNotFoundError) as excinfo:
        asyncio.run(handler.serve("foo/missing.js"))

    assert excinfo.value.status == 404
    assert "foo/missing.js" in excinfo.value.message


def test_directory_is_not_found(static_root):
    """Directories are not files and read as missing."""
    handler = StaticFileHandler(static_root)

    with pytest.raises(AssetNotFoundError):
        asyncio.run(handler.serve("foo"))


@pytest.mark.parametrize("raw_path", ["../etc/passwd", "/etc/passwd", "foo//bar.js", "foo\\bar.js"])
def test_unsafe_path_is_forbidden(static_root, raw_path):
    """Scenario B: traversal attempts are rejected before touching disk."""
    handler = StaticFileHandler(static_root)

    with pytest.raises(UnsafePathError) as excinfo:
        asyncio.run(handler.serve(raw_path))

    assert excinfo.value.status == 403


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
def test_symlink_escape_is_forbidden(tmp_path, static_root):
    """Symlinks leading out of the static root are rejected."""
    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "secret.txt").write_text("secret")
    os.symlink(outside, static_root / "escape")
    handler = StaticFileHandler(static_root)

    with pytest.raises(UnsafePathError):
        asyncio.run(handler.serve("escape/secret.txt"))


def test_containment_check_runs_off_the_event_loop(static_root, monkeypatch):
    """Resolving the requested path happens in a worker thread."""
    threads = []
    real_is_within_root = static_module.is_within_root

    def _recording_is_within_root(candidate, root):
        threads.append(threading.get_ident())
        return real_is_within_root(candidate, root)

    monkeypatch.setattr(static_module, "is_within_root", _recording_is_within_root)
    handler = StaticFileHandler(static_root)

    async def _run():
        await handler.serve("foo/bar.js")
        return threading.get_ident()

    loop_thread = asyncio.run(_run())

    assert len(threads) == 1
    assert loop_thread not in threads
