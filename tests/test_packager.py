# File: tests/test_packager.py
import zipfile

import pytest

from site_snapshot.errors import PackagingError
from site_snapshot.packager import compress


def test_compress_stores_relative_paths(tmp_path):
    src = tmp_path / "blog"
    (src / "images").mkdir(parents=True)
    (src / "blog.html").write_text("<html></html>", encoding="utf-8")
    (src / "images" / "logo.png").write_bytes(b"png")

    archive = compress(src, tmp_path / "blog.zip")

    with zipfile.ZipFile(archive) as zf:
        assert sorted(zf.namelist()) == ["blog.html", "images/logo.png"]
        assert zf.read("images/logo.png") == b"png"


def test_missing_source(tmp_path):
    with pytest.raises(PackagingError):
        compress(tmp_path / "nope", tmp_path / "nope.zip")


def test_archive_inside_source_rejected(tmp_path):
    src = tmp_path / "blog"
    src.mkdir()
    with pytest.raises(PackagingError):
        compress(src, src / "blog.zip")


def test_unwritable_destination(tmp_path):
    src = tmp_path / "blog"
    src.mkdir()
    (src / "a.html").write_text("a")
    blocker = tmp_path / "blocker"
    blocker.write_text("file, not a dir")
    with pytest.raises(PackagingError):
        compress(src, blocker / "blog.zip")
