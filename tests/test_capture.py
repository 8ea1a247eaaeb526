# File: tests/test_capture.py
import asyncio

import pytest

from site_snapshot.crawler.capture import AssetCapture, AssetStore, classify
from site_snapshot.crawler.models import CapturedResponse
from site_snapshot.errors import AssetWriteError

PNG = b"\x89PNG\r\n\x1a\nfake"


def response(url: str, ctype: str, body: bytes = b"", fail: bool = False) -> CapturedResponse:
    async def read() -> bytes:
        await asyncio.sleep(0)
        if fail:
            raise RuntimeError("Response body is unavailable for redirect responses")
        return body

    return CapturedResponse(url=url, content_type=ctype, read=read)


@pytest.mark.parametrize(
    "ctype,kind",
    [
        ("image/png", "image"),
        ("IMAGE/svg+xml", "image"),
        ("text/css; charset=utf-8", "stylesheet"),
        ("text/html", None),
        ("application/javascript", None),
        ("", None),
    ],
)
def test_classify(ctype, kind):
    assert classify(ctype) == kind


@pytest.mark.asyncio()
async def test_image_saved_under_images(tmp_path):
    store = AssetStore(tmp_path)
    store.prepare()
    capture = AssetCapture(store)
    capture.handle(response("https://example.com/logo.png", "image/png", PNG))
    records = await capture.wait()

    assert (tmp_path / "images" / "logo.png").read_bytes() == PNG
    assert len(records) == 1
    assert records[0].local_path == "images/logo.png"
    assert records[0].size == len(PNG)


@pytest.mark.asyncio()
async def test_stylesheet_saved_as_text(tmp_path):
    store = AssetStore(tmp_path)
    store.prepare()
    capture = AssetCapture(store)
    css = "body { content: 'é'; }".encode("latin-1")
    capture.handle(response("https://example.com/static/site.css?v=2", "text/css; charset=latin-1", css))
    await capture.wait()

    saved = tmp_path / "css" / "static_site_css.css"
    assert saved.read_text(encoding="utf-8") == "body { content: 'é'; }"


@pytest.mark.asyncio()
async def test_other_content_types_ignored(tmp_path):
    store = AssetStore(tmp_path)
    store.prepare()
    capture = AssetCapture(store)
    capture.handle(response("https://example.com/app.js", "application/javascript", b"x"))
    capture.handle(response("https://example.com/", "text/html", b"<html></html>"))
    assert len(capture) == 0
    assert await capture.wait() == []
    assert list((tmp_path / "images").iterdir()) == []


@pytest.mark.asyncio()
async def test_failure_of_one_asset_does_not_affect_others(tmp_path):
    store = AssetStore(tmp_path)
    store.prepare()
    capture = AssetCapture(store)
    capture.handle(response("https://example.com/broken.png", "image/png", fail=True))
    capture.handle(response("https://example.com/ok.png", "image/png", PNG))
    records = await capture.wait()

    assert [r.local_filename for r in records] == ["ok.png"]
    assert not (tmp_path / "images" / "broken.png").exists()


@pytest.mark.asyncio()
async def test_write_error_raised_by_save(tmp_path):
    store = AssetStore(tmp_path)
    # images/ is a plain file, so writing below it fails
    (tmp_path / "images").write_text("not a directory")
    with pytest.raises(AssetWriteError):
        await store.save(response("https://example.com/a.png", "image/png", PNG), "https://example.com/a.png", "image")


@pytest.mark.asyncio()
async def test_same_url_written_once_per_run(tmp_path):
    store = AssetStore(tmp_path)
    store.prepare()
    first, second = AssetCapture(store), AssetCapture(store)
    first.handle(response("https://example.com/logo.png", "image/png", PNG))
    second.handle(response("https://example.com/logo.png", "image/png", b"other"))

    assert await second.wait() == await first.wait()
    assert (tmp_path / "images" / "logo.png").read_bytes() == PNG
    assert len(store.records) == 1


@pytest.mark.asyncio()
async def test_failed_capture_is_retried_by_a_later_page(tmp_path):
    store = AssetStore(tmp_path)
    store.prepare()
    first, second = AssetCapture(store), AssetCapture(store)
    first.handle(response("https://example.com/logo.png", "image/png", fail=True))
    assert await first.wait() == []

    second.handle(response("https://example.com/logo.png", "image/png", PNG))
    records = await second.wait()

    assert [r.local_filename for r in records] == ["logo.png"]
    assert (tmp_path / "images" / "logo.png").read_bytes() == PNG
    assert [r.source_url for r in store.records] == ["https://example.com/logo.png"]


@pytest.mark.asyncio()
async def test_detached_capture_ignores_responses(tmp_path):
    store = AssetStore(tmp_path)
    store.prepare()
    capture = AssetCapture(store)
    capture.detach()
    capture.handle(response("https://example.com/late.png", "image/png", PNG))
    assert len(capture) == 0
    assert await capture.wait() == []
    assert store.records == []


@pytest.mark.asyncio()
async def test_slug_collision_last_writer_wins(tmp_path):
    store = AssetStore(tmp_path)
    store.prepare()
    capture = AssetCapture(store)
    capture.handle(response("https://example.com/a/b.png", "image/png", b"first"))
    await capture.wait()
    capture.handle(response("https://example.com/a_b.png", "image/png", b"second"))
    records = await capture.wait()

    assert {r.local_filename for r in records} == {"a_b.png"}
    assert (tmp_path / "images" / "a_b.png").read_bytes() == b"second"


@pytest.mark.asyncio()
async def test_drain_waits_for_pending_writes(tmp_path):
    store = AssetStore(tmp_path)
    store.prepare()
    store.schedule(response("https://example.com/late.png", "image/png", PNG))
    await store.drain()
    assert (tmp_path / "images" / "late.png").exists()
    assert [r.source_url for r in store.records] == ["https://example.com/late.png"]
