# site_snapshot/crawler/capture.py
"""
Asset capture: persists image and stylesheet responses seen while pages load.

:class:`AssetStore` lives for the whole run and owns one write task per
asset URL; :class:`AssetCapture` collects the tasks triggered by a single
page so the crawler can wait for them before rewriting that page.
"""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Dict, List, Optional

from site_snapshot.crawler.models import AssetKind, AssetRecord, CapturedResponse
from site_snapshot.errors import AssetWriteError, URLParseError
from site_snapshot.logger import get_logger
from site_snapshot.utils import asset_filename, parse_url

__all__ = ["AssetStore", "AssetCapture", "classify", "IMAGES_DIR", "CSS_DIR"]

IMAGES_DIR = "images"
CSS_DIR = "css"

log = get_logger("capture")


def classify(content_type: str) -> Optional[AssetKind]:
    """``image/*`` -> image, ``text/css`` -> stylesheet, everything else -> None."""
    ctype = content_type.strip().lower()
    if ctype.startswith("image/"):
        return "image"
    if ctype.startswith("text/css"):
        return "stylesheet"
    return None


def _failed(task: asyncio.Task) -> bool:
    return task.done() and (task.cancelled() or task.exception() is not None or task.result() is None)


class AssetStore:
    """Writes asset bodies under ``images/`` and ``css/`` of the output directory."""

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)
        self.images_dir = self.output_dir / IMAGES_DIR
        self.css_dir = self.output_dir / CSS_DIR
        self._tasks: Dict[str, asyncio.Task[Optional[AssetRecord]]] = {}

    def prepare(self) -> None:
        self.images_dir.mkdir(parents=True, exist_ok=True)
        self.css_dir.mkdir(parents=True, exist_ok=True)

    def schedule(self, response: CapturedResponse) -> Optional[asyncio.Task[Optional[AssetRecord]]]:
        """Start saving *response* if it is an asset.

        A URL is saved once per run; a URL whose earlier write failed is tried again.
        """
        kind = classify(response.content_type)
        if kind is None:
            return None
        try:
            url = parse_url(response.url)
        except URLParseError as exc:
            log.debug("Skipping asset: %s", exc)
            return None
        task = self._tasks.get(url)
        if task is None or _failed(task):
            task = asyncio.create_task(self._save_logged(response, url, kind))
            self._tasks[url] = task
        return task

    async def save(self, response: CapturedResponse, url: str, kind: AssetKind) -> AssetRecord:
        """Read the body and write it; raises AssetWriteError on any failure."""
        try:
            if kind == "image":
                data = await response.body()
            else:
                data = (await response.text()).encode("utf-8")
        except Exception as exc:  # body accessors raise backend-specific errors
            raise AssetWriteError(url, f"body unavailable: {exc}") from exc

        if kind == "image":
            path = self.images_dir / asset_filename(url)
        else:
            path = self.css_dir / asset_filename(url, ".css")
        try:
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as exc:
            raise AssetWriteError(url, str(exc)) from exc
        log.debug("Saved %s -> %s (%d bytes)", url, path, len(data))
        return AssetRecord(source_url=url, kind=kind, local_filename=path.name, size=len(data))

    async def _save_logged(self, response: CapturedResponse, url: str, kind: AssetKind) -> Optional[AssetRecord]:
        try:
            return await self.save(response, url, kind)
        except AssetWriteError as exc:
            log.warning("Ошибка сохранения ассета: %s", exc)
            return None

    async def drain(self) -> None:
        """Wait for every write started so far, including those of failed pages."""
        while True:
            pending = [t for t in self._tasks.values() if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    @property
    def records(self) -> List[AssetRecord]:
        return [
            t.result()
            for t in self._tasks.values()
            if t.done() and not t.cancelled() and t.exception() is None and t.result() is not None
        ]


class AssetCapture:
    """Response handler for a single page."""

    def __init__(self, store: AssetStore) -> None:
        self.store = store
        self._tasks: List[asyncio.Task[Optional[AssetRecord]]] = []
        self._detached = False

    def handle(self, response: CapturedResponse) -> None:
        if self._detached:
            return
        task = self.store.schedule(response)
        if task is not None and task not in self._tasks:
            self._tasks.append(task)

    async def wait(self) -> List[AssetRecord]:
        """Wait for all writes this page triggered, also ones that arrive while waiting."""
        seen = 0
        while seen < len(self._tasks):
            batch = self._tasks[seen:]
            seen = len(self._tasks)
            await asyncio.gather(*batch)
        return [r for r in (t.result() for t in self._tasks) if r is not None]

    def detach(self) -> None:
        """Ignore responses from now on; the page is about to be closed."""
        self._detached = True

    def __len__(self) -> int:
        return len(self._tasks)
