# File: site_snapshot/engine.py
"""site_snapshot.engine: Orchestration layer: подготовка каталога, запуск браузера, обход и упаковка."""

from __future__ import annotations

import asyncio
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional

from site_snapshot.config import SnapshotConfig, load_config
from site_snapshot.crawler.browser import SessionFactory, launch_browser
from site_snapshot.crawler.crawler import MirrorCrawler
from site_snapshot.crawler.models import CrawlResult
from site_snapshot.errors import OutputDirError
from site_snapshot.logger import logger
from site_snapshot.packager import compress

__all__ = ["Engine", "SnapshotResult", "prepare_output_dir", "start_snapshot"]

Launcher = Callable[..., Awaitable[SessionFactory]]
Packager = Callable[[Path, Path], Path]


@dataclass(slots=True)
class SnapshotResult:
    """Итог запуска: результат обхода, каталог зеркала и путь к архиву (если создан)."""

    crawl: CrawlResult
    output_dir: Path
    archive_path: Optional[Path] = None

    @property
    def pages(self):
        return self.crawl.pages

    @property
    def assets(self):
        return self.crawl.assets


def prepare_output_dir(path: Path) -> Path:
    """Удаляет результаты прошлого запуска и создаёт пустой каталог."""
    try:
        if path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True)
    except OSError as exc:
        raise OutputDirError(f"Не удалось подготовить каталог {path}: {exc}") from exc
    return path


async def start_snapshot(
    config: SnapshotConfig,
    *,
    launcher: Launcher = launch_browser,
    packager: Packager = compress,
) -> SnapshotResult:
    """
    Полный запуск: каталог -> браузер -> обход -> закрытие браузера -> архив.

    OutputDirError, BrowserLaunchError and PackagingError propagate to the
    caller; per-page problems are handled inside the crawler.
    """
    output_dir = prepare_output_dir(config.output_dir)
    sessions = await launcher(headless=config.headless, args=config.browser_args)
    try:
        crawl = await MirrorCrawler(config, sessions, output_dir).crawl()
    finally:
        await sessions.close()

    archive: Optional[Path] = None
    if config.create_archive:
        archive = await asyncio.to_thread(packager, output_dir, config.archive_path)
        logger.info("Archive ready: %s", archive)
    logger.info("Done: %d pages saved to %s", len(crawl.pages), output_dir)
    return SnapshotResult(crawl=crawl, output_dir=output_dir, archive_path=archive)


class Engine:
    """Фасад для CLI и тестов: загрузка конфига и синхронный запуск зеркалирования."""

    @staticmethod
    def load_config(path: Optional[str], **overrides) -> SnapshotConfig:
        """Загружает конфиг из YAML/JSON с переопределениями."""
        return load_config(path, **overrides)

    def __init__(self, config: SnapshotConfig, launcher: Launcher = launch_browser, packager: Packager = compress) -> None:
        self.config = config
        self._launcher = launcher
        self._packager = packager

    def run(self) -> SnapshotResult:
        """Запускает зеркалирование в новом event loop и возвращает SnapshotResult."""
        logger.info("Starting snapshot of %s…", self.config.seed)
        try:
            return asyncio.run(start_snapshot(self.config, launcher=self._launcher, packager=self._packager))
        except Exception as exc:
            logger.error("Snapshot failed: %s", exc)
            raise
