# === FILE: site_snapshot/crawler/crawler.py ===
from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

from site_snapshot.config import SnapshotConfig
from site_snapshot.crawler.browser import SessionFactory
from site_snapshot.crawler.capture import AssetCapture, AssetStore
from site_snapshot.crawler.frontier import Frontier
from site_snapshot.crawler.link_extractor import extract_links
from site_snapshot.crawler.models import CrawlResult, PageOutcome, PageRecord, StopReason
from site_snapshot.crawler.rewriter import LinkRewriter
from site_snapshot.errors import NavigationError
from site_snapshot.utils import local_html_file

__all__ = ("MirrorCrawler",)


class MirrorCrawler:
    """
    Асинхронный краулер-зеркало: BFS по страницам одного origin.

    Один координирующий корутин владеет Frontier: достаёт URL, отмечает их
    посещёнными и раздаёт пулу из ``concurrency`` воркеров через очередь.
    Воркеры возвращают PageOutcome через очередь завершений, освобождая слот.
    """

    def __init__(self, config: SnapshotConfig, sessions: SessionFactory, output_dir: Optional[Path] = None) -> None:
        self.config = config
        self.sessions = sessions
        self.output_dir = Path(output_dir) if output_dir is not None else config.output_dir
        self.logger = logging.getLogger("SiteSnapshot")
        self.frontier = Frontier(config.seed)
        self.assets = AssetStore(self.output_dir)
        self.rewriter = LinkRewriter(self.frontier.root)
        self._allowed = frozenset(t.lower() for t in config.allowed_resource_types)

    async def crawl(self) -> CrawlResult:
        self.logger.info("Старт обхода: %s", self.frontier.root)
        start = time.monotonic()
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.assets.prepare()

        jobs: asyncio.Queue[Optional[str]] = asyncio.Queue()
        done: asyncio.Queue[PageOutcome] = asyncio.Queue()
        result = CrawlResult()
        workers = [asyncio.create_task(self._worker(jobs, done)) for _ in range(self.config.concurrency)]
        try:
            result.stop_reason = await self._coordinate(jobs, done, result)
        finally:
            for _ in workers:
                jobs.put_nowait(None)
            await asyncio.gather(*workers, return_exceptions=True)
            await self.assets.drain()

        result.assets = self.assets.records
        duration = time.monotonic() - start
        self.logger.info(
            "Завершено: %d страниц, %d ассетов за %.2f с (%s)",
            len(result.pages), len(result.assets), duration, result.stop_reason.value,
        )
        if result.failed:
            self.logger.info("Пропущено страниц: %d", len(result.failed))
        return result

    async def _coordinate(
        self, jobs: asyncio.Queue[Optional[str]], done: asyncio.Queue[PageOutcome], result: CrawlResult
    ) -> StopReason:
        budget = self.config.max_pages
        in_flight = 0
        processed = 0
        while True:
            while in_flight < self.config.concurrency and self.frontier.visited_count < budget:
                url = self.frontier.next()
                if url is None:
                    break
                if not self.frontier.mark_visited(url):
                    continue
                result.visited.append(url)
                self.logger.info("Обработка: %s (%d/%d)", url, self.frontier.visited_count, budget)
                jobs.put_nowait(url)
                in_flight += 1

            if in_flight == 0:
                break

            outcome = await done.get()
            in_flight -= 1
            processed += 1
            self._collect(outcome, result)

            if processed % self.config.batch_size == 0 and self.config.batch_pause > 0 and self._has_work(in_flight):
                self.logger.info("Пауза %.1f с после %d страниц", self.config.batch_pause, processed)
                await asyncio.sleep(self.config.batch_pause)

        if self.frontier.visited_count >= budget:
            return StopReason.BUDGET_REACHED
        return StopReason.QUEUE_EMPTY

    def _has_work(self, in_flight: int) -> bool:
        return in_flight > 0 or (len(self.frontier) > 0 and self.frontier.visited_count < self.config.max_pages)

    def _collect(self, outcome: PageOutcome, result: CrawlResult) -> None:
        if not outcome.ok:
            result.failed.append(outcome.url)
            return
        result.pages.append(outcome.page)
        added = sum(1 for link in outcome.links if self.frontier.offer(link))
        self.logger.debug("%s: %d links found, %d queued", outcome.url, len(outcome.links), added)

    async def _worker(self, jobs: asyncio.Queue[Optional[str]], done: asyncio.Queue[PageOutcome]) -> None:
        while True:
            url = await jobs.get()
            try:
                if url is None:
                    return
                done.put_nowait(await self.process_page(url))
            finally:
                jobs.task_done()

    async def process_page(self, url: str) -> PageOutcome:
        """Mirror one page; every failure is logged here and reported as a skipped page."""
        try:
            return await self._mirror_page(url)
        except NavigationError as e:
            self.logger.warning("Ошибка загрузки страницы %s: %s", url, e.reason)
            return PageOutcome(url, error=str(e))
        except Exception as e:
            self.logger.error("Ошибка обработки страницы %s: %s", url, e)
            return PageOutcome(url, error=str(e))

    async def _mirror_page(self, url: str) -> PageOutcome:
        session = await self.sessions.new_session()
        capture = AssetCapture(self.assets)
        try:
            await session.intercept_requests(self._allow_request)
            session.on_response(capture.handle)
            await session.navigate(url, self.config.wait_until, self.config.navigation_timeout)
            # rewritten references must never point to files still being written
            await capture.wait()
            document = await session.extract_document()
            # responses after this point would race session.close()
            capture.detach()
            assets = await capture.wait()
        finally:
            await session.close()

        record = PageRecord(url=url, local_filename=local_html_file(url), markup=self.rewriter.rewrite(document, url))
        await self._persist(record)
        links = extract_links(document, url, self.frontier.root)
        return PageOutcome(url, page=record, links=links, assets=assets)

    async def _persist(self, record: PageRecord) -> None:
        path = self.output_dir / record.local_filename
        await asyncio.to_thread(path.write_text, record.markup, encoding="utf-8")

    def _allow_request(self, resource_type: str) -> bool:
        return resource_type.lower() in self._allowed
