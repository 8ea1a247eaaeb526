# site_snapshot/crawler/models.py
"""
Data models for the SiteSnapshot crawler.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Literal, Optional

AssetKind = Literal["image", "stylesheet"]


@dataclass(slots=True)
class ExtractedDocument:
    """Snapshot of a rendered document: outer markup plus raw attribute values.

    The reference lists hold attribute values exactly as written in the
    markup, not yet resolved against the page URL.
    """

    markup: str
    anchor_hrefs: List[str] = field(default_factory=list)
    image_srcs: List[str] = field(default_factory=list)
    stylesheet_hrefs: List[str] = field(default_factory=list)


@dataclass(slots=True)
class CapturedResponse:
    """A response observed while a page was loading."""

    url: str
    content_type: str
    read: Callable[[], Awaitable[bytes]]
    resource_type: str = ""

    async def body(self) -> bytes:
        return await self.read()

    async def text(self) -> str:
        raw = await self.read()
        return raw.decode(self.charset, errors="replace")

    @property
    def charset(self) -> str:
        for param in self.content_type.split(";")[1:]:
            key, _, value = param.partition("=")
            if key.strip().lower() == "charset" and value.strip():
                return value.strip().strip('"')
        return "utf-8"


@dataclass(slots=True, frozen=True)
class PageRecord:
    """Rewritten page persisted as ``<slug>.html``."""

    url: str
    local_filename: str
    markup: str


@dataclass(slots=True, frozen=True)
class AssetRecord:
    """Image or stylesheet body persisted under ``images/`` or ``css/``."""

    source_url: str
    kind: AssetKind
    local_filename: str
    size: int

    @property
    def local_path(self) -> str:
        folder = "images" if self.kind == "image" else "css"
        return f"{folder}/{self.local_filename}"


@dataclass(slots=True)
class PageOutcome:
    """What a worker reports back for one dispatched URL."""

    url: str
    page: Optional[PageRecord] = None
    links: List[str] = field(default_factory=list)
    assets: List[AssetRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.page is not None


class StopReason(str, enum.Enum):
    """Why the crawl loop stopped; both are normal termination."""

    QUEUE_EMPTY = "queue_empty"
    BUDGET_REACHED = "budget_reached"


@dataclass(slots=True)
class CrawlResult:
    pages: List[PageRecord] = field(default_factory=list)
    assets: List[AssetRecord] = field(default_factory=list)
    visited: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    stop_reason: StopReason = StopReason.QUEUE_EMPTY
