# File: tests/conftest.py
import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest
from bs4 import BeautifulSoup

from site_snapshot.config import SnapshotConfig
from site_snapshot.crawler.models import CapturedResponse, ExtractedDocument
from site_snapshot.errors import NavigationError


# --------------------------------------------------------------------------- #
#                       In-memory stand-in for a browser                      #
# --------------------------------------------------------------------------- #


@dataclass
class FakePage:
    """A page served by :class:`FakeSite`.

    ``assets`` are (url, content_type, resource_type, body) tuples emitted as
    responses while the page "loads"; ``late_assets`` arrive only while the
    DOM is being extracted.
    """

    markup: str
    assets: List[Tuple[str, str, str, bytes]] = field(default_factory=list)
    late_assets: List[Tuple[str, str, str, bytes]] = field(default_factory=list)
    delay: float = 0.0
    timeout: bool = False


@dataclass
class FakeSite:
    pages: Dict[str, FakePage] = field(default_factory=dict)

    def add(self, url: str, markup: str, **kwargs) -> FakePage:
        page = FakePage(markup=markup, **kwargs)
        self.pages[url] = page
        return page


def _reader(body: bytes):
    async def read() -> bytes:
        await asyncio.sleep(0)
        return body

    return read


class FakeSession:
    def __init__(self, factory: "FakeSessionFactory") -> None:
        self.factory = factory
        self.predicate = None
        self.handlers = []
        self.page: Optional[FakePage] = None
        self.closed = False

    async def intercept_requests(self, predicate) -> None:
        self.predicate = predicate

    def on_response(self, handler) -> None:
        self.handlers.append(handler)

    async def navigate(self, url: str, wait_until: str, timeout: float) -> None:
        self.factory.navigations.append(url)
        self.factory.active += 1
        self.factory.max_active = max(self.factory.max_active, self.factory.active)
        try:
            page = self.factory.site.pages.get(url)
            if page is None:
                raise NavigationError(url, "net::ERR_NAME_NOT_RESOLVED")
            await asyncio.sleep(page.delay)
            if page.timeout:
                raise NavigationError(url, f"timeout after {timeout:g}s")
            self._emit(url, "text/html; charset=utf-8", "document", page.markup.encode("utf-8"))
            for asset_url, ctype, rtype, body in page.assets:
                self._emit(asset_url, ctype, rtype, body)
            self.page = page
        finally:
            self.factory.active -= 1

    def _emit(self, url: str, ctype: str, rtype: str, body: bytes) -> None:
        if self.predicate is not None and not self.predicate(rtype):
            self.factory.blocked.append(url)
            return
        for handler in self.handlers:
            handler(CapturedResponse(url=url, content_type=ctype, read=_reader(body), resource_type=rtype))

    async def extract_document(self) -> ExtractedDocument:
        assert self.page is not None
        for asset_url, ctype, rtype, body in self.page.late_assets:
            self._emit(asset_url, ctype, rtype, body)
        soup = BeautifulSoup(self.page.markup, "html.parser")
        return ExtractedDocument(
            markup=self.page.markup,
            anchor_hrefs=[a["href"] for a in soup.find_all("a", href=True)],
            image_srcs=[i["src"] for i in soup.find_all("img", src=True)],
            stylesheet_hrefs=[
                link["href"]
                for link in soup.find_all("link", href=True)
                if "stylesheet" in (link.get("rel") or [])
            ],
        )

    async def close(self) -> None:
        self.closed = True


class FakeSessionFactory:
    def __init__(self, site: FakeSite) -> None:
        self.site = site
        self.sessions: List[FakeSession] = []
        self.navigations: List[str] = []
        self.blocked: List[str] = []
        self.active = 0
        self.max_active = 0
        self.closed = False

    async def new_session(self) -> FakeSession:
        session = FakeSession(self)
        self.sessions.append(session)
        return session

    async def close(self) -> None:
        self.closed = True


# --------------------------------------------------------------------------- #
#                                  Fixtures                                   #
# --------------------------------------------------------------------------- #


@pytest.fixture()
def site() -> FakeSite:
    return FakeSite()


@pytest.fixture()
def sessions(site) -> FakeSessionFactory:
    return FakeSessionFactory(site)


@pytest.fixture()
def make_config(tmp_path: Path):
    """
    Return a builder for SnapshotConfig writing into *tmp_path*.
    Pauses are disabled and archiving is off unless asked for.
    """

    def _make(seed_url: str = "https://example.com/", **overrides) -> SnapshotConfig:
        data = dict(
            seed_url=seed_url,
            alias="site",
            output_root=tmp_path / "snapshot",
            batch_pause=0.0,
            navigation_timeout=1.0,
            create_archive=False,
        )
        data.update(overrides)
        return SnapshotConfig(**data)

    return _make
