# site_snapshot/crawler/browser.py
"""
Browser session layer: the contract the crawler relies on and its Playwright implementation.

Each session is an isolated page (own browser context) that can block
requests by resource type, report every response and export the rendered
document.
"""
from __future__ import annotations

from typing import Callable, Iterable, Optional, Protocol

from playwright.async_api import Browser, Error as PlaywrightError, Page, Playwright, Response, Route
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from site_snapshot.crawler.models import CapturedResponse, ExtractedDocument
from site_snapshot.errors import BrowserLaunchError, NavigationError
from site_snapshot.logger import get_logger

__all__ = (
    "BrowserSession",
    "SessionFactory",
    "PlaywrightSession",
    "PlaywrightSessionFactory",
    "launch_browser",
)

ResourcePredicate = Callable[[str], bool]
ResponseHandler = Callable[[CapturedResponse], None]

log = get_logger("browser")

_EXTRACT_JS = """() => ({
  links: Array.from(document.querySelectorAll("a[href]"), (a) => a.getAttribute("href")),
  imgs: Array.from(document.querySelectorAll("img[src]"), (i) => i.getAttribute("src")),
  css: Array.from(
    document.querySelectorAll('link[rel~="stylesheet" i][href]'),
    (l) => l.getAttribute("href")
  ),
})"""


class BrowserSession(Protocol):
    async def intercept_requests(self, predicate: ResourcePredicate) -> None:
        """Continue requests whose resource type satisfies *predicate*, abort the rest."""

    def on_response(self, handler: ResponseHandler) -> None:
        """Call *handler* for every response received by the session."""

    async def navigate(self, url: str, wait_until: str, timeout: float) -> None:
        """Load *url*; raise NavigationError on timeout or network failure."""

    async def extract_document(self) -> ExtractedDocument:
        """Return the rendered markup and raw anchor/image/stylesheet references."""

    async def close(self) -> None:
        """Release the session; safe to call more than once."""


class SessionFactory(Protocol):
    async def new_session(self) -> BrowserSession:
        ...

    async def close(self) -> None:
        ...


class PlaywrightSession:
    """BrowserSession backed by a Playwright page."""

    def __init__(self, page: Page) -> None:
        self._page = page

    async def intercept_requests(self, predicate: ResourcePredicate) -> None:
        async def _route(route: Route) -> None:
            if predicate(route.request.resource_type):
                await route.continue_()
            else:
                await route.abort()

        await self._page.route("**/*", _route)

    def on_response(self, handler: ResponseHandler) -> None:
        def _listener(resp: Response) -> None:
            handler(
                CapturedResponse(
                    url=resp.url,
                    content_type=resp.headers.get("content-type", ""),
                    read=resp.body,
                    resource_type=resp.request.resource_type,
                )
            )

        self._page.on("response", _listener)

    async def navigate(self, url: str, wait_until: str, timeout: float) -> None:
        try:
            await self._page.goto(url, wait_until=wait_until, timeout=timeout * 1000)
        except PlaywrightTimeoutError as exc:
            raise NavigationError(url, f"timeout after {timeout:g}s") from exc
        except PlaywrightError as exc:
            raise NavigationError(url, exc.message) from exc

    async def extract_document(self) -> ExtractedDocument:
        refs = await self._page.evaluate(_EXTRACT_JS)
        markup = await self._page.content()
        return ExtractedDocument(
            markup=markup,
            anchor_hrefs=[h for h in refs["links"] if h is not None],
            image_srcs=[s for s in refs["imgs"] if s is not None],
            stylesheet_hrefs=[h for h in refs["css"] if h is not None],
        )

    async def close(self) -> None:
        if self._page.is_closed():
            return
        context = self._page.context
        await self._page.close()
        await context.close()


class PlaywrightSessionFactory:
    """Opens one isolated page per session on a shared Chromium instance."""

    def __init__(self, playwright: Playwright, browser: Browser) -> None:
        self._playwright = playwright
        self._browser = browser
        self._closed = False

    async def new_session(self) -> PlaywrightSession:
        context = await self._browser.new_context()
        page = await context.new_page()
        return PlaywrightSession(page)

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()

    async def __aenter__(self) -> PlaywrightSessionFactory:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


async def launch_browser(headless: bool = True, args: Optional[Iterable[str]] = None) -> PlaywrightSessionFactory:
    """Start Chromium; engine *args* are passed through uninterpreted."""
    flags = list(args or ())
    playwright = await async_playwright().start()
    try:
        browser = await playwright.chromium.launch(headless=headless, args=flags)
    except PlaywrightError as exc:
        await playwright.stop()
        raise BrowserLaunchError(f"browser launch failed: {exc.message}") from exc
    log.info("Chromium started (headless=%s, %d engine flags)", headless, len(flags))
    return PlaywrightSessionFactory(playwright, browser)
