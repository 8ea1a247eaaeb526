# site_snapshot/crawler/rewriter.py
"""
Link rewriting for mirrored pages.

The markup is parsed with BeautifulSoup and only attribute nodes are
changed: ``img[src]``, ``link[rel=stylesheet][href]`` and ``a[href]``.
Values are compared whole, never as substrings, so a URL that is a prefix
of another URL or that appears in text, scripts or unrelated attributes is
left alone.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Collection, Iterator, Optional
from urllib.parse import urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from site_snapshot.crawler.capture import CSS_DIR, IMAGES_DIR
from site_snapshot.crawler.models import ExtractedDocument
from site_snapshot.errors import URLParseError
from site_snapshot.logger import get_logger
from site_snapshot.utils import asset_filename, is_same_site, local_html_file, parse_url

__all__ = ["LinkRewriter", "RewriteStats", "local_image_path", "local_stylesheet_path", "local_page_path"]

log = get_logger("rewriter")


def local_image_path(raw: str, page_url: str) -> str:
    """``./images/<name>`` for an image reference; raises URLParseError."""
    return f"./{IMAGES_DIR}/{asset_filename(parse_url(raw, page_url))}"


def local_stylesheet_path(raw: str, page_url: str) -> str:
    """``./css/<name>.css`` for a stylesheet reference; raises URLParseError."""
    return f"./{CSS_DIR}/{asset_filename(parse_url(raw, page_url), '.css')}"


def local_page_path(raw: str, page_url: str, root_url: str) -> Optional[str]:
    """``./<slug>.html`` (plus fragment) for a same-site anchor, None for anything else."""
    if raw.strip().startswith("#"):
        return None
    target = parse_url(raw, page_url)
    if not is_same_site(root_url, target):
        return None
    fragment = urlsplit(target).fragment
    local = f"./{local_html_file(target)}"
    return f"{local}#{fragment}" if fragment else local


@dataclass(slots=True)
class RewriteStats:
    images: int = 0
    stylesheets: int = 0
    anchors: int = 0
    skipped: int = 0


class LinkRewriter:
    """Rewrites asset and same-site page references of a page to local relative paths."""

    def __init__(self, root_url: str) -> None:
        self.root_url = root_url
        self.last_stats = RewriteStats()

    def rewrite(self, document: ExtractedDocument, page_url: str) -> str:
        soup = BeautifulSoup(document.markup, "html.parser")
        stats = RewriteStats()

        stats.images = self._rewrite(
            soup.find_all("img", src=True), "src", set(document.image_srcs), stats,
            lambda raw: local_image_path(raw, page_url),
        )
        stats.stylesheets = self._rewrite(
            self._stylesheet_links(soup), "href", set(document.stylesheet_hrefs), stats,
            lambda raw: local_stylesheet_path(raw, page_url),
        )
        stats.anchors = self._rewrite(
            soup.find_all("a", href=True), "href", set(document.anchor_hrefs), stats,
            lambda raw: local_page_path(raw, page_url, self.root_url),
        )

        self.last_stats = stats
        log.debug(
            "Rewrote %s: %d images, %d stylesheets, %d anchors (%d skipped)",
            page_url, stats.images, stats.stylesheets, stats.anchors, stats.skipped,
        )
        return str(soup)

    @staticmethod
    def _stylesheet_links(soup: BeautifulSoup) -> Iterator[Tag]:
        for tag in soup.find_all("link", href=True):
            rel = tag.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            if "stylesheet" in (r.lower() for r in rel):
                yield tag

    @staticmethod
    def _rewrite(tags, attr: str, wanted: Collection[str], stats: RewriteStats, to_local) -> int:
        count = 0
        for tag in tags:
            raw = tag.get(attr)
            if not isinstance(raw, str) or raw not in wanted:
                continue
            try:
                local = to_local(raw)
            except URLParseError as exc:
                stats.skipped += 1
                log.debug("Not rewritten: %s", exc)
                continue
            if local is None:
                continue
            tag[attr] = local
            count += 1
        return count
