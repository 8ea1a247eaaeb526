# site_snapshot/crawler/link_extractor.py
"""
Discovery of same-site page links from an extracted document.
"""
from __future__ import annotations

from typing import Iterable, List

from site_snapshot.crawler.models import ExtractedDocument
from site_snapshot.errors import URLParseError
from site_snapshot.logger import get_logger
from site_snapshot.utils import is_same_site, parse_url, remove_duplicates

log = get_logger("links")


def resolve_all(raw_values: Iterable[str], page_url: str) -> List[str]:
    """
    Resolve raw attribute values against *page_url*.

    mailto:, javascript:, data: and malformed values are skipped one by one.
    """
    resolved: List[str] = []
    for raw in raw_values:
        try:
            resolved.append(parse_url(raw, page_url))
        except URLParseError as exc:
            log.debug("Skipping reference on %s: %s", page_url, exc)
    return resolved


def extract_links(document: ExtractedDocument, page_url: str, root_url: str) -> List[str]:
    """
    Return absolute anchor targets that share *root_url*'s origin, in document order.

    Fragments are kept, so ``/a`` and ``/a#top`` are distinct URLs.
    """
    links = [u for u in resolve_all(document.anchor_hrefs, page_url) if is_same_site(root_url, u)]
    return remove_duplicates(links)
