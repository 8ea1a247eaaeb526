# site_snapshot/crawler/frontier.py
"""
Breadth-first frontier: pending queue plus visited set, limited to the seed's origin.
"""
from __future__ import annotations

from collections import deque
from typing import AbstractSet, Deque, Optional, Set

from site_snapshot.errors import URLParseError
from site_snapshot.utils import is_same_site, parse_url

__all__ = ["Frontier"]


class Frontier:
    """
    FIFO queue of URLs to visit and the set of URLs already visited.

    Methods never suspend, so a single coordinating task can use them
    without a lock. A URL is marked visited at most once and the visited
    set only grows.
    """

    def __init__(self, seed_url: str) -> None:
        self.root = parse_url(seed_url)
        self._queue: Deque[str] = deque()
        self._queued: Set[str] = set()
        self._visited: Set[str] = set()
        self.seed(self.root)

    def seed(self, url: str) -> None:
        """Put *url* at the end of the queue; it must be in scope."""
        if not self.offer(url):
            raise ValueError(f"cannot seed frontier with {url!r}")

    def in_scope(self, url: str) -> bool:
        return is_same_site(self.root, url)

    def offer(self, url: str) -> bool:
        """Enqueue *url* if it is same-site, not visited and not queued yet."""
        try:
            url = parse_url(url)
        except URLParseError:
            return False
        if not self.in_scope(url) or url in self._visited or url in self._queued:
            return False
        self._queue.append(url)
        self._queued.add(url)
        return True

    def next(self) -> Optional[str]:
        """Pop the oldest pending URL, or None when the queue is empty."""
        if not self._queue:
            return None
        url = self._queue.popleft()
        self._queued.discard(url)
        return url

    def mark_visited(self, url: str) -> bool:
        """Record *url* as visited; False if it already was."""
        if url in self._visited:
            return False
        self._visited.add(url)
        return True

    @property
    def visited(self) -> AbstractSet[str]:
        return frozenset(self._visited)

    @property
    def visited_count(self) -> int:
        return len(self._visited)

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    def __len__(self) -> int:
        return len(self._queue)
