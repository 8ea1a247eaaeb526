# File: site_snapshot/errors.py
"""site_snapshot.errors: иерархия исключений SiteSnapshot.

Per-page and per-asset errors are logged where they occur and never abort a
run; only :class:`BrowserLaunchError`, :class:`OutputDirError` and
:class:`PackagingError` are fatal.
"""
from __future__ import annotations

__all__ = [
    "SnapshotError",
    "NavigationError",
    "AssetWriteError",
    "URLParseError",
    "BrowserLaunchError",
    "OutputDirError",
    "PackagingError",
]


class SnapshotError(Exception):
    """Base class for every error raised by SiteSnapshot."""


class NavigationError(SnapshotError):
    """Page load timed out or failed on the network level."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"navigation to {url} failed: {reason}")
        self.url = url
        self.reason = reason


class AssetWriteError(SnapshotError):
    """Body of an image/stylesheet response could not be read or written."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"asset {url} not saved: {reason}")
        self.url = url
        self.reason = reason


class URLParseError(SnapshotError, ValueError):
    """Reference that cannot be turned into an absolute http(s) URL."""

    def __init__(self, raw: object, reason: str = "malformed URL") -> None:
        super().__init__(f"{reason}: {raw!r}")
        self.raw = raw
        self.reason = reason


class BrowserLaunchError(SnapshotError):
    """Headless browser could not be started."""


class OutputDirError(SnapshotError):
    """Output directory could not be cleaned or created."""


class PackagingError(SnapshotError):
    """Mirror directory could not be compressed into an archive."""
