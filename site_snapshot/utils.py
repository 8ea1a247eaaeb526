# File: site_snapshot/utils.py
"""site_snapshot.utils: Утилиты для URL: разбор, сравнение происхождения и построение имён файлов (slug)."""

from __future__ import annotations

import posixpath
import re
from typing import Collection, List, Optional, Sequence, Tuple
from urllib.parse import quote, urljoin, urlsplit, urlunsplit

from site_snapshot.errors import URLParseError
from site_snapshot.logger import logger

__all__: Sequence[str] = (
    "slug",
    "local_html_file",
    "asset_filename",
    "parse_url",
    "origin",
    "is_same_site",
    "remove_duplicates",
)

_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9_-]")
_EDGE_SLASH_RE = re.compile(r"^/|/$")
# characters a browser leaves unescaped in a URL path
_PATH_SAFE = "/%:@!$&'()*+,;=~"
_DEFAULT_PORTS = {"http": 80, "https": 443}


def _slug_path(path: str) -> str:
    path = quote(path or "/", safe=_PATH_SAFE)
    if path == "/":
        return "root"
    return _UNSAFE_RE.sub("_", _EDGE_SLASH_RE.sub("", path)) or "index"


def slug(url: str) -> str:
    """Возвращает идентификатор для файловой системы, построенный только по пути URL.

    ``https://x/`` -> ``root``, ``https://x/column/`` -> ``column``,
    ``https://x/a/b?q=1`` -> ``a_b``. Distinct URLs may share a slug; the
    last file written under it wins.
    """
    return _slug_path(urlsplit(url).path)


def local_html_file(url: str) -> str:
    return f"{slug(url)}.html"


def asset_filename(url: str, extension: Optional[str] = None) -> str:
    """Имя файла для ассета.

    Images keep their own suffix after the slugged stem:
    ``.../img/logo.png`` -> ``img_logo.png``. With an explicit *extension*
    (``".css"`` for stylesheets) the name is ``slug(url) + extension``, so
    ``/static/site.css`` -> ``static_site_css.css``.
    """
    if extension is not None:
        return slug(url) + extension
    stem, ext = posixpath.splitext(urlsplit(url).path or "/")
    return _slug_path(stem) + ext


def parse_url(raw: object, base: Optional[str] = None) -> str:
    """Resolve *raw* against *base* and return a canonical absolute http(s) URL.

    Scheme and host are lowercased and an empty path becomes ``/``; query and
    fragment are kept verbatim. Raises :class:`URLParseError` when the value
    is empty, unparsable, uses another scheme (``mailto:``, ``data:``...) or
    has no host.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise URLParseError(raw, "empty reference")
    value = raw.strip()
    try:
        absolute = urljoin(base, value) if base else value
        parts = urlsplit(absolute)
        parts.port  # noqa: B018 - raises ValueError on a bad port
    except ValueError as exc:
        raise URLParseError(raw, str(exc)) from exc
    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        raise URLParseError(raw, f"unsupported scheme {scheme!r}")
    if not parts.hostname:
        raise URLParseError(raw, "missing host")
    return urlunsplit((scheme, parts.netloc.lower(), parts.path or "/", parts.query, parts.fragment))


def origin(url: str) -> Tuple[str, str, int]:
    """Кортеж (scheme, host, port) с портом по умолчанию для схемы."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as exc:
        raise URLParseError(url, str(exc)) from exc
    scheme = parts.scheme.lower()
    return scheme, (parts.hostname or "").lower(), port or _DEFAULT_PORTS.get(scheme, 0)


def is_same_site(root: str, url: str) -> bool:
    """True when *url* has the same origin as *root*; unparsable URLs are never same-site."""
    try:
        return origin(root) == origin(url)
    except URLParseError:
        return False


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Удаляет дубликаты из списка URL, сохраняя порядок."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
