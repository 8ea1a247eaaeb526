# File: site_snapshot/packager.py
"""site_snapshot.packager: упаковка каталога зеркала в zip-архив."""

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Union

from site_snapshot.errors import PackagingError
from site_snapshot.logger import logger

__all__ = ["compress"]


def compress(source_dir: Union[str, Path], destination: Union[str, Path]) -> Path:
    """Сжимает содержимое *source_dir* в zip-архив *destination* и возвращает его путь.

    Entries are stored relative to *source_dir* (no top-level folder). Any
    failure is raised as :class:`PackagingError`.
    """
    source = Path(source_dir)
    dest = Path(destination)
    if not source.is_dir():
        raise PackagingError(f"Нет каталога для упаковки: {source}")
    if dest.resolve().is_relative_to(source.resolve()):
        raise PackagingError(f"Архив {dest} не может лежать внутри {source}")

    files = sorted(p for p in source.rglob("*") if p.is_file())
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(dest, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
            for path in files:
                zf.write(path, path.relative_to(source).as_posix())
    except (OSError, zipfile.LargeZipFile) as exc:
        raise PackagingError(f"Ошибка упаковки {source} -> {dest}: {exc}") from exc

    logger.info("Packed %d files into %s", len(files), dest)
    return dest
