# File: site_snapshot/preview.py
"""site_snapshot.preview: локальный HTTP-сервер для просмотра готового зеркала."""

from __future__ import annotations

from pathlib import Path
from typing import List, Union

from aiohttp import web

from site_snapshot.logger import logger

__all__ = ["list_aliases", "create_app", "serve"]


def list_aliases(output_root: Union[str, Path]) -> List[str]:
    """Имена каталогов-зеркал в *output_root*, по алфавиту; пустой список, если каталога нет."""
    root = Path(output_root)
    if not root.is_dir():
        return []
    return sorted(p.name for p in root.iterdir() if p.is_dir())


def create_app(directory: Union[str, Path]) -> web.Application:
    """aiohttp-приложение, раздающее *directory* со списком файлов."""
    path = Path(directory)
    if not path.is_dir():
        raise FileNotFoundError(f"Mirror directory not found: {path}")
    app = web.Application()
    app.router.add_static("/", path, show_index=True)
    return app


def serve(directory: Union[str, Path], host: str = "127.0.0.1", port: int = 8080) -> None:
    """Блокирующий запуск сервера до Ctrl+C."""
    logger.info("Preview of %s on http://%s:%d/", directory, host, port)
    web.run_app(create_app(directory), host=host, port=port, print=None)
