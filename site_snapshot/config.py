# === FILE: site_snapshot/config.py ===
"""
Модуль для загрузки и валидации конфигурации SiteSnapshot.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, Dict, List, Literal, Mapping, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_validator,
)

__all__ = ["SnapshotConfig", "build_config", "load_config", "read_config_data", "DEFAULT_BROWSER_ARGS"]

DEFAULT_BROWSER_ARGS: List[str] = [
    "--disable-extensions",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--js-flags=--max-old-space-size=512",
]

WaitPolicy = Literal["load", "domcontentloaded", "networkidle", "commit"]


class SnapshotConfig(BaseModel):
    """Конфигурация для одного запуска зеркалирования."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    seed_url: HttpUrl = Field(..., description="Стартовый URL; область обхода: его origin.")
    alias: str = Field(..., min_length=1, description="Имя зеркала: каталог и архив в output_root.")
    output_root: Path = Field(Path("snapshot"), description="Каталог, в котором создаются зеркала.")
    max_pages: int = Field(10, ge=1, description="Жесткий лимит по числу посещённых страниц.")
    concurrency: int = Field(1, ge=1, description="Число страниц, обрабатываемых одновременно.")
    batch_size: int = Field(3, ge=1, description="Пауза после каждых N обработанных страниц.")
    batch_pause: float = Field(1.0, ge=0, description="Длительность паузы (секунд).")
    navigation_timeout: float = Field(60.0, gt=0, description="Таймаут загрузки одной страницы (секунд).")
    wait_until: WaitPolicy = Field("domcontentloaded", description="Событие, которого ждёт навигация.")
    headless: bool = Field(True, description="Запуск браузера без окна.")
    browser_args: List[str] = Field(
        default_factory=lambda: list(DEFAULT_BROWSER_ARGS),
        description="Флаги движка, передаются браузеру как есть.",
    )
    allowed_resource_types: List[str] = Field(
        default_factory=lambda: ["image", "stylesheet", "font", "document"],
        description="Типы запросов, которые не блокируются при загрузке.",
    )
    create_archive: bool = Field(True, description="Упаковать зеркало в <alias>.zip.")

    @field_validator("alias")
    def _check_alias(cls, v: str) -> str:
        v = v.strip()
        if not v or v in (".", "..") or "/" in v or "\\" in v:
            raise ValueError("alias must be a single directory name")
        return v

    @property
    def seed(self) -> str:
        return str(self.seed_url)

    @property
    def output_dir(self) -> Path:
        return self.output_root / self.alias

    @property
    def archive_path(self) -> Path:
        return self.output_root / f"{self.alias}.zip"


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def read_config_data(path: Union[str, Path]) -> Dict[str, Any]:
    """Читает YAML или JSON в словарь без валидации схемы."""
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")


def build_config(data: Mapping[str, Any], **overrides: Any) -> SnapshotConfig:
    """
    Проверяет данные конфига вместе с переопределениями.

    Overrides whose value is ``None`` are ignored, so CLI options that were not
    given keep the file's (or the model's default) value.
    """
    merged: Dict[str, Any] = dict(data)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return SnapshotConfig(**merged)
    except ValidationError:
        raise


def load_config(path: Union[str, Path, None] = None, **overrides: Any) -> SnapshotConfig:
    """
    Читает YAML или JSON (если путь указан) и возвращает проверенный SnapshotConfig.
    Raises FileNotFoundError, ValueError/TypeError for unreadable files and
    pydantic.ValidationError for schema violations.
    """
    data = read_config_data(path) if path is not None else {}
    return build_config(data, **overrides)
