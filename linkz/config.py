"""
Загрузка и валидация конфигурации linkz.
Схема описана через Pydantic; значения берутся из YAML/JSON-файла и из CLI.
"""
from __future__ import annotations

import json
import os
import errno
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from linkz import __version__
from linkz.utils import validate_url


class ConfigurationError(ValueError):
    """Отсутствующие или некорректные параметры запуска. Планировщик не стартует."""


class WatchConfig(BaseModel):
    """Конфигурация наблюдения за одним документом."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    target_url: str = Field(..., description="URL документа, который опрашивается.")
    interval: int = Field(..., gt=0, description="Период опроса (секунд).")
    timeout: float = Field(10.0, gt=0, description="Таймаут на один запрос (секунд).")
    user_agent: str = Field(f"linkz/{__version__}", min_length=1, description="Заголовок User-Agent.")
    retry_times: int = Field(0, ge=0, description="Число повторных попыток при 429/5xx и сетевых ошибках.")
    max_in_flight: int = Field(4, ge=1, description="Сколько тиков может выполняться одновременно.")
    verify_ssl: bool = Field(True, description="Проверять TLS-сертификат цели.")
    exclusions: Tuple[str, ...] = Field(
        ("javascript:void(0)", "mailto:"),
        description="Подстроки, по которым ссылка исключается из вывода.",
    )
    collapse_equivalent: bool = Field(
        True, description="Канонизировать относительные ссылки после склейки с target_url (регистр схемы и хоста, порт по умолчанию)."
    )

    @field_validator("target_url", mode="before")
    def _check_target_url(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            if not validate_url(v):
                raise ValueError(f"not an absolute URL with scheme and host: {v!r}")
        return v


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except UnicodeDecodeError as exc:
        raise ConfigurationError(f"Config {path} is not valid UTF-8: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Malformed YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except UnicodeDecodeError as exc:
        raise ConfigurationError(f"Config {path} is not valid UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Malformed JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config_data(path: Union[str, Path]) -> Dict[str, Any]:
    """Читает YAML или JSON и возвращает сырой словарь без валидации."""
    path_obj = Path(path).expanduser().resolve()
    if not path_obj.is_file():
        raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _read_yaml(path_obj)
    if suffix == ".json":
        return _read_json(path_obj)
    raise ConfigurationError(f"Unsupported config format: {suffix}")


def load_config(path: Union[str, Path]) -> WatchConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект WatchConfig.
    Любая ошибка превращается в ConfigurationError.
    """
    return build_config(path)


def build_config(path: Optional[Union[str, Path]] = None, **overrides: Any) -> WatchConfig:
    """
    Собирает WatchConfig из файла (если задан) и значений CLI.

    Значения *overrides*, равные None, игнорируются, остальные перекрывают файл.
    """
    data: Dict[str, Any] = {}
    if path is not None:
        try:
            data = load_config_data(path)
        except OSError as exc:
            raise ConfigurationError(f"Cannot read config {path}: {exc}") from exc
    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return WatchConfig(**data)
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


__all__ = ["ConfigurationError", "WatchConfig", "load_config", "load_config_data", "build_config"]
