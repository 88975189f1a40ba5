# === FILE: site_audit/config.py ===
"""
Модуль для загрузки и валидации конфигурации аудита SiteAudit.
Используется Pydantic для описания схемы и проверки данных.

UserConfig — частичная конфигурация пользователя (любое поле может отсутствовать),
ResolvedConfig — неизменяемый, полностью заполненный снимок после resolve_user_config().
"""
from __future__ import annotations

import json
import os
import errno
from pathlib import Path
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Tuple, Union

import yaml
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator

from site_audit.browser.models import BrowserBinary
from site_audit.utils import freeze


class _Options(BaseModel):
    # неизвестные ключи передаются дальше без проверки
    model_config = ConfigDict(extra="allow", frozen=True)


# словарь, который после валидации нельзя изменить (вложенные списки становятся кортежами)
FrozenMapping = Annotated[Dict[str, Any], AfterValidator(freeze)]


class ScannerOptions(_Options):
    device: Optional[Literal["mobile", "desktop"]] = Field(None, description="Алиас эмуляции устройства.")
    throttle: Optional[bool] = Field(None, description="Включить симуляцию медленной сети.")
    dynamic_sampling: Optional[Union[int, bool]] = Field(None, description="Число примеров на шаблон маршрута.")
    samples: Optional[int] = Field(None, ge=1)
    max_routes: Optional[Union[int, bool]] = None
    exclude: Optional[Tuple[str, ...]] = None
    include: Optional[Tuple[str, ...]] = None


class AuthOptions(_Options):
    username: str = ""
    password: str = ""


class ClientOptions(_Options):
    columns: Optional[FrozenMapping] = None
    group_routes_key: Optional[str] = None


class DiscoveryOptions(_Options):
    pages_dir: Optional[str] = None
    supported_extensions: Optional[Tuple[str, ...]] = None


class BrowserOptions(_Options):
    executable_path: Optional[str] = None
    default_viewport: Optional[Annotated[Dict[str, int], AfterValidator(freeze)]] = None


class BrowserClusterOptions(_Options):
    # имя драйвера автоматизации или сам объект драйвера
    driver: Optional[Any] = None
    max_concurrency: Optional[int] = Field(None, ge=1)
    timeout: Optional[int] = Field(None, gt=0)


class ChromeOptions(_Options):
    """Политика получения бинарника браузера."""

    use_system: bool = Field(False, description="Искать установленный в системе Chrome.")
    use_download_fallback: bool = Field(True, description="Скачивать Chromium, если ничего не найдено.")
    download_fallback_cache_dir: Optional[str] = None
    download_fallback_version: Optional[str] = None
    download_host: Optional[str] = None


class UserConfig(_Options):
    """Конфигурация, написанная пользователем. Все поля необязательны."""

    site: Optional[str] = Field(None, description="Хост или URL сайта.")
    root: Optional[str] = Field(None, description="Корень проекта, по умолчанию текущая директория.")
    output_path: Optional[str] = None
    cache: Optional[bool] = None
    debug: Optional[bool] = None
    router_prefix: Optional[str] = None
    api_prefix: Optional[str] = None
    scanner: Optional[ScannerOptions] = None
    audit_options: Optional[Dict[str, Any]] = None
    auth: Optional[AuthOptions] = None
    client: Optional[ClientOptions] = None
    discovery: Optional[Union[DiscoveryOptions, Literal[False]]] = None
    browser_options: Optional[BrowserOptions] = None
    browser_cluster_options: Optional[BrowserClusterOptions] = None
    chrome: Optional[ChromeOptions] = None

    @field_validator("site", mode="before")
    def _strip_site(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip() or None
        return v

    def to_partial(self) -> Dict[str, Any]:
        """Только явно заданные пользователем значения — вход для слияния с дефолтами."""
        return self.model_dump(exclude_unset=True)


class ResolvedConfig(_Options):
    """Полностью заполненная конфигурация. После создания не изменяется.

    Все вложенные словари и списки замораживаются (FrozenDict и кортежи),
    поэтому снимок можно без копирования раздавать параллельным воркерам.
    """

    site: Optional[str] = None
    root: Path
    output_path: str
    cache: bool = True
    debug: bool = False
    router_prefix: str = ""
    api_prefix: str = "/api"
    scanner: ScannerOptions
    audit_options: FrozenMapping
    auth: Optional[AuthOptions] = None
    client: ClientOptions
    discovery: Union[DiscoveryOptions, Literal[False]]
    browser_options: BrowserOptions
    browser_cluster_options: BrowserClusterOptions
    chrome: ChromeOptions
    browser: Optional[BrowserBinary] = Field(None, description="Найденный или скачанный браузер.")

    @model_validator(mode="before")
    @classmethod
    def _freeze_containers(cls, data: Any) -> Any:
        # значения extra-ключей и полей типа Any pydantic не копирует
        if isinstance(data, Mapping):
            return freeze(data)
        return data


_DEFAULT_CFG = Path("site-audit.yaml")


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


def load_config(path: Union[str, Path, None]) -> UserConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект UserConfig.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return UserConfig(**data)
