# File: site_audit/resolver.py
"""site_audit.resolver: turns a partial user configuration into a ResolvedConfig.

A provided configuration may need runtime transformations to avoid breaking
app functionality: mostly normalisation of data and sane runtime defaults when
the configuration hasn't been fully provided, plus alias helpers such as
``scanner.device``.

The derived settings are applied in a fixed order, later steps read what the
earlier ones wrote:

1. site host normalisation
2. category restriction
3. throttling defaults for local / unthrottled runs
4. basic auth header injection
5. dashboard column filtering
6. route discovery feasibility
7. device alias expansion
8. router prefix slashes
9. browser driver, viewport and executable provisioning
"""

from __future__ import annotations

import base64
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlparse

from site_audit.browser.models import BrowserBinary, Provenance
from site_audit.browser.provisioner import BrowserProvisioner
from site_audit.config import ChromeOptions, ResolvedConfig, UserConfig
from site_audit.constants import (
    BUILTIN_DRIVER,
    DEFAULT_CATEGORIES,
    DEFAULT_CONFIG,
    DEFAULT_PAGES_DIR,
    DESKTOP_SCREEN_EMULATION,
    MOBILE_SCREEN_EMULATION,
    NO_THROTTLING,
    REPLACED_LIST_KEYS,
)
from site_audit.logger import get_logger
from site_audit.utils import deep_merge, normalise_host, with_slashes

__all__ = ["resolve_user_config"]

_Config = Dict[str, Any]

logger = get_logger(__name__)


def _to_partial(user_config: Union[UserConfig, Mapping[str, Any], None]) -> _Config:
    if user_config is None:
        return {}
    if isinstance(user_config, UserConfig):
        return user_config.to_partial()
    return UserConfig.model_validate(dict(user_config)).to_partial()


def _is_localhost(site: str) -> bool:
    return urlparse(site).hostname == "localhost"


def _normalise_site(config: _Config) -> None:
    # it's possible we don't know the site at runtime
    if config.get("site"):
        config["site"] = normalise_host(config["site"])


def _restrict_categories(config: _Config) -> None:
    audit = config.get("audit_options") or {}
    only = audit.get("onlyCategories")
    if only:
        # the default ordering wins over the order the user listed them in
        audit["onlyCategories"] = [c for c in DEFAULT_CATEGORIES if c in only]
    config["audit_options"] = audit


def _apply_throttling(config: _Config) -> None:
    site = config.get("site")
    scanner = config.get("scanner") or {}
    if not site or _is_localhost(site) or not scanner.get("throttle"):
        audit = config["audit_options"]
        audit["throttlingMethod"] = "provided"
        audit["throttling"] = dict(NO_THROTTLING)


def _inject_credentials(config: _Config) -> None:
    auth = config.get("auth")
    if not auth:
        return
    audit = config["audit_options"]
    headers = dict(audit.get("extraHeaders") or {})
    if not headers.get("Authorization"):
        credentials = f"{auth.get('username', '')}:{auth.get('password', '')}"
        token = base64.b64encode(credentials.encode("utf-8")).decode("ascii")
        headers["Authorization"] = f"Basic {token}"
    audit["extraHeaders"] = headers


def _filter_columns(config: _Config) -> None:
    client = config.get("client") or {}
    columns = client.get("columns")
    if not columns:
        return
    keep = ["overview", *config["audit_options"].get("onlyCategories", [])]
    client["columns"] = {group: columns[group] for group in keep if group in columns}


def _check_discovery(config: _Config) -> None:
    discovery = config.get("discovery")
    root = config.get("root")
    if not (root and discovery and discovery.get("pages_dir") == DEFAULT_PAGES_DIR):
        return
    if not (Path(root) / discovery["pages_dir"]).exists():
        # disable discovery to avoid globbing an entire file system
        logger.debug("Unable to locate page files in %s, disabling route discovery.", root)
        config["discovery"] = False


def _expand_device(config: _Config) -> None:
    audit = config["audit_options"]
    if audit.get("formFactor"):
        return
    device = (config.get("scanner") or {}).get("device")
    if device == "mobile":
        defaults = MOBILE_SCREEN_EMULATION
    elif device == "desktop":
        defaults = DESKTOP_SCREEN_EMULATION
    else:
        return
    audit["formFactor"] = device
    audit["screenEmulation"] = {**defaults, **(audit.get("screenEmulation") or {})}


def _normalise_router_prefix(config: _Config) -> None:
    if config.get("router_prefix"):
        config["router_prefix"] = with_slashes(config["router_prefix"])


async def _provision_browser(config: _Config, provisioner: Optional[BrowserProvisioner]) -> None:
    browser_options = config.get("browser_options") or {}
    cluster_options = config.get("browser_cluster_options") or {}
    config["browser_options"] = browser_options
    config["browser_cluster_options"] = cluster_options

    executable = browser_options.get("executable_path")
    if executable:
        config["browser"] = BrowserBinary(Path(executable), Provenance.OVERRIDE)
        return
    if cluster_options.get("driver"):
        # a custom driver brings its own browser
        return

    cluster_options["driver"] = BUILTIN_DRIVER
    if not browser_options.get("default_viewport"):
        emulation = config["audit_options"].get("screenEmulation") or {}
        browser_options["default_viewport"] = {
            "width": emulation.get("width") or 0,
            "height": emulation.get("height") or 0,
        }

    if provisioner is None:
        provisioner = BrowserProvisioner(ChromeOptions.model_validate(config.get("chrome") or {}))
    binary = await provisioner.resolve_executable()
    browser_options["executable_path"] = str(binary.executable_path)
    config["browser"] = binary


async def resolve_user_config(
    user_config: Union[UserConfig, Mapping[str, Any], None] = None,
    *,
    provisioner: Optional[BrowserProvisioner] = None,
) -> ResolvedConfig:
    """Merges the user configuration over the defaults and derives runtime settings.

    The caller's object is never modified. Raises
    :class:`~site_audit.browser.provisioner.BrowserProvisionError` when no browser
    binary can be obtained; every other problem degrades softly.
    """
    config = deep_merge(_to_partial(user_config), DEFAULT_CONFIG, REPLACED_LIST_KEYS)
    if not config.get("root"):
        config["root"] = str(Path.cwd())
    logger.debug("Resolving configuration for %s", config.get("site") or "<unknown site>")

    _normalise_site(config)
    _restrict_categories(config)
    _apply_throttling(config)
    _inject_credentials(config)
    _filter_columns(config)
    _check_discovery(config)
    _expand_device(config)
    _normalise_router_prefix(config)
    await _provision_browser(config, provisioner)

    return ResolvedConfig.model_validate(config)
