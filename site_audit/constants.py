# File: site_audit/constants.py
"""Built-in defaults the user configuration is merged over."""

from __future__ import annotations

from typing import Any, Dict, Final, List, Tuple

#: canonical ordering of the audit categories, restricted lists follow it
DEFAULT_CATEGORIES: Final[Tuple[str, ...]] = ("performance", "accessibility", "best-practices", "seo")

#: keys whose list values replace the default instead of being concatenated
REPLACED_LIST_KEYS: Final[Tuple[str, ...]] = ("supported_extensions", "onlyCategories")

#: pinned chromium snapshot downloaded when nothing else is available
CHROMIUM_REVISION: Final[str] = "1095492"
CHROMIUM_DOWNLOAD_HOST: Final[str] = "https://storage.googleapis.com"
BROWSER_CACHE_DIRNAME: Final[str] = ".unlighthouse"  # under the user home directory

#: automation driver used when the user does not bring their own
BUILTIN_DRIVER: Final[str] = "builtin"

DEFAULT_PAGES_DIR: Final[str] = "pages"

MOBILE_SCREEN_EMULATION: Final[Dict[str, Any]] = {
    "mobile": True,
    "width": 360,
    "height": 640,
    "deviceScaleFactor": 2,
}
DESKTOP_SCREEN_EMULATION: Final[Dict[str, Any]] = {
    "mobile": False,
    "width": 1024,
    "height": 750,
}

NO_THROTTLING: Final[Dict[str, Any]] = {
    "rttMs": 0,
    "throughputKbps": 0,
    "cpuSlowdownMultiplier": 1,
    "requestLatencyMs": 0,  # 0 means unset
    "downloadThroughputKbps": 0,
    "uploadThroughputKbps": 0,
}


def _column(label: str, key: str | None = None, cols: int = 1, **extra: Any) -> Dict[str, Any]:
    column: Dict[str, Any] = {"label": label, "cols": cols}
    if key is not None:
        column["key"] = key
    column.update(extra)
    return column


DEFAULT_COLUMNS: Final[Dict[str, List[Dict[str, Any]]]] = {
    "overview": [
        _column("Screenshot Timeline", "report.audits.screenshot-thumbnails", cols=6),
    ],
    "performance": [
        _column("FCP", "report.audits.first-contentful-paint", cols=2, sortKey="numericValue"),
        _column("LCP", "report.audits.largest-contentful-paint", cols=2, sortKey="numericValue"),
        _column("CLS", "report.audits.cumulative-layout-shift", cols=2, sortKey="numericValue"),
        _column("FID", "report.audits.max-potential-fid", cols=2, sortKey="numericValue"),
        _column("Network Requests", "report.audits.network-requests", cols=1),
    ],
    "accessibility": [
        _column("Color Contrast", "report.audits.color-contrast", cols=2),
        _column("Headings", "report.audits.heading-order", cols=1),
        _column("ARIA", "report.audits.aria-allowed-attr", cols=1),
        _column("Labels", "report.audits.label", cols=1),
        _column("Image Alts", "report.audits.image-alt", cols=1),
        _column("Link Names", "report.audits.link-name", cols=1),
    ],
    "best-practices": [
        _column("Errors", "report.audits.errors-in-console", cols=1),
        _column("Inspector Issues", "report.audits.inspector-issues", cols=2),
        _column("Images Responsive", "report.audits.image-size-responsive", cols=2),
        _column("Image Aspect Ratio", "report.audits.image-aspect-ratio", cols=2),
    ],
    "seo": [
        _column("Indexable", "report.audits.is-crawlable", cols=1),
        _column("Internal link", "seo.internalLinks", cols=1, sortable=True),
        _column("External link", "seo.externalLinks", cols=1, sortable=True),
        _column("Tap Targets", "report.audits.tap-targets", cols=1),
        _column("Description", "seo.description", cols=2),
        _column("Share Image", "seo.og.image", cols=2),
    ],
}

DEFAULT_CONFIG: Final[Dict[str, Any]] = {
    "root": None,  # filled with the working directory at resolve time
    "output_path": ".unlighthouse",
    "cache": True,
    "debug": False,
    "router_prefix": "",
    "api_prefix": "/api",
    "client": {
        "columns": DEFAULT_COLUMNS,
        "group_routes_key": "route.definition.name",
    },
    "discovery": {
        "pages_dir": DEFAULT_PAGES_DIR,
        "supported_extensions": ["vue", "md"],
    },
    "scanner": {
        "device": "mobile",
        "throttle": True,
        "dynamic_sampling": 5,
        "samples": 1,
        "max_routes": 200,
        "crawler": True,
        "sitemap": True,
        "robots_txt": True,
        "skip_javascript": True,
        "exclude": [],
        "include": [],
    },
    "audit_options": {
        "onlyCategories": list(DEFAULT_CATEGORIES),
    },
    "browser_options": {},
    "browser_cluster_options": {
        "max_concurrency": 5,
        "timeout": 5 * 60 * 1000,
    },
    "chrome": {
        "use_system": False,
        "use_download_fallback": True,
        "download_fallback_cache_dir": None,
        "download_fallback_version": CHROMIUM_REVISION,
        "download_host": CHROMIUM_DOWNLOAD_HOST,
    },
}
