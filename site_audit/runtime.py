# File: site_audit/runtime.py
"""site_audit.runtime: runtime settings derived once from a ResolvedConfig.

Instead of a process-wide accessor, the :class:`RuntimeSettings` object is
built at startup and handed explicitly to everything that needs output paths.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from site_audit.config import ResolvedConfig
from site_audit.logger import get_logger
from site_audit.utils import sanitise_url_for_file_path

__all__ = ["RuntimeSettings", "create_runtime_settings"]

logger = get_logger(__name__)


@dataclass(frozen=True)
class RuntimeSettings:
    """Read-only context shared by every task-report factory call."""

    config: ResolvedConfig
    output_path: Path
    site_origin: Optional[str] = None

    @property
    def routes_path(self) -> Path:
        return self.output_path / "routes"


def create_runtime_settings(config: ResolvedConfig) -> RuntimeSettings:
    """Computes ``<root>/<output_path>/<site host>``; the host segment is left out when no site is known."""
    output_path = Path(config.root) / config.output_path
    origin = None
    if config.site:
        parsed = urlparse(config.site)
        origin = f"{parsed.scheme}://{parsed.netloc}"
        host = sanitise_url_for_file_path(parsed.hostname or parsed.netloc)
        if host:
            output_path = output_path / host
    logger.debug("Report output path: %s", output_path)
    return RuntimeSettings(config=config, output_path=output_path, site_origin=origin)
