# === FILE: site_audit/logger.py ===
"""Logging setup for **SiteAudit**.

Every component logs through a child of the ``SiteAudit`` logger, so one call
to :func:`configure` (the CLI makes it once its ``--log-*`` options are
parsed) controls the whole tree::

    from site_audit.logger import get_logger
    logger = get_logger(__name__)  # -> "SiteAudit.resolver"

Console output goes to stderr; stdout is left to the JSON the CLI prints.
The initial level comes from ``SITE_AUDIT_LOG_LEVEL`` (``WARNING`` when unset),
so importing the library stays quiet.
"""
from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Union

DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
ROOT_LOGGER_NAME: Final[str] = "SiteAudit"
LEVEL_ENV_VAR: Final[str] = "SITE_AUDIT_LOG_LEVEL"

_PACKAGE_PREFIX = "site_audit."

_LevelT = Union[int, str]


def _rotating_file_handler(file: Path | str) -> RotatingFileHandler:
    path = Path(file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(filename=str(path), maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8")


def configure(
    *,
    level: _LevelT | None = None,
    log_file: str | Path | None = None,
    log_format: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Replaces the handlers of the ``SiteAudit`` logger.

    ``level`` falls back to ``$SITE_AUDIT_LOG_LEVEL`` and then to ``WARNING``;
    ``log_file`` adds a rotating file next to the stderr handler.
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level or os.environ.get(LEVEL_ENV_VAR, "WARNING").upper())

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        handlers.append(_rotating_file_handler(log_file))

    formatter = logging.Formatter(log_format)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    root.propagate = False
    return root


def get_logger(name: str | None = None) -> logging.Logger:
    """Child of the ``SiteAudit`` logger; module names lose their package prefix."""
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(_PACKAGE_PREFIX):
        name = name[len(_PACKAGE_PREFIX):]
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


logger: logging.Logger = configure()

__all__ = ["DEFAULT_FORMAT", "LEVEL_ENV_VAR", "configure", "get_logger", "logger"]
