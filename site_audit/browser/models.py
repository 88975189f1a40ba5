"""Data models describing a resolved browser binary and download progress."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union


class Provenance(str, Enum):
    """Where the executable came from."""

    OVERRIDE = "override"
    SYSTEM = "system"
    CACHED = "cached"
    DOWNLOADED = "downloaded"


@dataclass(frozen=True)
class BrowserBinary:
    executable_path: Path
    provenance: Provenance
    revision: Optional[str] = None


@dataclass(frozen=True)
class DownloadProgress:
    """Emitted on every 5% boundary while an archive is streamed to disk."""

    percent: int
    downloaded: int
    total: int


@dataclass(frozen=True)
class DownloadFinished:
    binary: BrowserBinary


DownloadEvent = Union[DownloadProgress, DownloadFinished]
