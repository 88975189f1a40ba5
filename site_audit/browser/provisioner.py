# site_audit/browser/provisioner.py
"""
Resolves an executable Chromium binary for the audit workers.

Resolution order, first success wins:

1. a system installed Chrome (only when ``chrome.use_system`` is enabled);
2. the newest revision previously downloaded into the cache directory;
3. a fresh download of the pinned revision, reported as progress events.

There is no fallback after the download: failing to produce an executable
raises :class:`BrowserProvisionError` and startup must stop.
"""
from __future__ import annotations

import asyncio
import math
import os
import platform
import shutil
import sys
import zipfile
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional, Tuple

import aiohttp

from site_audit.browser.models import (
    BrowserBinary,
    DownloadEvent,
    DownloadFinished,
    DownloadProgress,
    Provenance,
)
from site_audit.config import ChromeOptions
from site_audit.constants import BROWSER_CACHE_DIRNAME, CHROMIUM_DOWNLOAD_HOST, CHROMIUM_REVISION
from site_audit.logger import get_logger
from site_audit.utils import format_bytes

__all__ = ("BrowserProvisioner", "BrowserProvisionError", "current_platform", "find_system_chrome")

logger = get_logger(__name__)

_CHUNK_SIZE = 64 * 1024
_PROGRESS_STEP = 5

# platform -> (snapshot folder, archive name, executable path inside the archive)
_SNAPSHOTS: Dict[str, Tuple[str, str, Tuple[str, ...]]] = {
    "linux": ("Linux_x64", "chrome-linux", ("chrome-linux", "chrome")),
    "mac": ("Mac", "chrome-mac", ("chrome-mac", "Chromium.app", "Contents", "MacOS", "Chromium")),
    "mac_arm": ("Mac_Arm", "chrome-mac", ("chrome-mac", "Chromium.app", "Contents", "MacOS", "Chromium")),
    "win32": ("Win", "chrome-win", ("chrome-win", "chrome.exe")),
    "win64": ("Win_x64", "chrome-win", ("chrome-win", "chrome.exe")),
}

_CHROME_BINARIES = ("google-chrome-stable", "google-chrome", "chromium-browser", "chromium", "chrome")
_CHROME_LOCATIONS: Dict[str, Tuple[str, ...]] = {
    "Darwin": (
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
        "/Applications/Chromium.app/Contents/MacOS/Chromium",
    ),
    "Windows": (
        r"C:\Program Files\Google\Chrome\Application\chrome.exe",
        r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
    ),
}


class BrowserProvisionError(RuntimeError):
    """No browser binary could be found or downloaded."""


def current_platform() -> str:
    system = platform.system()
    if system == "Darwin":
        return "mac_arm" if platform.machine() == "arm64" else "mac"
    if system == "Windows":
        return "win64" if sys.maxsize > 2**32 else "win32"
    return "linux"


def find_system_chrome() -> Optional[Path]:
    """Looks for an installed Chrome: ``CHROME_PATH``, then ``PATH``, then known install locations."""
    env_path = os.environ.get("CHROME_PATH")
    if env_path and Path(env_path).is_file():
        return Path(env_path)
    for name in _CHROME_BINARIES:
        found = shutil.which(name)
        if found:
            return Path(found)
    for candidate in _CHROME_LOCATIONS.get(platform.system(), ()):
        if Path(candidate).is_file():
            return Path(candidate)
    return None


def _extract_zip(archive: Path, target: Path) -> None:
    with zipfile.ZipFile(archive) as zf:
        for info in zf.infolist():
            extracted = Path(zf.extract(info, target))
            # zipfile drops unix permissions, chrome and its helpers must stay executable
            mode = (info.external_attr >> 16) & 0o777
            if mode and not info.is_dir():
                os.chmod(extracted, mode)


class BrowserProvisioner:
    """Finds or downloads the Chromium binary used by the audit workers."""

    def __init__(self, options: Optional[ChromeOptions] = None, *, platform_name: Optional[str] = None) -> None:
        opts = options or ChromeOptions()
        self.use_system = opts.use_system
        self.use_download_fallback = opts.use_download_fallback
        if opts.download_fallback_cache_dir:
            self.cache_dir = Path(opts.download_fallback_cache_dir).expanduser()
        else:
            self.cache_dir = Path.home() / BROWSER_CACHE_DIRNAME
        self.revision = opts.download_fallback_version or CHROMIUM_REVISION
        self.download_host = (opts.download_host or CHROMIUM_DOWNLOAD_HOST).rstrip("/")
        self.platform = platform_name or current_platform()
        if self.platform not in _SNAPSHOTS:
            raise ValueError(f"Unsupported platform: {self.platform}")

    def executable_path(self, revision: str) -> Path:
        _, _, parts = _SNAPSHOTS[self.platform]
        return self.cache_dir.joinpath(revision, *parts)

    def download_url(self, revision: str) -> str:
        folder, archive, _ = _SNAPSHOTS[self.platform]
        return f"{self.download_host}/chromium-browser-snapshots/{folder}/{revision}/{archive}.zip"

    def local_revisions(self) -> List[str]:
        """Revisions already present in the cache directory, newest first."""
        if not self.cache_dir.is_dir():
            return []
        revisions = [p.name for p in self.cache_dir.iterdir() if p.is_dir() and p.name.isdigit()]
        return sorted(revisions, key=int, reverse=True)

    async def resolve_executable(self) -> BrowserBinary:
        if self.use_system:
            chrome_path = self._probe_system()
            if chrome_path:
                logger.debug("Found chrome at `%s`.", chrome_path)
                return BrowserBinary(chrome_path, Provenance.SYSTEM)

        revisions = self.local_revisions()
        if revisions:
            cached = BrowserBinary(self.executable_path(revisions[0]), Provenance.CACHED, revisions[0])
            logger.debug("Found chrome at `%s`.", cached.executable_path)
            return cached

        if not self.use_download_fallback:
            logger.error("Failed to find chrome and the download fallback is disabled.")
            raise BrowserProvisionError(
                "Failed to find chrome. Please install chrome or enable `chrome.use_download_fallback`."
            )

        logger.warning("Failed to find chrome, downloading version v%s to: %s", self.revision, self.cache_dir)
        binary: Optional[BrowserBinary] = None
        try:
            async for event in self.download():
                if isinstance(event, DownloadProgress):
                    logger.info("Downloading chromium: %d%%", event.percent)
                else:
                    binary = event.binary
        except BrowserProvisionError as exc:
            logger.error("%s", exc)
            raise
        if binary is None:
            raise BrowserProvisionError("Failed to download chromium. Please ensure you have a valid chrome installed.")
        return binary

    async def download(self, revision: Optional[str] = None) -> AsyncIterator[DownloadEvent]:
        """Streams the revision archive into the cache and unpacks it.

        Yields a :class:`DownloadProgress` on every 5% boundary (each percentage
        at most once) and finishes with a :class:`DownloadFinished`. Any failure
        raises :class:`BrowserProvisionError`.
        """
        revision = revision or self.revision
        url = self.download_url(revision)
        target = self.cache_dir / revision
        archive = self.cache_dir / f"{revision}.zip.part"
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        last_percent = 0
        downloaded = 0
        try:
            timeout = aiohttp.ClientTimeout(total=None, sock_connect=30, sock_read=60)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url) as resp:
                    if resp.status != 200:
                        raise BrowserProvisionError(f"Failed to download chromium from {url}: HTTP {resp.status}")
                    total = resp.content_length or 0
                    with archive.open("wb") as fh:
                        async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
                            # disk writes stay off the event loop, like the extraction below
                            await asyncio.to_thread(fh.write, chunk)
                            downloaded += len(chunk)
                            if not total:
                                continue
                            percent = math.floor(downloaded / total * 100 + 0.5)
                            if percent % _PROGRESS_STEP == 0 and percent != last_percent:
                                last_percent = percent
                                yield DownloadProgress(percent, downloaded, total)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            archive.unlink(missing_ok=True)
            raise BrowserProvisionError(f"Failed to download chromium from {url}: {exc}") from exc
        except OSError as exc:
            archive.unlink(missing_ok=True)
            raise BrowserProvisionError(f"Failed to write chromium archive to {archive}: {exc}") from exc
        except BrowserProvisionError:
            archive.unlink(missing_ok=True)
            raise

        try:
            await asyncio.to_thread(_extract_zip, archive, target)
        except zipfile.BadZipFile as exc:
            shutil.rmtree(target, ignore_errors=True)
            raise BrowserProvisionError(f"Downloaded chromium archive is corrupt: {exc}") from exc
        except OSError as exc:
            # a half-extracted revision would be picked up from the cache next time
            shutil.rmtree(target, ignore_errors=True)
            raise BrowserProvisionError(f"Failed to extract chromium into {target}: {exc}") from exc
        finally:
            archive.unlink(missing_ok=True)

        executable = self.executable_path(revision)
        if not executable.is_file():
            # a half-populated folder would be picked up as a cached revision next time
            shutil.rmtree(target, ignore_errors=True)
            raise BrowserProvisionError("Failed to download chromium. Please ensure you have a valid chrome installed.")

        logger.info("Downloaded chromium v%s (%s) to %s", revision, format_bytes(downloaded), target)
        yield DownloadFinished(BrowserBinary(executable, Provenance.DOWNLOADED, revision))

    def _probe_system(self) -> Optional[Path]:
        try:
            return find_system_chrome()
        except OSError as exc:
            logger.debug("Unable to probe the local chrome installation: %s", exc)
            return None
