# File: site_audit/browser/__init__.py
"""site_audit.browser: поиск и загрузка бинарника Chromium для аудита.

Сам провижинер импортируется явно из :mod:`site_audit.browser.provisioner`,
модели можно брать прямо из пакета.
"""

from .models import BrowserBinary, DownloadEvent, DownloadFinished, DownloadProgress, Provenance

__all__ = ["BrowserBinary", "DownloadEvent", "DownloadFinished", "DownloadProgress", "Provenance"]
