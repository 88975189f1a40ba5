# site_audit/routes.py
"""
Data model for a route discovered while crawling the site.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin, urlparse

from site_audit.utils import hash_path_name


@dataclass(frozen=True, slots=True)
class NormalisedRoute:
    """Path of a page plus its absolute URL and content-address id."""

    id: str
    url: str
    path: str


def normalise_route(url: str, site: Optional[str] = None) -> NormalisedRoute:
    """
    Build a NormalisedRoute from an absolute URL or a path relative to *site*.

    Query strings and fragments are dropped and a trailing slash is removed
    from every path except the root.
    """
    absolute = urljoin(site.rstrip("/") + "/", url) if site else url
    parsed = urlparse(absolute)
    path = parsed.path or "/"
    if len(path) > 1:
        path = path.rstrip("/") or "/"
    if parsed.netloc:
        absolute = f"{parsed.scheme}://{parsed.netloc}{path}"
    else:
        absolute = path
    return NormalisedRoute(id=hash_path_name(path), url=absolute, path=path)
