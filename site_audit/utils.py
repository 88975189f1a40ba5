# File: site_audit/utils.py
"""site_audit.utils: URL/path helpers, content addressing of routes and config merging."""

from __future__ import annotations

import hashlib
import math
import re
from typing import Any, Collection, Mapping, Sequence

from slugify import slugify

__all__: Sequence[str] = (
    "trim_slashes",
    "sanitize_filename",
    "sanitise_url_for_file_path",
    "hash_path_name",
    "normalise_host",
    "has_protocol",
    "with_slashes",
    "FrozenDict",
    "freeze",
    "thaw",
    "deep_merge",
    "format_bytes",
)

# characters that are illegal in a file name on at least one common file system
_ILLEGAL_CHARS_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f\x80-\x9f]')
_RESERVED_RE = re.compile(r"^\.+$")
_WINDOWS_RESERVED_RE = re.compile(r"^(con|prn|aux|nul|com[0-9]|lpt[0-9])(\..*)?$", re.IGNORECASE)
_WINDOWS_TRAILING_RE = re.compile(r"[. ]+$")
_PROTOCOL_RE = re.compile(r"^\w+://")


def trim_slashes(s: str) -> str:
    """Removes leading and trailing slashes from a string."""
    return s.strip("/")


def sanitize_filename(name: str, max_length: int = 255) -> str:
    """Strips characters a file system would refuse from a single path segment."""
    cleaned = _ILLEGAL_CHARS_RE.sub("", name)
    cleaned = _RESERVED_RE.sub("", cleaned)
    cleaned = _WINDOWS_RESERVED_RE.sub("", cleaned)
    cleaned = _WINDOWS_TRAILING_RE.sub("", cleaned)
    return cleaned[:max_length]


def sanitise_url_for_file_path(url: str) -> str:
    """Sanitises the provided URL path for use as a file system path.

    Every segment is slugified on its own, so the path hierarchy is kept as
    nested folders: ``"/foo/Bar Baz/"`` -> ``"foo/bar-baz"``. Segments that
    sanitise to nothing (``-``, ``~``, ``aux``) are dropped, so the result is
    always relative.
    """
    segments = (sanitize_filename(slugify(part)) for part in trim_slashes(url).split("/"))
    return "/".join(segment for segment in segments if segment)


def hash_path_name(path: str) -> str:
    """Turns a web path into a 6-char hash which can be used for easy identification."""
    return hashlib.md5(sanitise_url_for_file_path(path).encode("utf-8")).hexdigest()[:6]


def has_protocol(url: str) -> bool:
    return bool(_PROTOCOL_RE.match(url))


def normalise_host(host: str) -> str:
    """Ensures a provided host is consistent, ensuring a protocol is provided."""
    host = host.rstrip("/")
    if not has_protocol(host):
        scheme = "http" if host.startswith("localhost") else "https"
        host = f"{scheme}://{host}"
    return host


def with_slashes(s: str) -> str:
    """Ensures the string both starts and ends with a slash."""
    if not s.startswith("/"):
        s = "/" + s
    if not s.endswith("/"):
        s += "/"
    return s


class FrozenDict(dict):
    """Read-only ``dict``: every in-place change raises :class:`TypeError`.

    Subclassing ``dict`` keeps it serialisable by pydantic and ``json``.
    """

    __slots__ = ()

    def _readonly(self, *args: Any, **kwargs: Any) -> Any:
        raise TypeError(f"{type(self).__name__} is read-only")

    __setitem__ = __delitem__ = __ior__ = _readonly
    clear = pop = popitem = setdefault = update = _readonly

    def __reduce__(self) -> Any:
        return type(self), (dict(self),)


def freeze(value: Any) -> Any:
    """Recursively turns mappings into :class:`FrozenDict` and lists into tuples."""
    if isinstance(value, Mapping):
        return FrozenDict((key, freeze(item)) for key, item in value.items())
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of :func:`freeze`: fresh plain dicts and lists, other objects as is."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    return value


def deep_merge(
    obj: Mapping[str, Any],
    defaults: Mapping[str, Any],
    replace_keys: Collection[str] = (),
) -> dict[str, Any]:
    """Recursively merges ``obj`` over ``defaults`` and returns a new dict.

    Values from ``obj`` win at every leaf, ``None`` values are skipped and
    sequences are concatenated (``obj`` items first). Keys listed in
    ``replace_keys`` are taken from ``obj`` wholesale when it has a truthy
    value for them. Neither argument is mutated, the result holds only plain
    dicts and lists.
    """
    merged: dict[str, Any] = thaw(defaults)
    for key, value in obj.items():
        if value is None:
            continue
        if key in replace_keys and value:
            merged[key] = thaw(value)
            continue
        current = merged.get(key)
        if isinstance(value, (list, tuple)) and isinstance(current, list):
            merged[key] = thaw(value) + current
        elif isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = deep_merge(value, current, replace_keys)
        else:
            merged[key] = thaw(value)
    return merged


def format_bytes(num_bytes: int, decimals: int = 2) -> str:
    """Human readable size, e.g. ``format_bytes(1536) == "1.5 KB"``."""
    if num_bytes == 0:
        return "0 Bytes"
    k = 1024
    dm = max(decimals, 0)
    sizes = ["Bytes", "KB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB"]
    i = int(math.floor(math.log(num_bytes) / math.log(k)))
    value = round(num_bytes / k**i, dm)
    return f"{value:g} {sizes[i]}"
