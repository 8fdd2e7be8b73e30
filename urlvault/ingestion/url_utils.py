"""URL helpers for content addressing and extension routing."""

from __future__ import annotations

import hashlib
import posixpath
import re
from typing import Optional
from urllib.parse import urlparse


OTHER_BUCKET = "other"

_HEX_KEY_RE = re.compile(r"^[a-fA-F0-9]{64}$")


def content_key(url: str) -> str:
    """SHA-256 hex digest of the (already sanitized) URL string."""
    return hashlib.sha256(url.encode("utf-8")).hexdigest()


def content_hash(data: bytes) -> str:
    """SHA-256 hex digest of raw uploaded bytes."""
    return hashlib.sha256(data).hexdigest()


def is_content_key(value: str) -> bool:
    return bool(_HEX_KEY_RE.match(value or ""))


def resolve_key(value: str) -> str:
    """Use value directly when it already looks like a key, otherwise hash it."""
    if is_content_key(value):
        return value.lower()
    return content_key(value)


def extension_from_url(url: str) -> Optional[str]:
    """Lower-cased extension of the URL path's last segment, or None.

    - Query string and fragment are ignored
    - Trailing slashes are dropped before taking the last segment
    - A segment ending in "." has no extension
    """
    try:
        path = urlparse(url or "").path
    except ValueError:
        return None
    if not path:
        return None
    return extension_from_filename(posixpath.basename(path.rstrip("/")))


def extension_from_filename(name: str) -> Optional[str]:
    if "." not in (name or ""):
        return None
    ext = name.rsplit(".", 1)[1]
    return ext.lower() or None


def bucket_for_extension(ext: Optional[str]) -> str:
    return ext if ext else OTHER_BUCKET
