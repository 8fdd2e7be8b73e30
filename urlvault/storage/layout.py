"""Storage layout: deterministic paths under the storage root.

    url/{key}.txt
    categories/{ext|other}/{YYYYMMDD}/{key}[.{ext}]
    categories_json/{ext|other}/{category}/{YYYYMMDD}/{key}.json

Paths are "/"-joined relative strings. An empty category is kept as an
empty segment; the filesystem collapses the resulting "//".
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from urlvault.ingestion.url_utils import bucket_for_extension


URL_ROOT = "url"
CONTENT_ROOT = "categories"
METADATA_ROOT = "categories_json"

STORAGE_ROOTS = (URL_ROOT, CONTENT_ROOT, METADATA_ROOT)


def date_stamp(day: date) -> str:
    return day.strftime("%Y%m%d")


def url_path(key: str) -> str:
    return f"{URL_ROOT}/{key}.txt"


def content_dir(ext: Optional[str], stamp: str) -> str:
    return f"{CONTENT_ROOT}/{bucket_for_extension(ext)}/{stamp}"


def content_filename(key: str, ext: Optional[str]) -> str:
    return f"{key}.{ext}" if ext else key


def content_path(key: str, ext: Optional[str], stamp: str) -> str:
    return f"{content_dir(ext, stamp)}/{content_filename(key, ext)}"


def metadata_dir(ext: Optional[str], category: str, stamp: str) -> str:
    return f"{METADATA_ROOT}/{bucket_for_extension(ext)}/{category}/{stamp}"


def metadata_path(key: str, ext: Optional[str], category: str, stamp: str) -> str:
    return f"{metadata_dir(ext, category, stamp)}/{key}.json"
