"""Ingest a submitted URL into the content store.

Write and download failures are recorded on the result and logged, but the
result still reports success: callers always get the content link back,
even if the file behind it could not be written.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import logging
from typing import Callable, List, Optional

from markupsafe import Markup

from urlvault.extraction.download import DownloadResult, fetch_content
from urlvault.ingestion.submission import Submission
from urlvault.ingestion.url_utils import content_key, extension_from_url
from urlvault.storage import layout
from urlvault.storage.records import MetadataRecord, encode_record
from urlvault.storage.store import ContentStore, WriteResult


logger = logging.getLogger(__name__)

Fetcher = Callable[[str], DownloadResult]


@dataclass
class IngestResult:
    success: bool
    message: Markup
    key: str
    content_path: str
    metadata_path: Optional[str] = None
    extension: Optional[str] = None
    download: Optional[DownloadResult] = None
    writes: List[WriteResult] = field(default_factory=list)

    @property
    def failed_writes(self) -> List[WriteResult]:
        return [w for w in self.writes if not w.ok]


def record_write(writes: List[WriteResult], result: WriteResult) -> WriteResult:
    writes.append(result)
    if not result.ok:
        logger.warning(f"Store write failed for {result.path}: {result.error}")
    return result


def build_message(
    content_path: str,
    metadata_path: Optional[str],
    label: str = "URL saved successfully!",
) -> Markup:
    message = Markup('<a href="{}" target="_blank">{}</a>').format(content_path, label)
    if metadata_path:
        message += Markup(' <a href="{}" target="_blank">[view JSON]</a>').format(metadata_path)
    return message


def ingest_submission(
    submission: Submission,
    store: ContentStore,
    *,
    fetch: Fetcher = fetch_content,
    today: Optional[date] = None,
) -> IngestResult:
    """Download submission.url and persist URL text, content and metadata."""
    stamp = layout.date_stamp(today or date.today())
    key = content_key(submission.url)
    writes: List[WriteResult] = []

    record_write(writes, store.ensure_dir(layout.URL_ROOT))
    record_write(writes, store.put(layout.url_path(key), submission.url.encode("utf-8")))

    download = fetch(submission.url)
    if not download.ok:
        logger.warning(f"Storing empty content for {submission.url}: {download.error}")

    ext = extension_from_url(submission.url)
    record_write(writes, store.ensure_dir(layout.content_dir(ext, stamp)))
    content_path = layout.content_path(key, ext, stamp)
    record_write(writes, store.put(content_path, download.content))

    metadata_path = None
    if submission.has_metadata():
        record = MetadataRecord.from_submission(submission, date=stamp, key=key)
        record_write(writes, store.ensure_dir(layout.metadata_dir(ext, submission.category, stamp)))
        metadata_path = layout.metadata_path(key, ext, submission.category, stamp)
        record_write(writes, store.put(metadata_path, encode_record(record)))

    logger.info(f"Ingested {submission.url} as {key} ({len(download.content)} bytes)")
    return IngestResult(
        success=True,
        message=build_message(content_path, metadata_path),
        key=key,
        content_path=content_path,
        metadata_path=metadata_path,
        extension=ext,
        download=download,
        writes=writes,
    )
