"""Direct uploads: a file or pasted text stored under the hash of its bytes.

Uploads land in the same tree as downloaded URLs:

    categories/{ext|other}/{YYYYMMDD}/{sha256(content)}[.{ext}]
    categories_json/{ext|other}/{category}/{YYYYMMDD}/{sha256(content)}.json

No url/ record is written since there is no URL to look up. A category is
required, so every upload gets a metadata record and shows up in search.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date
import logging
from typing import Any, List, Mapping, Optional

from markupsafe import Markup
from werkzeug.utils import secure_filename

from urlvault.errors import UploadRejected
from urlvault.ingestion.ingest import IngestResult, build_message, record_write
from urlvault.ingestion.submission import Submission, sanitize_input
from urlvault.ingestion.url_utils import content_hash, extension_from_filename
from urlvault.storage import layout
from urlvault.storage.records import MetadataRecord, encode_record
from urlvault.storage.store import ContentStore, WriteResult


logger = logging.getLogger(__name__)

FILE_FIELD = "uploaded_file"
TEXT_FIELD = "text_content"
TEXT_EXTENSION = "txt"
FORBIDDEN_EXTENSIONS = frozenset({"php"})


@dataclass(frozen=True)
class Upload:
    content: bytes
    filename: str
    extension: Optional[str]
    details: Submission

    @classmethod
    def from_form(cls, form: Mapping[str, Any], files: Mapping[str, Any]) -> "Upload":
        """Validate an upload form.

        A file in `uploaded_file` wins over `text_content`. Raises
        UploadRejected with a message fit to show the user.
        """
        details = Submission(**{f.name: sanitize_input(form.get(f.name)) for f in fields(Submission)})
        if not details.category:
            raise UploadRejected("Please select a file or enter text content and provide a category.")

        text = form.get(TEXT_FIELD) or ""
        uploaded = files.get(FILE_FIELD)
        if uploaded is not None and uploaded.filename:
            content = uploaded.read()
            filename = secure_filename(uploaded.filename)
            extension = extension_from_filename(filename)
        elif text:
            content = text.encode("utf-8")
            filename = ""
            extension = TEXT_EXTENSION
        else:
            raise UploadRejected("Please select a file or enter text content.")

        if not content:
            raise UploadRejected("No content to process.")
        if extension in FORBIDDEN_EXTENSIONS:
            raise UploadRejected("PHP files are not allowed.")
        if text and details.category == sanitize_input(text):
            raise UploadRejected("Category can't be the same as the text content.")
        return cls(content=content, filename=filename, extension=extension, details=details)


def ingest_upload(
    upload: Upload,
    store: ContentStore,
    *,
    today: Optional[date] = None,
) -> IngestResult:
    """Persist uploaded bytes and their metadata record.

    Unlike URL ingest, a failed content write is reported to the caller:
    there is nothing to show without the uploaded bytes.
    """
    stamp = layout.date_stamp(today or date.today())
    key = content_hash(upload.content)
    ext = upload.extension
    writes: List[WriteResult] = []

    record_write(writes, store.ensure_dir(layout.content_dir(ext, stamp)))
    content_path = layout.content_path(key, ext, stamp)
    if not record_write(writes, store.put(content_path, upload.content)).ok:
        return IngestResult(
            success=False,
            message=Markup("Error saving content."),
            key=key,
            content_path=content_path,
            extension=ext,
            writes=writes,
        )

    category = upload.details.category
    record = MetadataRecord.from_submission(upload.details, date=stamp, key=key)
    record_write(writes, store.ensure_dir(layout.metadata_dir(ext, category, stamp)))
    metadata_path = layout.metadata_path(key, ext, category, stamp)
    record_write(writes, store.put(metadata_path, encode_record(record)))

    logger.info(f"Stored upload {upload.filename or 'text'} as {key} ({len(upload.content)} bytes)")
    return IngestResult(
        success=True,
        message=build_message(content_path, metadata_path, label="Content saved successfully!"),
        key=key,
        content_path=content_path,
        metadata_path=metadata_path,
        extension=ext,
        writes=writes,
    )
