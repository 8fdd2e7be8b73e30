"""Metadata record serialization.

Output matches PHP's json_encode(..., JSON_PRETTY_PRINT) so existing
consumers of the JSON tree read new records unchanged:
4-space indent, non-ASCII as \\uXXXX, "/" escaped as "\\/".
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
import json
from typing import Any, Dict

from urlvault.ingestion.submission import Submission


@dataclass(frozen=True)
class MetadataRecord:
    url: str
    user: str
    title: str
    description: str
    category: str
    btc: str
    pix: str
    date: str
    hash: str

    @classmethod
    def from_submission(cls, submission: Submission, *, date: str, key: str) -> "MetadataRecord":
        return cls(
            url=submission.url,
            user=submission.user,
            title=submission.title,
            description=submission.description,
            category=submission.category,
            btc=submission.btc,
            pix=submission.pix,
            date=date,
            hash=key,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def encode_pretty_json(payload: Dict[str, Any]) -> str:
    # "/" only occurs inside string values here, so a blanket replace is safe.
    text = json.dumps(payload, indent=4, ensure_ascii=True)
    return text.replace("/", "\\/")


def encode_record(record: MetadataRecord) -> bytes:
    return encode_pretty_json(record.to_dict()).encode("utf-8")
