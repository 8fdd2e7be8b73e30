"""Submission type and input sanitization."""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional


OPTIONAL_FIELDS = ("user", "title", "description", "category", "btc", "pix")

# Same set PHP's trim() strips; str.strip() would also eat unicode spaces.
_TRIM_CHARS = " \t\n\r\0\x0b"

_COMMENT_RE = re.compile(r"<!--.*?(?:-->|$)", re.DOTALL)
# "<" followed by whitespace is literal text; an unterminated tag runs to the end.
_TAG_RE = re.compile(r"<(?![\s<])[^>]*(?:>|$)", re.DOTALL)

_ESCAPES = {
    "&": "&amp;",
    '"': "&quot;",
    "'": "&#039;",
    "<": "&lt;",
    ">": "&gt;",
}


def strip_tags(text: str) -> str:
    text = _COMMENT_RE.sub("", text)
    return _TAG_RE.sub("", text)


def escape_html(text: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in text)


def sanitize_input(value: Any) -> str:
    """Trim, strip markup tags, then HTML-escape.

    This guards values that get echoed back into HTML later; it does not
    validate them.
    """
    if value is None:
        return ""
    return escape_html(strip_tags(str(value).strip(_TRIM_CHARS)))


@dataclass(frozen=True)
class Submission:
    """A sanitized ingest request."""

    url: str
    user: str = ""
    title: str = ""
    description: str = ""
    category: str = ""
    btc: str = ""
    pix: str = ""

    @classmethod
    def from_form(cls, form: Mapping[str, Any]) -> Optional["Submission"]:
        """Build a sanitized submission from form fields.

        Returns None when no `url` field was sent at all.
        """
        if "url" not in form:
            return None
        values = {f.name: sanitize_input(form.get(f.name)) for f in fields(cls)}
        return cls(**values)

    def has_metadata(self) -> bool:
        return any(getattr(self, name) for name in OPTIONAL_FIELDS)
