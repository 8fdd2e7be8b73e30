"""Raw content download.

Policy:
- Follow redirects, send a desktop browser user agent.
- Keep whatever body the server returns; the status code is recorded, not checked.
- Transport failures and URLs urllib3 cannot parse produce empty content
  instead of an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

import requests


logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/58.0.3029.110 Safari/537.36"
)


@dataclass(frozen=True)
class DownloadResult:
    content: bytes
    status: str
    status_code: Optional[int] = None
    final_url: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == "ok"


def fetch_content(
    url: str,
    *,
    user_agent: str = DEFAULT_USER_AGENT,
    timeout: Optional[float] = None,
) -> DownloadResult:
    """GET url and return its body as bytes.

    timeout=None waits indefinitely.
    """
    try:
        resp = requests.get(
            url,
            headers={"User-Agent": user_agent},
            allow_redirects=True,
            timeout=timeout,
        )
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning(f"Download failed for {url}: {e}")
        return DownloadResult(content=b"", status="error", error=str(e))
    if resp.status_code >= 400:
        logger.info(f"Download of {url} returned HTTP {resp.status_code}; storing body anyway")
    return DownloadResult(
        content=resp.content or b"",
        status="ok",
        status_code=resp.status_code,
        final_url=resp.url,
    )
