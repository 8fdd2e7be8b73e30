"""Title search over the metadata JSON tree."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
import logging
from typing import Iterator, List, Mapping, Optional

from urlvault.errors import StoreError
from urlvault.storage.layout import METADATA_ROOT
from urlvault.storage.store import ContentStore, StoredFile


logger = logging.getLogger(__name__)


class SearchState(str, Enum):
    PROMPT = "prompt"
    NO_RESULTS = "no_results"
    RESULTS = "results"


@dataclass(frozen=True)
class SearchMatch:
    path: str
    relative_path: str
    store_path: str
    title: str

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "path": self.store_path,
            "relative_path": self.relative_path,
        }


@dataclass(frozen=True)
class SearchOutcome:
    state: SearchState
    term: str
    matches: List[SearchMatch]


def iter_metadata_files(store: ContentStore, root: str = METADATA_ROOT) -> Iterator[StoredFile]:
    """Lazily yield every *.json file under root (extension case-insensitive)."""
    for item in store.walk_files(root):
        if item.extension.lower() == "json":
            yield item


def _load_record(store: ContentStore, item: StoredFile) -> Optional[dict]:
    try:
        payload = json.loads(store.read(item.path).decode("utf-8"))
    except (StoreError, UnicodeDecodeError, ValueError) as e:
        logger.debug(f"Skipping unreadable metadata file {item.path}: {e}")
        return None
    if not isinstance(payload, dict):
        return None
    return payload


def title_matches(title: object, term: str) -> bool:
    if not isinstance(title, str):
        return False
    return term.lower() in title.lower()


def iter_matches(store: ContentStore, term: str, root: str = METADATA_ROOT) -> Iterator[SearchMatch]:
    """Yield records whose title contains term, in traversal order.

    Raises StoreError if the tree cannot be listed. A missing root yields nothing.
    """
    if not store.is_dir(root):
        return
    prefix = root.rstrip("/") + "/"
    for item in iter_metadata_files(store, root):
        record = _load_record(store, item)
        if record is None:
            continue
        title = record.get("title")
        if title_matches(title, term):
            yield SearchMatch(
                path=item.absolute_path,
                relative_path=item.path[len(prefix):] if item.path.startswith(prefix) else item.path,
                store_path=item.path,
                title=title,
            )


def search_metadata(store: ContentStore, term: str, root: str = METADATA_ROOT) -> List[SearchMatch]:
    return list(iter_matches(store, term, root))


def run_search(store: ContentStore, params: Mapping[str, str]) -> SearchOutcome:
    """Resolve the page state for a set of query parameters.

    No parameters and an empty term both prompt for a term; only a non-empty
    term is searched.
    """
    term = params.get("search", "") or ""
    if not term:
        return SearchOutcome(state=SearchState.PROMPT, term="", matches=[])
    matches = search_metadata(store, term)
    state = SearchState.RESULTS if matches else SearchState.NO_RESULTS
    return SearchOutcome(state=state, term=term, matches=matches)
