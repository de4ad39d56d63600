"""Document ids, revisions and reference-array helpers."""

from __future__ import annotations

import asyncio
import logging
import secrets
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from pydantic import BaseModel

if TYPE_CHECKING:
    from studio_sync.database.store import DocumentStore


DRAFTS_PREFIX = "drafts."
_KEY_BYTES = 16

logger = logging.getLogger(__name__)

Document = dict[str, Any]


class Reference(BaseModel):
    """One element of a reference-array field."""

    kind: Literal["reference"] = "reference"
    ref: str
    key: str


def published_id(document_id: str) -> str:
    """Strip the draft marker from a document id."""
    return document_id.removeprefix(DRAFTS_PREFIX)


def draft_id(document_id: str) -> str:
    """Return the draft revision id for any revision id."""
    return f"{DRAFTS_PREFIX}{published_id(document_id)}"


def is_draft(document_id: str) -> bool:
    return document_id.startswith(DRAFTS_PREFIX)


def new_array_key() -> str:
    """Generate a 128-bit random key for a new array element."""
    return secrets.token_hex(_KEY_BYTES)


def unique_array_key(
    existing: Iterable[Any],
    key_factory: Callable[[], str] = new_array_key,
) -> str:
    """Generate a key that is not already used by an element of ``existing``."""
    taken = {item.get("key") for item in existing if isinstance(item, dict)}
    key = key_factory()
    while key in taken:
        key = key_factory()
    return key


def reference_target(item: Any) -> str | None:
    """Return the published id an array element points at.

    Legacy arrays may hold plain id strings instead of reference objects;
    those are read as references to the string value.
    """
    if isinstance(item, str):
        return published_id(item)
    if isinstance(item, dict):
        ref = item.get("ref")
        if isinstance(ref, str):
            return published_id(ref)
    return None


def reference_ids(items: Any) -> list[str]:
    """Resolve a reference array to target ids in insertion order, de-duplicated."""
    if not isinstance(items, list):
        return []
    seen: set[str] = set()
    ids: list[str] = []
    for item in items:
        target = reference_target(item)
        if target and target not in seen:
            seen.add(target)
            ids.append(target)
    return ids


def has_reference(items: Any, target_id: str) -> bool:
    """Check whether a reference array already points at ``target_id``."""
    return published_id(target_id) in reference_ids(items)


def without_reference(items: Any, target_id: str) -> list[Any]:
    """Return the array with every element pointing at ``target_id`` removed."""
    if not isinstance(items, list):
        return []
    target = published_id(target_id)
    return [item for item in items if reference_target(item) != target]


def make_reference(
    target_id: str,
    existing: Iterable[Any] = (),
    key_factory: Callable[[], str] = new_array_key,
) -> Reference:
    """Build a reference element with a key unique within ``existing``."""
    return Reference(
        ref=published_id(target_id),
        key=unique_array_key(existing, key_factory),
    )


def get_path(document: Document, path: str) -> Any:
    """Read a dotted field path (``"date"``, ``"meta.sort"``) from a document."""
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


@dataclass(frozen=True)
class DocumentRevisions:
    """The draft and published revisions of one logical document."""

    id: str
    draft: Document | None = None
    published: Document | None = None

    @property
    def current(self) -> Document | None:
        """The revision being edited: the draft when one exists."""
        return self.draft if self.draft is not None else self.published

    @property
    def exists(self) -> bool:
        return self.draft is not None or self.published is not None

    @property
    def is_new(self) -> bool:
        """True when the document has never been published."""
        return self.draft is not None and self.published is None

    @property
    def document_type(self) -> str | None:
        current = self.current
        return current.get("type") if current else None

    def all(self) -> list[Document]:
        """Existing revisions, draft first."""
        return [rev for rev in (self.draft, self.published) if rev is not None]


async def load_revisions(store: DocumentStore, document_id: str) -> DocumentRevisions:
    """Fetch both revisions of a document by any of its ids."""
    canonical = published_id(document_id)
    draft = await store.get(draft_id(canonical))
    published = await store.get(canonical)
    return DocumentRevisions(id=canonical, draft=draft, published=published)


_LABEL_FIELDS = ("title_no", "title_en", "title", "name_no", "name_en", "name")


def document_label(document: Document | None, fallback: str = "Untitled") -> str:
    """Pick a display label, preferring the Norwegian then English field."""
    if not document:
        return fallback
    for name in _LABEL_FIELDS:
        value = document.get(name)
        if isinstance(value, str) and value.strip():
            return value
    return fallback


async def load_labels(
    store: DocumentStore, document_ids: Iterable[str], fallback: str = "Untitled"
) -> list[str]:
    """Resolve display labels for several documents concurrently.

    A failed fetch falls back to ``fallback`` rather than failing the batch.
    """
    ids = list(document_ids)
    results = await asyncio.gather(
        *(load_revisions(store, document_id) for document_id in ids),
        return_exceptions=True,
    )
    labels: list[str] = []
    for document_id, result in zip(ids, results, strict=True):
        if isinstance(result, BaseException):
            logger.warning("Failed to load label for %s", document_id, exc_info=result)
            labels.append(fallback)
        else:
            labels.append(document_label(result.current, fallback))
    return labels
