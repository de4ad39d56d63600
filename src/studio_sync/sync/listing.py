"""Insert newly published documents into their singleton listing page."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from studio_sync.database.filters import DocumentFilter
from studio_sync.documents import Document, draft_id, has_reference, published_id

if TYPE_CHECKING:
    from studio_sync.database.store import DocumentStore
    from studio_sync.registry import ListingPage
    from studio_sync.sync.patches import PatchApplier, PatchReport

logger = logging.getLogger(__name__)


async def find_listing(store: DocumentStore, listing: ListingPage) -> list[Document]:
    """Return the revisions of the singleton listing document, draft first.

    When several listing documents exist the first one the store returns wins.
    """
    revisions = await store.query(DocumentFilter(listing.document_type))
    if not revisions:
        return []
    singleton = published_id(revisions[0]["id"])
    return sorted(
        (rev for rev in revisions if published_id(rev["id"]) == singleton),
        key=lambda rev: rev["id"] != draft_id(singleton),
    )


async def listing_contains(
    store: DocumentStore, listing: ListingPage, document_id: str
) -> bool | None:
    """Whether every listing revision references the document; None if no listing."""
    revisions = await find_listing(store, listing)
    if not revisions:
        return None
    return all(has_reference(rev.get(listing.field), document_id) for rev in revisions)


async def insert_into_listing(
    store: DocumentStore,
    patches: PatchApplier,
    listing: ListingPage,
    document_id: str,
) -> PatchReport | None:
    """Append the document to the listing unless it is already there."""
    revisions = await find_listing(store, listing)
    if not revisions:
        logger.error("Could not find listing page %s", listing.document_type)
        return None
    report = await patches.append_reference(revisions, listing.field, document_id)
    logger.info(
        "Listing insertion — listing=%s document=%s patched=%d skipped=%d",
        listing.document_type,
        published_id(document_id),
        len(report.patched),
        len(report.skipped),
    )
    return report
