"""Detect forward references whose reciprocal is missing or orphaned."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from studio_sync.database.filters import DocumentFilter
from studio_sync.documents import (
    has_reference,
    load_revisions,
    published_id,
    reference_ids,
)

if TYPE_CHECKING:
    from studio_sync.database.store import DocumentStore
    from studio_sync.registry import RelationshipPair

logger = logging.getLogger(__name__)


class ReferenceDiffEngine:
    """Pure-read diffs between a document's references and their reciprocals.

    Every id returned is a published id; reciprocal fields never hold draft ids.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def find_missing_reciprocal(
        self, source_id: str, pair: RelationshipPair
    ) -> list[str]:
        """Return targets referenced by the source that do not reference it back.

        Reads the draft revision of the source when one exists, so references
        added just before a publish are seen. Order follows the source array.
        """
        source_published = published_id(source_id)
        revisions = await load_revisions(self._store, source_published)
        source = revisions.current
        if source is None:
            logger.debug("Missing-reciprocal check skipped — no source %s", source_id)
            return []

        target_ids = reference_ids(source.get(pair.source_field))
        if not target_ids:
            return []

        lacking = await asyncio.gather(
            *(
                self._lacks_reciprocal(target_id, source_published, pair)
                for target_id in target_ids
            )
        )
        missing = [
            target_id
            for target_id, is_missing in zip(target_ids, lacking, strict=True)
            if is_missing
        ]
        logger.info(
            "Missing reciprocals — source=%s field=%s.%s missing=%d of %d",
            source_published,
            pair.target_type,
            pair.target_field,
            len(missing),
            len(target_ids),
        )
        return missing

    async def _lacks_reciprocal(
        self, target_id: str, source_published: str, pair: RelationshipPair
    ) -> bool:
        try:
            target = (await load_revisions(self._store, target_id)).current
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to fetch reciprocal target %s — excluded from diff",
                target_id,
                exc_info=True,
            )
            return False

        if target is None:
            logger.debug("Referenced %s %s does not exist", pair.target_type, target_id)
            return False
        return not has_reference(target.get(pair.target_field), source_published)

    async def find_orphaned_reciprocal(
        self, source_id: str, pair: RelationshipPair
    ) -> list[str]:
        """Return targets that reference the source although it no longer lists them.

        Runs after publish and compares against the published source revision.
        """
        source_published = published_id(source_id)
        source = await self._store.get(source_published)
        if source is None:
            logger.debug("Orphan check skipped — %s is not published", source_published)
            return []

        still_referenced = set(reference_ids(source.get(pair.source_field)))
        try:
            referencing = await self._store.query(
                DocumentFilter(
                    document_type=pair.target_type,
                    field=pair.target_field,
                    references=source_published,
                )
            )
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to query %s.%s referencing %s — treating as no orphans",
                pair.target_type,
                pair.target_field,
                source_published,
                exc_info=True,
            )
            return []

        orphans: list[str] = []
        for document in referencing:
            target_id = published_id(document["id"])
            if target_id not in still_referenced and target_id not in orphans:
                orphans.append(target_id)

        logger.info(
            "Orphaned reciprocals — source=%s field=%s.%s orphans=%d",
            source_published,
            pair.target_type,
            pair.target_field,
            len(orphans),
        )
        return orphans
