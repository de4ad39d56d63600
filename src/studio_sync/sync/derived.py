"""Mirror a scalar from a referenced document into a denormalized sort key."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from studio_sync.database.filters import DocumentFilter
from studio_sync.documents import (
    Document,
    get_path,
    load_revisions,
    reference_target,
)

if TYPE_CHECKING:
    from studio_sync.database.store import DocumentStore
    from studio_sync.registry import DerivedField

logger = logging.getLogger(__name__)


@dataclass
class BackfillReport:
    updated: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0


class DerivedFieldSync:
    """Keep a cached sort key in line with the document it is copied from."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def sync(self, document_id: str, derived: DerivedField) -> Any | None:
        """Refresh the derived field on the revision being edited.

        Returns the value written (or already current), None when there was
        nothing to copy. Failures are logged and treated as a no-op so a
        publish can proceed with a possibly stale value.
        """
        try:
            revision = (await load_revisions(self._store, document_id)).current
            if revision is None:
                return None
            return await self._sync_revision(revision, derived)
        except Exception:  # noqa: BLE001
            logger.warning(
                "Failed to sync %s on %s — continuing with the stored value",
                derived.target_field,
                document_id,
                exc_info=True,
            )
            return None

    async def _resolve_value(self, revision: Document, derived: DerivedField) -> Any | None:
        target = reference_target(revision.get(derived.reference_field))
        if target is None:
            return None
        revisions = await load_revisions(self._store, target)
        referenced = revisions.published or revisions.draft
        if referenced is None:
            logger.debug("Referenced document %s not found", target)
            return None
        return get_path(referenced, derived.source_value_path)

    async def _sync_revision(self, revision: Document, derived: DerivedField) -> Any | None:
        value = await self._resolve_value(revision, derived)
        if value is None:
            return None
        if revision.get(derived.target_field) != value:
            await self._store.patch(revision["id"]).set({derived.target_field: value}).commit()
            logger.info(
                "Derived field synced — document=%s %s=%s",
                revision["id"],
                derived.target_field,
                value,
            )
        return value

    async def backfill(self, document_type: str, derived: DerivedField) -> BackfillReport:
        """Recompute the derived field on every revision of a document type."""
        report = BackfillReport()
        for revision in await self._store.query(DocumentFilter(document_type)):
            if reference_target(revision.get(derived.reference_field)) is None:
                report.skipped += 1
                continue
            before = revision.get(derived.target_field)
            try:
                value = await self._sync_revision(revision, derived)
            except Exception:  # noqa: BLE001
                logger.warning("Backfill failed for %s", revision["id"], exc_info=True)
                report.failed += 1
                continue
            if value is None:
                report.skipped += 1
            elif value == before:
                report.unchanged += 1
            else:
                report.updated += 1
        logger.info(
            "Derived field backfill — type=%s field=%s updated=%d unchanged=%d "
            "skipped=%d failed=%d",
            document_type,
            derived.target_field,
            report.updated,
            report.unchanged,
            report.skipped,
            report.failed,
        )
        return report
