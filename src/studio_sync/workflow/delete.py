"""Delete a document after stripping every reference other documents hold to it."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from studio_sync.database.filters import DocumentFilter
from studio_sync.documents import (
    Document,
    document_label,
    draft_id,
    published_id,
)
from studio_sync.exceptions import DeleteFailedError, DocumentNotFoundError
from studio_sync.sync.patches import PatchReport
from studio_sync.workflow.prompts import delete_prompt
from studio_sync.workflow.state import DeleteState

if TYPE_CHECKING:
    from studio_sync.database.store import DocumentStore
    from studio_sync.registry import DeleteConfig, ReferrerConfig
    from studio_sync.sync.patches import PatchApplier
    from studio_sync.workflow.confirmation import ConfirmationBoundary, ConfirmationPrompt

logger = logging.getLogger(__name__)


@dataclass
class AffectedReferrers:
    """Documents of one referrer type that point at the document being deleted."""

    referrer: ReferrerConfig
    document_ids: list[str] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def count(self) -> int:
        return len(self.document_ids)


@dataclass
class DeleteReport:
    document_id: str
    affected: list[AffectedReferrers] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(entry.count for entry in self.affected)


@dataclass
class DeleteOutcome:
    document_id: str
    cleanup: PatchReport = field(default_factory=PatchReport)
    deleted: list[str] = field(default_factory=list)
    cancelled: bool = False


DeleteCallback = Callable[[DeleteOutcome], None]


class CascadingDeleteGuard:
    """Report referrers of a document, then strip them and delete both revisions."""

    def __init__(self, store: DocumentStore, patches: PatchApplier) -> None:
        self._store = store
        self._patches = patches
        self._completed = False
        self.state = DeleteState.IDLE
        self.pending_prompt: ConfirmationPrompt | None = None

    async def _referring(self, document_id: str, referrer: ReferrerConfig) -> list[Document]:
        return await self._store.query(
            DocumentFilter(
                document_type=referrer.referring_type,
                field=referrer.field_path,
                references=document_id,
            )
        )

    async def _affected(self, document_id: str, referrer: ReferrerConfig) -> AffectedReferrers:
        entry = AffectedReferrers(referrer=referrer)
        try:
            revisions = await self._referring(document_id, referrer)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Failed to scan %s.%s for references to %s",
                referrer.referring_type,
                referrer.field_path,
                document_id,
                exc_info=True,
            )
            entry.error = str(exc)
            return entry

        # Draft and published revisions of one referrer count once; the draft
        # wins for the label since it is what the editor sees.
        by_id: dict[str, Document] = {}
        for revision in sorted(revisions, key=lambda rev: rev["id"] != draft_id(rev["id"])):
            by_id.setdefault(published_id(revision["id"]), revision)
        entry.document_ids = list(by_id)
        entry.labels = [document_label(rev) for rev in by_id.values()]
        return entry

    async def prepare_delete(self, document_id: str, config: DeleteConfig) -> DeleteReport:
        """Count the documents of each referrer type that reference ``document_id``."""
        canonical = published_id(document_id)
        self.state = DeleteState.CHECKING_REFERENCES
        affected = await asyncio.gather(
            *(self._affected(canonical, referrer) for referrer in config.references)
        )
        report = DeleteReport(document_id=canonical, affected=list(affected))
        logger.info("Delete check — document=%s referrers=%d", canonical, report.total)
        return report

    async def confirm_delete(self, document_id: str, config: DeleteConfig) -> DeleteOutcome:
        """Strip references to the document from every referrer, then delete it.

        Referrer cleanup is best-effort. Deleting a revision that does not
        exist counts as success; any other delete failure raises
        DeleteFailedError once both revisions have been attempted.
        """
        canonical = published_id(document_id)
        self.state = DeleteState.DELETING
        outcome = DeleteOutcome(document_id=canonical)

        for referrer in config.references:
            try:
                revisions = await self._referring(canonical, referrer)
            except Exception:  # noqa: BLE001
                logger.warning(
                    "Failed to re-fetch %s referrers of %s — skipping cleanup",
                    referrer.referring_type,
                    canonical,
                    exc_info=True,
                )
                continue
            outcome.cleanup.extend(
                await self._patches.strip_reference(revisions, referrer.field_path, canonical)
            )

        failed: list[str] = []
        for revision_id in (draft_id(canonical), canonical):
            try:
                await self._store.delete(revision_id)
            except DocumentNotFoundError:
                logger.debug("Revision %s already absent", revision_id)
            except Exception:  # noqa: BLE001
                logger.error("Failed to delete %s", revision_id, exc_info=True)
                failed.append(revision_id)
            else:
                outcome.deleted.append(revision_id)

        if failed:
            raise DeleteFailedError(canonical, failed)
        logger.info(
            "Document deleted — document=%s references_removed=%d cleanup_failures=%d",
            canonical,
            len(outcome.cleanup.patched),
            len(outcome.cleanup.failures),
        )
        return outcome

    async def run(
        self,
        document_id: str,
        config: DeleteConfig,
        confirmation: ConfirmationBoundary,
        on_complete: DeleteCallback | None = None,
    ) -> DeleteOutcome:
        """Prepare, ask the editor, and delete on accept."""
        if self.state is not DeleteState.IDLE:
            msg = f"Delete already ran (state={self.state})"
            raise RuntimeError(msg)

        canonical = published_id(document_id)
        outcome = DeleteOutcome(document_id=canonical)
        try:
            report = await self.prepare_delete(canonical, config)
            self.state = DeleteState.AWAITING_DELETE_DECISION
            self.pending_prompt = delete_prompt(config, report.affected)
            accepted = await confirmation.present(self.pending_prompt)
            self.pending_prompt = None
            if accepted:
                outcome = await self.confirm_delete(canonical, config)
            else:
                outcome.cancelled = True
                logger.info("Delete cancelled — document=%s", canonical)
        finally:
            self._finish(outcome, on_complete)
        return outcome

    def _finish(self, outcome: DeleteOutcome, on_complete: DeleteCallback | None) -> None:
        self.state = DeleteState.DONE
        self.pending_prompt = None
        if self._completed:
            return
        self._completed = True
        if on_complete is not None:
            on_complete(outcome)
