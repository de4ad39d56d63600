"""Add or remove reciprocal references on batches of target documents."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from studio_sync.documents import (
    Document,
    has_reference,
    load_revisions,
    make_reference,
    new_array_key,
    published_id,
    without_reference,
)

if TYPE_CHECKING:
    from studio_sync.database.store import DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatchFailure:
    document_id: str
    error: str


@dataclass
class PatchReport:
    """Per-revision result of a best-effort batch patch."""

    patched: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failures: list[PatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def extend(self, other: PatchReport) -> None:
        self.patched.extend(other.patched)
        self.skipped.extend(other.skipped)
        self.failures.extend(other.failures)


def _unique(ids: Iterable[str]) -> list[str]:
    seen: dict[str, None] = {}
    for document_id in ids:
        seen.setdefault(published_id(document_id), None)
    return list(seen)


class PatchApplier:
    """Apply additive or subtractive reference patches, one document at a time.

    Every existing revision of a target is patched so neither the public copy
    nor a pending draft keeps the stale state. Failures never abort the batch.
    """

    def __init__(
        self,
        store: DocumentStore,
        key_factory: Callable[[], str] = new_array_key,
    ) -> None:
        self._store = store
        self._key_factory = key_factory

    async def add_reciprocal(
        self, target_ids: Iterable[str], source_id: str, target_field: str
    ) -> PatchReport:
        """Append a reference to ``source_id`` on each target lacking one."""
        source = published_id(source_id)
        reports = await asyncio.gather(
            *(
                self._patch_target(target_id, target_field, source, add=True)
                for target_id in _unique(target_ids)
            )
        )
        report = self._combine(reports)
        logger.info(
            "Reciprocals added — source=%s field=%s patched=%d skipped=%d failed=%d",
            source,
            target_field,
            len(report.patched),
            len(report.skipped),
            len(report.failures),
        )
        return report

    async def remove_reciprocal(
        self, target_ids: Iterable[str], source_id: str, target_field: str
    ) -> PatchReport:
        """Drop every reference to ``source_id`` from each target's field."""
        source = published_id(source_id)
        reports = await asyncio.gather(
            *(
                self._patch_target(target_id, target_field, source, add=False)
                for target_id in _unique(target_ids)
            )
        )
        report = self._combine(reports)
        logger.info(
            "Reciprocals removed — source=%s field=%s patched=%d skipped=%d failed=%d",
            source,
            target_field,
            len(report.patched),
            len(report.skipped),
            len(report.failures),
        )
        return report

    async def append_reference(
        self, revisions: Iterable[Document], field_name: str, reference_id: str
    ) -> PatchReport:
        """Append ``reference_id`` to ``field_name`` on revisions that lack it."""
        report = PatchReport()
        for revision in revisions:
            report.extend(await self._append(revision, field_name, reference_id))
        return report

    async def strip_reference(
        self, revisions: Iterable[Document], field_name: str, reference_id: str
    ) -> PatchReport:
        """Remove ``reference_id`` from ``field_name`` on revisions that hold it."""
        report = PatchReport()
        for revision in revisions:
            report.extend(await self._strip(revision, field_name, reference_id))
        return report

    @staticmethod
    def _combine(reports: Iterable[PatchReport]) -> PatchReport:
        combined = PatchReport()
        for report in reports:
            combined.extend(report)
        return combined

    async def _patch_target(
        self, target_id: str, field_name: str, source: str, *, add: bool
    ) -> PatchReport:
        try:
            revisions = await load_revisions(self._store, target_id)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Failed to load %s for patching", target_id, exc_info=True)
            return PatchReport(failures=[PatchFailure(target_id, str(exc))])

        if not revisions.exists:
            logger.warning("Cannot patch %s — document not found", target_id)
            return PatchReport(failures=[PatchFailure(target_id, "document not found")])

        if add:
            return await self.append_reference(revisions.all(), field_name, source)
        return await self.strip_reference(revisions.all(), field_name, source)

    async def _append(
        self, revision: Document, field_name: str, reference_id: str
    ) -> PatchReport:
        revision_id = revision["id"]
        items = revision.get(field_name)
        if has_reference(items, reference_id):
            return PatchReport(skipped=[revision_id])

        reference = make_reference(
            reference_id,
            items if isinstance(items, list) else (),
            self._key_factory,
        )
        try:
            await (
                self._store.patch(revision_id)
                .set_if_missing({field_name: []})
                .append(field_name, [reference])
                .commit()
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Failed to add reference — document=%s field=%s ref=%s",
                revision_id,
                field_name,
                reference_id,
                exc_info=True,
            )
            return PatchReport(failures=[PatchFailure(revision_id, str(exc))])
        return PatchReport(patched=[revision_id])

    async def _strip(
        self, revision: Document, field_name: str, reference_id: str
    ) -> PatchReport:
        revision_id = revision["id"]
        items = revision.get(field_name)
        if not has_reference(items, reference_id):
            return PatchReport(skipped=[revision_id])

        try:
            await (
                self._store.patch(revision_id)
                .set({field_name: without_reference(items, reference_id)})
                .commit()
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Failed to remove reference — document=%s field=%s ref=%s",
                revision_id,
                field_name,
                reference_id,
                exc_info=True,
            )
            return PatchReport(failures=[PatchFailure(revision_id, str(exc))])
        return PatchReport(patched=[revision_id])
