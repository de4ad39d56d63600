"""Batch maintenance over the whole store: audits, repairs and backfills.

These run from the CLI against a live container. They reuse the same diff,
patch and derived-field primitives as the editor workflows.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from studio_sync.database.filters import DocumentFilter
from studio_sync.documents import (
    Reference,
    is_draft,
    new_array_key,
    published_id,
    reference_target,
    unique_array_key,
)
from studio_sync.registry import ENTITIES, reference_fields, relationship_pairs
from studio_sync.sync.derived import BackfillReport, DerivedFieldSync
from studio_sync.sync.diff import ReferenceDiffEngine
from studio_sync.sync.patches import PatchFailure

if TYPE_CHECKING:
    from studio_sync.database.store import DocumentStore
    from studio_sync.registry import RelationshipPair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditFinding:
    """A published source whose reciprocals are out of step."""

    pair: RelationshipPair
    source_id: str
    missing: tuple[str, ...] = ()
    orphaned: tuple[str, ...] = ()


async def audit_relationships(
    store: DocumentStore,
    pairs: Iterable[RelationshipPair] | None = None,
) -> list[AuditFinding]:
    """Run both diffs for every published source of every pair; read-only."""
    diff = ReferenceDiffEngine(store)
    findings: list[AuditFinding] = []
    for pair in relationship_pairs() if pairs is None else pairs:
        sources = await store.query(DocumentFilter(pair.source_type))
        for source in sources:
            if is_draft(source["id"]):
                continue
            missing = await diff.find_missing_reciprocal(source["id"], pair)
            orphaned = await diff.find_orphaned_reciprocal(source["id"], pair)
            if missing or orphaned:
                findings.append(
                    AuditFinding(
                        pair=pair,
                        source_id=source["id"],
                        missing=tuple(missing),
                        orphaned=tuple(orphaned),
                    )
                )
    logger.info("Relationship audit complete — findings=%d", len(findings))
    return findings


@dataclass
class RepairReport:
    repaired: list[str] = field(default_factory=list)
    failures: list[PatchFailure] = field(default_factory=list)
    scanned: int = 0


def _normalise(
    items: list[Any], key_factory: Callable[[], str]
) -> list[dict[str, Any]] | None:
    """Rewrite plain-string and keyless elements; None when already clean."""
    if all(isinstance(item, dict) and item.get("key") for item in items):
        return None
    fixed: list[dict[str, Any]] = []
    for item in items:
        target = reference_target(item)
        if target is None:
            logger.warning("Dropping unreadable reference element %r", item)
            continue
        if isinstance(item, dict) and item.get("key"):
            fixed.append({**item, "ref": target})
            continue
        reference = Reference(ref=target, key=unique_array_key([*items, *fixed], key_factory))
        fixed.append(reference.model_dump(mode="json"))
    return fixed


async def repair_corrupted_references(
    store: DocumentStore,
    fields: Iterable[tuple[str, str]] | None = None,
    *,
    dry_run: bool = False,
    key_factory: Callable[[], str] = new_array_key,
) -> RepairReport:
    """Turn legacy plain-id arrays back into proper reference elements."""
    report = RepairReport()
    for document_type, field_name in reference_fields() if fields is None else fields:
        for document in await store.query(DocumentFilter(document_type)):
            report.scanned += 1
            items = document.get(field_name)
            if not isinstance(items, list) or not items:
                continue
            fixed = _normalise(items, key_factory)
            if fixed is None:
                continue
            logger.info(
                "Corrupted references — document=%s field=%s elements=%d%s",
                document["id"],
                field_name,
                len(items),
                " (dry run)" if dry_run else "",
            )
            if dry_run:
                report.repaired.append(document["id"])
                continue
            try:
                await store.patch(document["id"]).set({field_name: fixed}).commit()
            except Exception as exc:  # noqa: BLE001
                logger.warning("Failed to repair %s", document["id"], exc_info=True)
                report.failures.append(PatchFailure(document["id"], str(exc)))
            else:
                report.repaired.append(document["id"])
    logger.info(
        "Reference repair complete — scanned=%d repaired=%d failed=%d",
        report.scanned,
        len(report.repaired),
        len(report.failures),
    )
    return report


async def backfill_derived_fields(store: DocumentStore) -> dict[str, BackfillReport]:
    """Recompute every configured derived field across its document type."""
    sync = DerivedFieldSync(store)
    reports: dict[str, BackfillReport] = {}
    for document_type, config in ENTITIES.items():
        if config.derived_field is None:
            continue
        reports[document_type] = await sync.backfill(document_type, config.derived_field)
    return reports


def summarize_findings(findings: Iterable[AuditFinding]) -> list[str]:
    """One human-readable line per finding, for the CLI."""
    lines: list[str] = []
    for finding in findings:
        pair = finding.pair
        where = f"{pair.source_type}.{pair.source_field} {published_id(finding.source_id)}"
        if finding.missing:
            lines.append(
                f"{where}: missing in {pair.target_type}.{pair.target_field} "
                f"-> {', '.join(finding.missing)}"
            )
        if finding.orphaned:
            lines.append(
                f"{where}: orphaned in {pair.target_type}.{pair.target_field} "
                f"-> {', '.join(finding.orphaned)}"
            )
    return lines
