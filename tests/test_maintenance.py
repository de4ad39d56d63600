"""Tests for store-wide audits, repairs and backfills."""

import pytest

from studio_sync.maintenance import (
    AuditFinding,
    audit_relationships,
    backfill_derived_fields,
    repair_corrupted_references,
    summarize_findings,
)
from studio_sync.registry import ARTIST_EVENTS


class TestAuditRelationships:
    """Test the Audit Relationships."""

    async def test_reports_published_sources_only(self, make_store, docs) -> None:
        """Verify drafts are skipped and published drift is reported."""
        store = make_store(
            docs.artist("A1", "E1"),
            docs.artist("drafts.A2", "E1"),
            docs.event("E1"),
        )

        findings = await audit_relationships(store, [ARTIST_EVENTS])

        assert findings == [AuditFinding(pair=ARTIST_EVENTS, source_id="A1", missing=("E1",))]

    async def test_consistent_store_has_no_findings(self, make_store, docs) -> None:
        """Verify a store satisfying both directions is clean."""
        store = make_store(docs.artist("A1", "E1"), docs.event("E1", "A1"))

        assert await audit_relationships(store) == []

    async def test_audit_is_read_only(self, make_store, docs) -> None:
        """Verify auditing never patches."""
        store = make_store(docs.artist("A1", "E1"), docs.event("E1"), docs.event("E2", "A1"))

        await audit_relationships(store)

        assert store.commits == []

    @pytest.mark.unit
    def test_summarize_findings(self) -> None:
        """Verify one line per direction of drift."""
        finding = AuditFinding(
            pair=ARTIST_EVENTS, source_id="A1", missing=("E1",), orphaned=("E2", "E3")
        )

        assert summarize_findings([finding]) == [
            "artist.events A1: missing in event.artist -> E1",
            "artist.events A1: orphaned in event.artist -> E2, E3",
        ]


class TestRepairCorruptedReferences:
    """Test the Repair Corrupted References."""

    async def test_rewrites_plain_ids(self, make_store, docs, sequential_keys) -> None:
        """Verify plain strings become keyed references and good elements survive."""
        corrupted = docs.event("E1")
        corrupted["artist"] = ["drafts.A1", {"kind": "reference", "ref": "A2", "key": "x"}]
        store = make_store(corrupted, docs.event("E2", "A3"))

        report = await repair_corrupted_references(
            store, [("event", "artist")], key_factory=sequential_keys
        )

        assert report.repaired == ["E1"]
        assert report.scanned == 2
        assert store.documents["E1"]["artist"] == [
            {"kind": "reference", "ref": "A1", "key": "key-1"},
            {"kind": "reference", "ref": "A2", "key": "x"},
        ]
        assert [document_id for document_id, _ in store.commits] == ["E1"]

    async def test_dry_run_does_not_patch(self, make_store, docs) -> None:
        """Verify a dry run reports without writing."""
        corrupted = docs.artist("A1")
        corrupted["events"] = ["E1"]
        store = make_store(corrupted)

        report = await repair_corrupted_references(store, [("artist", "events")], dry_run=True)

        assert report.repaired == ["A1"]
        assert store.commits == []
        assert store.documents["A1"]["events"] == ["E1"]

    async def test_patch_failure_recorded(self, make_store, docs) -> None:
        """Verify a failed patch is reported and the scan continues."""
        broken = docs.artist("A1")
        broken["events"] = ["E1"]
        also_broken = docs.artist("A2")
        also_broken["events"] = ["E2"]
        store = make_store(broken, also_broken)
        store.fail_patch.add("A1")

        report = await repair_corrupted_references(store, [("artist", "events")])

        assert [failure.document_id for failure in report.failures] == ["A1"]
        assert report.repaired == ["A2"]


class TestBackfillDerivedFields:
    """Test the Backfill Derived Fields."""

    async def test_backfills_event_dates(self, make_store, docs) -> None:
        """Verify events with a date reference get the sort key copied."""
        store = make_store(
            {"id": "D1", "type": "eventDate", "date": "2025-06-01"},
            docs.event("E1", eventDate=docs.ref("D1")),
            docs.event("E2", eventDate=docs.ref("D1"), eventDateValue="2025-06-01"),
            docs.event("E3"),
        )

        reports = await backfill_derived_fields(store)

        assert list(reports) == ["event"]
        assert reports["event"].updated == 1
        assert reports["event"].unchanged == 1
        assert reports["event"].skipped == 1
        assert store.documents["E1"]["eventDateValue"] == "2025-06-01"
