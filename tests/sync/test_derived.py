"""Tests for DerivedFieldSync."""

from studio_sync.registry import EVENT_DATE_VALUE
from studio_sync.sync.derived import DerivedFieldSync


def _date(date_id: str, value: str) -> dict:
    return {"id": date_id, "type": "eventDate", "date": value}


def _event(event_id: str, date_id: str | None = None, **extra) -> dict:
    document = {"id": event_id, "type": "event", **extra}
    if date_id:
        document["eventDate"] = {"kind": "reference", "ref": date_id, "key": "d"}
    return document


class TestDerivedFieldSync:
    """Test the Derived Field Sync."""

    async def test_copies_date_to_draft(self, make_store) -> None:
        """Verify the sort key is written on the revision being edited."""
        store = make_store(_date("D1", "2025-06-01"), _event("E1"), _event("drafts.E1", "D1"))

        value = await DerivedFieldSync(store).sync("E1", EVENT_DATE_VALUE)

        assert value == "2025-06-01"
        assert store.documents["drafts.E1"]["eventDateValue"] == "2025-06-01"
        assert "eventDateValue" not in store.documents["E1"]

    async def test_no_reference_is_noop(self, make_store) -> None:
        """Verify events without a date are left alone."""
        store = make_store(_event("drafts.E1"))

        assert await DerivedFieldSync(store).sync("E1", EVENT_DATE_VALUE) is None
        assert store.commits == []

    async def test_unchanged_value_is_not_patched(self, make_store) -> None:
        """Verify an up-to-date cache is not rewritten."""
        store = make_store(
            _date("D1", "2025-06-01"), _event("drafts.E1", "D1", eventDateValue="2025-06-01")
        )

        assert await DerivedFieldSync(store).sync("E1", EVENT_DATE_VALUE) == "2025-06-01"
        assert store.commits == []

    async def test_failure_is_swallowed(self, make_store) -> None:
        """Verify a failed fetch never blocks the caller."""
        store = make_store(_event("drafts.E1", "D1"))
        store.fail_get.add("drafts.D1")

        assert await DerivedFieldSync(store).sync("E1", EVENT_DATE_VALUE) is None

    async def test_backfill_reports(self, make_store) -> None:
        """Verify backfill counts updated, unchanged and skipped revisions."""
        store = make_store(
            _date("D1", "2025-06-01"),
            _event("E1", "D1"),
            _event("E2", "D1", eventDateValue="2025-06-01"),
            _event("E3"),
            _event("E4", "missing-date"),
        )

        report = await DerivedFieldSync(store).backfill("event", EVENT_DATE_VALUE)

        assert (report.updated, report.unchanged, report.skipped, report.failed) == (1, 1, 2, 0)
        assert store.documents["E1"]["eventDateValue"] == "2025-06-01"
