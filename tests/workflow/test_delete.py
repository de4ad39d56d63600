"""Tests for the cascading delete guard."""

import pytest

from studio_sync.exceptions import DeleteFailedError
from studio_sync.registry import ARTIST_DELETE
from studio_sync.sync.patches import PatchApplier
from studio_sync.workflow.confirmation import PromptKind
from studio_sync.workflow.delete import CascadingDeleteGuard
from studio_sync.workflow.state import DeleteState


@pytest.fixture
def referenced(make_store, docs):
    """Artist X with both revisions, referenced by E1, E2 and the artist page."""
    return make_store(
        docs.artist("X", "E1", "E2"),
        docs.artist("drafts.X", "E1", "E2"),
        docs.event("E1", "X", "Y", title="Jazz night"),
        docs.event("drafts.E1", "X"),
        docs.event("E2", "X"),
        docs.event("E9", "Y"),
        docs.listing("artistPage", "selectedArtists", "X", "Y"),
    )


def _guard(store) -> CascadingDeleteGuard:
    return CascadingDeleteGuard(store, PatchApplier(store))


class TestPrepareDelete:
    """Test the referrer report."""

    async def test_counts_distinct_referrers(self, referenced) -> None:
        """Verify draft and published revisions of a referrer count once."""
        report = await _guard(referenced).prepare_delete("X", ARTIST_DELETE)

        counts = {entry.referrer.referring_type: entry.count for entry in report.affected}
        assert counts == {"artistPage": 1, "event": 2}
        events = next(e for e in report.affected if e.referrer.referring_type == "event")
        assert events.document_ids == ["E1", "E2"]
        assert events.labels[0] == "Event E1"
        assert report.total == 3

    async def test_query_failure_reported_per_referrer(self, referenced) -> None:
        """Verify a failed scan is logged and reported with count zero."""
        referenced.fail_query.add("event")

        report = await _guard(referenced).prepare_delete("X", ARTIST_DELETE)

        events = next(e for e in report.affected if e.referrer.referring_type == "event")
        assert events.count == 0
        assert events.error is not None


class TestConfirmDelete:
    """Test reference cleanup and deletion."""

    async def test_strips_references_and_deletes_both_revisions(self, referenced) -> None:
        """Verify X vanishes from every referrer and from the store."""
        outcome = await _guard(referenced).confirm_delete("X", ARTIST_DELETE)

        docs = referenced.documents
        assert [item["ref"] for item in docs["E1"]["artist"]] == ["Y"]
        assert docs["drafts.E1"]["artist"] == []
        assert docs["E2"]["artist"] == []
        assert [item["ref"] for item in docs["artistPage"]["selectedArtists"]] == ["Y"]
        assert "X" not in docs
        assert "drafts.X" not in docs
        assert outcome.deleted == ["drafts.X", "X"]
        assert referenced.documents["E9"]["artist"][0]["ref"] == "Y"

    async def test_missing_draft_counts_as_success(self, make_store, docs) -> None:
        """Verify a published-only document deletes cleanly."""
        store = make_store(docs.artist("X"))

        outcome = await _guard(store).confirm_delete("X", ARTIST_DELETE)

        assert outcome.deleted == ["X"]
        assert store.documents == {}

    async def test_cleanup_failure_continues(self, referenced) -> None:
        """Verify one failed referrer patch does not stop the delete."""
        referenced.fail_patch.add("E2")

        outcome = await _guard(referenced).confirm_delete("X", ARTIST_DELETE)

        assert [failure.document_id for failure in outcome.cleanup.failures] == ["E2"]
        assert "X" not in referenced.documents

    async def test_delete_failure_raises_after_both_attempts(self, referenced) -> None:
        """Verify a failed revision delete surfaces once both were tried."""
        referenced.fail_delete.add("drafts.X")

        with pytest.raises(DeleteFailedError) as exc_info:
            await _guard(referenced).confirm_delete("X", ARTIST_DELETE)

        assert exc_info.value.failed_ids == ["drafts.X"]
        assert "X" not in referenced.documents


class TestRun:
    """Test the confirm-then-delete flow."""

    async def test_summary_prompt_and_accept(self, referenced, confirmation) -> None:
        """Verify the prompt lists referrer counts and accepting deletes."""
        answers = confirmation(True)
        completed = []
        guard = _guard(referenced)

        outcome = await guard.run("X", ARTIST_DELETE, answers, completed.append)

        prompt = answers.prompts[0]
        assert prompt.kind is PromptKind.DELETE
        assert prompt.tone == "critical"
        assert prompt.items == ["1 page (artist overview)", "2 events (event)"]
        assert not outcome.cancelled
        assert completed == [outcome]
        assert guard.state is DeleteState.DONE

    async def test_plain_prompt_when_unreferenced(self, make_store, docs, confirmation) -> None:
        """Verify an unreferenced document gets a plain confirmation."""
        store = make_store(docs.artist("X"))
        answers = confirmation(True)

        await _guard(store).run("X", ARTIST_DELETE, answers)

        assert answers.prompts[0].items == []
        assert "Are you sure" in answers.prompts[0].body[0]

    async def test_decline_keeps_everything(self, referenced, confirmation) -> None:
        """Verify declining deletes nothing and still completes once."""
        completed = []

        outcome = await _guard(referenced).run(
            "X", ARTIST_DELETE, confirmation(False), completed.append
        )

        assert outcome.cancelled
        assert "X" in referenced.documents
        assert referenced.commits == []
        assert len(completed) == 1

    async def test_failed_delete_still_completes(self, referenced, confirmation) -> None:
        """Verify the completion event fires even when deletion fails."""
        referenced.fail_delete.add("X")
        completed = []

        with pytest.raises(DeleteFailedError):
            await _guard(referenced).run("X", ARTIST_DELETE, confirmation(True), completed.append)

        assert len(completed) == 1
