"""Tests for the pure decision-ordering transition."""

import pytest

from studio_sync.workflow.state import (
    Findings,
    PublishState,
    Resolution,
    ResolutionPolicy,
    next_decision_state,
)

ALL = Findings(missing=("E2",), orphaned=("E3",), offer_listing=True)


@pytest.mark.unit
class TestNextDecisionState:
    """Test the Next Decision State transition."""

    def test_default_order_walks_every_decision(self) -> None:
        """Verify additions, then removals, then listing, then done."""
        state = next_decision_state(PublishState.CHECKING_ORPHANED, ALL)
        visited = [state]
        while state is not PublishState.DONE:
            state = next_decision_state(state, ALL)
            visited.append(state)
        assert visited == [
            PublishState.AWAITING_ADDITION_DECISION,
            PublishState.AWAITING_REMOVAL_DECISION,
            PublishState.AWAITING_LISTING_DECISION,
            PublishState.DONE,
        ]

    def test_skips_inapplicable_decisions(self) -> None:
        """Verify empty findings are skipped."""
        findings = Findings(orphaned=("E3",))
        assert (
            next_decision_state(PublishState.CHECKING_ORPHANED, findings)
            is PublishState.AWAITING_REMOVAL_DECISION
        )
        assert (
            next_decision_state(PublishState.AWAITING_REMOVAL_DECISION, findings)
            is PublishState.DONE
        )

    def test_nothing_found_is_done(self) -> None:
        """Verify a clean publish goes straight to done."""
        assert next_decision_state(PublishState.CHECKING_ORPHANED, Findings()) is PublishState.DONE

    def test_custom_policy_order(self) -> None:
        """Verify the order is policy, not hard-coded."""
        policy = ResolutionPolicy(
            order=(Resolution.REMOVALS, Resolution.ADDITIONS, Resolution.LISTING)
        )
        first = next_decision_state(PublishState.CHECKING_ORPHANED, ALL, policy)
        second = next_decision_state(first, ALL, policy)
        assert first is PublishState.AWAITING_REMOVAL_DECISION
        assert second is PublishState.AWAITING_ADDITION_DECISION

    def test_policy_must_cover_every_resolution(self) -> None:
        """Verify incomplete or duplicated orders are rejected."""
        with pytest.raises(ValueError, match="exactly once"):
            ResolutionPolicy(order=(Resolution.ADDITIONS, Resolution.ADDITIONS, Resolution.LISTING))

    def test_rejects_non_decision_states(self) -> None:
        """Verify only checking_orphaned and decision states have a successor."""
        with pytest.raises(ValueError, match="No decision follows"):
            next_decision_state(PublishState.PUBLISHING, ALL)
