"""Workflow states and the pure decision-ordering transition."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class PublishState(StrEnum):
    IDLE = "idle"
    CHECKING_MISSING = "checking_missing"
    PUBLISHING = "publishing"
    CHECKING_ORPHANED = "checking_orphaned"
    AWAITING_ADDITION_DECISION = "awaiting_addition_decision"
    AWAITING_REMOVAL_DECISION = "awaiting_removal_decision"
    AWAITING_LISTING_DECISION = "awaiting_listing_decision"
    DONE = "done"


class DeleteState(StrEnum):
    IDLE = "idle"
    CHECKING_REFERENCES = "checking_references"
    AWAITING_DELETE_DECISION = "awaiting_delete_decision"
    DELETING = "deleting"
    DONE = "done"


class Resolution(StrEnum):
    """The post-publish steps that may ask the editor for a decision."""

    ADDITIONS = "additions"
    REMOVALS = "removals"
    LISTING = "listing"


_DECISION_STATES = {
    Resolution.ADDITIONS: PublishState.AWAITING_ADDITION_DECISION,
    Resolution.REMOVALS: PublishState.AWAITING_REMOVAL_DECISION,
    Resolution.LISTING: PublishState.AWAITING_LISTING_DECISION,
}


@dataclass(frozen=True)
class ResolutionPolicy:
    """Order in which post-publish decisions are offered.

    Additions come before removals, and cleanup before the listing offer.
    """

    order: tuple[Resolution, ...] = (
        Resolution.ADDITIONS,
        Resolution.REMOVALS,
        Resolution.LISTING,
    )

    def __post_init__(self) -> None:
        if sorted(self.order) != sorted(Resolution):
            msg = f"Policy must order each resolution exactly once: {self.order}"
            raise ValueError(msg)


DEFAULT_POLICY = ResolutionPolicy()


@dataclass(frozen=True)
class Findings:
    """What the checks found; decides which decision states are applicable."""

    missing: tuple[str, ...] = ()
    orphaned: tuple[str, ...] = ()
    offer_listing: bool = False

    def applies(self, resolution: Resolution) -> bool:
        if resolution is Resolution.ADDITIONS:
            return bool(self.missing)
        if resolution is Resolution.REMOVALS:
            return bool(self.orphaned)
        return self.offer_listing


def next_decision_state(
    current: PublishState,
    findings: Findings,
    policy: ResolutionPolicy = DEFAULT_POLICY,
) -> PublishState:
    """Return the next applicable decision state after ``current``, or DONE.

    From CHECKING_ORPHANED the search starts at the first resolution; from a
    decision state it continues after that state's resolution, whatever the
    editor decided.
    """
    if current is PublishState.CHECKING_ORPHANED:
        remaining = policy.order
    else:
        resolved = next(
            (res for res, state in _DECISION_STATES.items() if state is current), None
        )
        if resolved is None:
            msg = f"No decision follows state {current}"
            raise ValueError(msg)
        remaining = policy.order[policy.order.index(resolved) + 1 :]

    for resolution in remaining:
        if findings.applies(resolution):
            return _DECISION_STATES[resolution]
    return PublishState.DONE
