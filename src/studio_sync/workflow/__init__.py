"""Editor-facing publish and delete workflows."""

from studio_sync.workflow.confirmation import (
    ConfirmationBoundary,
    ConfirmationPrompt,
    PromptKind,
)
from studio_sync.workflow.delete import (
    AffectedReferrers,
    CascadingDeleteGuard,
    DeleteOutcome,
    DeleteReport,
)
from studio_sync.workflow.publish import PublishOutcome, ReconciliationWorkflow
from studio_sync.workflow.state import (
    DEFAULT_POLICY,
    DeleteState,
    Findings,
    PublishState,
    Resolution,
    ResolutionPolicy,
    next_decision_state,
)

__all__ = [
    "DEFAULT_POLICY",
    "AffectedReferrers",
    "CascadingDeleteGuard",
    "ConfirmationBoundary",
    "ConfirmationPrompt",
    "DeleteOutcome",
    "DeleteReport",
    "DeleteState",
    "Findings",
    "PromptKind",
    "PublishOutcome",
    "PublishState",
    "ReconciliationWorkflow",
    "Resolution",
    "ResolutionPolicy",
    "next_decision_state",
]
