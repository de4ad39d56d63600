"""Document actions offered to editors, one factory per document type.

A factory looks at the document's revisions and yields the actions the editor
can trigger, already labelled and enabled or disabled. Triggering an action
runs its workflow against a confirmation boundary.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from studio_sync.documents import DocumentRevisions, load_revisions
from studio_sync.exceptions import (
    ActionDisabledError,
    DocumentNotFoundError,
    UnknownActionError,
)
from studio_sync.registry import ENTITIES, EntityConfig
from studio_sync.sync.patches import PatchApplier
from studio_sync.workflow.delete import CascadingDeleteGuard
from studio_sync.workflow.publish import ReconciliationWorkflow
from studio_sync.workflow.state import DEFAULT_POLICY, ResolutionPolicy

if TYPE_CHECKING:
    from studio_sync.database.store import DocumentStore
    from studio_sync.workflow.confirmation import ConfirmationBoundary, ConfirmationPrompt

    Runner = ReconciliationWorkflow | CascadingDeleteGuard
    Completion = Callable[[Any], None] | None
    Handler = Callable[[ConfirmationBoundary, Completion], Awaitable[Any]]
    ActionFactory = Callable[[DocumentStore, DocumentRevisions], list["DocumentAction"]]

logger = logging.getLogger(__name__)

PUBLISH = "publish"
DELETE = "delete"


@dataclass
class DocumentAction:
    """One button in the editor's action menu."""

    name: str
    label: str
    document_id: str
    runner: Runner
    start: Handler
    tone: str = "primary"
    disabled: bool = False
    title: str | None = None

    @property
    def state(self) -> str:
        return str(self.runner.state)

    @property
    def pending_prompt(self) -> ConfirmationPrompt | None:
        return self.runner.pending_prompt

    async def handle(
        self,
        confirmation: ConfirmationBoundary,
        on_complete: Completion = None,
    ) -> Any:
        """Run the action's workflow to completion."""
        if self.disabled:
            raise ActionDisabledError(self.document_id, self.name, self.title or "disabled")
        logger.info("Action started — action=%s document=%s", self.name, self.document_id)
        return await self.start(confirmation, on_complete)


def publish_action(
    store: DocumentStore,
    revisions: DocumentRevisions,
    config: EntityConfig,
    *,
    policy: ResolutionPolicy = DEFAULT_POLICY,
) -> DocumentAction:
    workflow = ReconciliationWorkflow(store, config, policy=policy)

    async def start(confirmation: ConfirmationBoundary, on_complete: Completion) -> Any:
        return await workflow.run(revisions.id, confirmation, on_complete)

    has_changes = revisions.draft is not None
    return DocumentAction(
        name=PUBLISH,
        label="Publish",
        document_id=revisions.id,
        runner=workflow,
        start=start,
        disabled=not has_changes,
        title=None if has_changes else "No unpublished changes",
    )


def delete_action(
    store: DocumentStore,
    revisions: DocumentRevisions,
    config: EntityConfig,
) -> DocumentAction:
    guard = CascadingDeleteGuard(store, PatchApplier(store))

    async def start(confirmation: ConfirmationBoundary, on_complete: Completion) -> Any:
        return await guard.run(revisions.id, config.delete, confirmation, on_complete)

    return DocumentAction(
        name=DELETE,
        label="Delete",
        document_id=revisions.id,
        runner=guard,
        start=start,
        tone="critical",
        disabled=not revisions.exists,
        title=None if revisions.exists else "Document does not exist",
    )


def _entity_actions(config: EntityConfig) -> ActionFactory:
    def factory(store: DocumentStore, revisions: DocumentRevisions) -> list[DocumentAction]:
        return [
            publish_action(store, revisions, config),
            delete_action(store, revisions, config),
        ]

    return factory


ACTION_FACTORIES: dict[str, ActionFactory] = {
    document_type: _entity_actions(config) for document_type, config in ENTITIES.items()
}


async def resolve_actions(store: DocumentStore, document_id: str) -> list[DocumentAction]:
    """Build the actions for a document; types without a factory get none."""
    revisions = await load_revisions(store, document_id)
    if not revisions.exists:
        raise DocumentNotFoundError(revisions.id)
    factory = ACTION_FACTORIES.get(revisions.document_type or "")
    if factory is None:
        return []
    return factory(store, revisions)


async def resolve_action(store: DocumentStore, document_id: str, name: str) -> DocumentAction:
    """Look up one named action for a document."""
    revisions = await load_revisions(store, document_id)
    if not revisions.exists:
        raise DocumentNotFoundError(revisions.id)
    document_type = revisions.document_type or ""
    factory = ACTION_FACTORIES.get(document_type)
    for action in factory(store, revisions) if factory else []:
        if action.name == name:
            return action
    raise UnknownActionError(document_type, name)
