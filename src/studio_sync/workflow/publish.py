"""Publish reconciliation: diff, publish, diff again, then offer repairs.

One ``ReconciliationWorkflow`` runs one publish. Its ``state`` and
``pending_prompt`` can be read at any time by whatever UI hosts the action.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from studio_sync.documents import load_labels, load_revisions, published_id
from studio_sync.exceptions import PublishFailedError
from studio_sync.sync.derived import DerivedFieldSync
from studio_sync.sync.diff import ReferenceDiffEngine
from studio_sync.sync.listing import insert_into_listing, listing_contains
from studio_sync.sync.patches import PatchApplier, PatchReport
from studio_sync.workflow.prompts import addition_prompt, listing_prompt, removal_prompt
from studio_sync.workflow.state import (
    DEFAULT_POLICY,
    Findings,
    PublishState,
    ResolutionPolicy,
    next_decision_state,
)

if TYPE_CHECKING:
    from studio_sync.database.store import DocumentStore
    from studio_sync.registry import EntityConfig, RelationshipPair
    from studio_sync.workflow.confirmation import ConfirmationBoundary, ConfirmationPrompt

logger = logging.getLogger(__name__)


@dataclass
class PublishOutcome:
    """What one publish run found and changed."""

    document_id: str
    missing: list[str] = field(default_factory=list)
    orphaned: list[str] = field(default_factory=list)
    derived_value: Any = None
    additions: PatchReport | None = None
    removals: PatchReport | None = None
    listing: PatchReport | None = None
    error: str | None = None

    @property
    def published(self) -> bool:
        return self.error is None

    @property
    def listing_inserted(self) -> bool:
        return self.listing is not None and bool(self.listing.patched)


CompletionCallback = Callable[[PublishOutcome], None]


class ReconciliationWorkflow:
    """Sequence the publish of one document and the reciprocal repairs around it."""

    def __init__(
        self,
        store: DocumentStore,
        config: EntityConfig,
        *,
        patches: PatchApplier | None = None,
        policy: ResolutionPolicy = DEFAULT_POLICY,
    ) -> None:
        self._store = store
        self._config = config
        self._diff = ReferenceDiffEngine(store)
        self._patches = patches or PatchApplier(store)
        self._derived = DerivedFieldSync(store)
        self._policy = policy
        self._completed = False
        self.state = PublishState.IDLE
        self.pending_prompt: ConfirmationPrompt | None = None
        self.outcome: PublishOutcome | None = None

    async def run(
        self,
        document_id: str,
        confirmation: ConfirmationBoundary,
        on_complete: CompletionCallback | None = None,
    ) -> PublishOutcome:
        """Publish ``document_id`` and walk the editor through any repairs.

        Raises PublishFailedError when the publish itself fails; the
        completion callback has already fired by then.
        """
        if self.state is not PublishState.IDLE:
            msg = f"Workflow already ran (state={self.state})"
            raise RuntimeError(msg)

        canonical = published_id(document_id)
        outcome = PublishOutcome(document_id=canonical)
        self.outcome = outcome
        pair = self._config.relationship

        self.state = PublishState.CHECKING_MISSING
        was_new = await self._is_new(canonical)
        if pair is not None:
            outcome.missing = await self._check(
                self._diff.find_missing_reciprocal, canonical, pair
            )
        if self._config.derived_field is not None:
            outcome.derived_value = await self._derived.sync(
                canonical, self._config.derived_field
            )

        self.state = PublishState.PUBLISHING
        try:
            await self._store.publish(canonical)
        except Exception as exc:
            logger.error("Publish failed — document=%s", canonical, exc_info=True)
            outcome.error = str(exc)
            self._finish(on_complete)
            raise PublishFailedError(canonical, str(exc)) from exc
        logger.info("Document published — document=%s", canonical)

        self.state = PublishState.CHECKING_ORPHANED
        if pair is not None:
            outcome.orphaned = await self._check(
                self._diff.find_orphaned_reciprocal, canonical, pair
            )
        findings = Findings(
            missing=tuple(outcome.missing),
            orphaned=tuple(outcome.orphaned),
            offer_listing=was_new and await self._listing_needed(canonical),
        )

        self.state = next_decision_state(self.state, findings, self._policy)
        while self.state is not PublishState.DONE:
            await self._decide(canonical, outcome, confirmation)
            self.state = next_decision_state(self.state, findings, self._policy)

        self._finish(on_complete)
        return outcome

    async def _is_new(self, document_id: str) -> bool:
        try:
            return (await load_revisions(self._store, document_id)).is_new
        except Exception:  # noqa: BLE001
            logger.warning("Failed to load revisions of %s", document_id, exc_info=True)
            return False

    @staticmethod
    async def _check(
        check: Callable[[str, RelationshipPair], Awaitable[list[str]]],
        document_id: str,
        pair: RelationshipPair,
    ) -> list[str]:
        try:
            return list(await check(document_id, pair))
        except Exception:  # noqa: BLE001
            logger.warning(
                "Reference check failed — document=%s, treating as empty",
                document_id,
                exc_info=True,
            )
            return []

    async def _listing_needed(self, document_id: str) -> bool:
        listing = self._config.listing
        if listing is None:
            return False
        try:
            contains = await listing_contains(self._store, listing, document_id)
        except Exception:  # noqa: BLE001
            logger.warning("Failed to read %s", listing.document_type, exc_info=True)
            return False
        if contains is None:
            logger.error("Could not find listing page %s", listing.document_type)
            return False
        if contains:
            logger.debug("%s already lists %s", listing.document_type, document_id)
        return not contains

    async def _decide(
        self, document_id: str, outcome: PublishOutcome, confirmation: ConfirmationBoundary
    ) -> None:
        """Run the current decision state; errors advance like a decline."""
        pair = self._config.relationship
        try:
            if self.state is PublishState.AWAITING_ADDITION_DECISION and pair:
                labels = await self._target_labels(outcome.missing)
                if await self._ask(confirmation, addition_prompt(self._config, labels)):
                    outcome.additions = await self._patches.add_reciprocal(
                        outcome.missing, document_id, pair.target_field
                    )
            elif self.state is PublishState.AWAITING_REMOVAL_DECISION and pair:
                labels = await self._target_labels(outcome.orphaned)
                if await self._ask(confirmation, removal_prompt(self._config, labels)):
                    outcome.removals = await self._patches.remove_reciprocal(
                        outcome.orphaned, document_id, pair.target_field
                    )
            elif self.state is PublishState.AWAITING_LISTING_DECISION and self._config.listing:
                listing = self._config.listing
                if await self._ask(confirmation, listing_prompt(self._config, listing)):
                    outcome.listing = await insert_into_listing(
                        self._store, self._patches, listing, document_id
                    )
        except Exception:  # noqa: BLE001
            logger.warning(
                "Decision step failed — document=%s state=%s",
                document_id,
                self.state,
                exc_info=True,
            )
        finally:
            self.pending_prompt = None

    async def _ask(self, confirmation: ConfirmationBoundary, prompt: ConfirmationPrompt) -> bool:
        self.pending_prompt = prompt
        accepted = await confirmation.present(prompt)
        logger.info(
            "Confirmation %s — kind=%s", "accepted" if accepted else "declined", prompt.kind
        )
        return accepted

    async def _target_labels(self, target_ids: list[str]) -> list[str]:
        fallback = f"Unknown {self._config.target_label_singular}"
        return await load_labels(self._store, target_ids, fallback)

    def _finish(self, on_complete: CompletionCallback | None) -> None:
        self.state = PublishState.DONE
        self.pending_prompt = None
        if self._completed:
            return
        self._completed = True
        if on_complete is not None and self.outcome is not None:
            on_complete(self.outcome)
