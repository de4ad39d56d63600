"""Confirmation prompt builders for the publish and delete workflows."""

from __future__ import annotations

from typing import TYPE_CHECKING

from studio_sync.workflow.confirmation import ConfirmationPrompt, PromptKind

if TYPE_CHECKING:
    from studio_sync.registry import DeleteConfig, EntityConfig, ListingPage
    from studio_sync.workflow.delete import AffectedReferrers


def _targets(config: EntityConfig, count: int) -> str:
    return config.target_label_singular if count == 1 else config.target_label_plural


def addition_prompt(config: EntityConfig, labels: list[str]) -> ConfirmationPrompt:
    count = len(labels)
    targets = _targets(config, count)
    intro = (
        f"This {targets} does not list this {config.label_singular}:"
        if count == 1
        else f"These {count} {targets} do not list this {config.label_singular}:"
    )
    return ConfirmationPrompt(
        kind=PromptKind.ADDITION,
        header=f"Sync {config.target_label_plural}?",
        body=[
            intro,
            f"Add this {config.label_singular} to the {targets} automatically?",
            f"This keeps the link between {config.label_singular} and "
            f"{config.target_label_singular} two-way.",
        ],
        items=labels,
        confirm_label="Yes, sync",
        cancel_label="No, don't sync",
    )


def removal_prompt(config: EntityConfig, labels: list[str]) -> ConfirmationPrompt:
    count = len(labels)
    targets = _targets(config, count)
    intro = (
        f"This {targets} still lists this {config.label_singular}, "
        "but it has been removed here:"
        if count == 1
        else f"These {count} {targets} still list this {config.label_singular}, "
        "but they have been removed here:"
    )
    return ConfirmationPrompt(
        kind=PromptKind.REMOVAL,
        header=f"Remove {config.label_singular} from {config.target_label_plural}?",
        body=[
            intro,
            f"Remove this {config.label_singular} from the {targets} automatically?",
        ],
        items=labels,
        confirm_label="Yes, remove",
        cancel_label="No, keep",
    )


def listing_prompt(config: EntityConfig, listing: ListingPage) -> ConfirmationPrompt:
    return ConfirmationPrompt(
        kind=PromptKind.LISTING,
        header=f"Add to the {listing.label}?",
        body=[
            f"Should this {config.label_singular} be shown on the {listing.label}?",
            "You can reorder or remove it from the page later.",
        ],
        confirm_label="Yes, add",
        cancel_label="No",
    )


def delete_prompt(
    config: DeleteConfig, affected: list[AffectedReferrers]
) -> ConfirmationPrompt:
    """Plain confirmation when nothing refers to the document, a summary otherwise."""
    referenced = [entry for entry in affected if entry.count > 0]
    if not referenced:
        body = [f"Are you sure you want to delete this {config.label_singular}?"]
        items: list[str] = []
    else:
        body = [
            f"The {config.label_singular} will be removed from:",
            "Do you want to continue with the deletion?",
        ]
        items = [
            f"{entry.referrer.count_label(entry.count)} ({entry.referrer.display_label})"
            for entry in referenced
        ]
    return ConfirmationPrompt(
        kind=PromptKind.DELETE,
        header=f"Delete {config.label_singular}",
        body=body,
        items=items,
        confirm_label=f"Delete {config.label_singular}",
        cancel_label="Cancel",
        tone="critical",
    )
