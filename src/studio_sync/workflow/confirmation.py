"""Interactive confirmation boundary between workflows and whatever UI hosts them."""

from __future__ import annotations

from enum import StrEnum
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field


class PromptKind(StrEnum):
    ADDITION = "addition"
    REMOVAL = "removal"
    LISTING = "listing"
    DELETE = "delete"


class ConfirmationPrompt(BaseModel):
    """Everything a UI needs to render one confirmation dialog."""

    kind: PromptKind
    header: str
    body: list[str] = Field(default_factory=list)
    items: list[str] = Field(default_factory=list)
    confirm_label: str = "Yes"
    cancel_label: str = "No"
    tone: str = "primary"


@runtime_checkable
class ConfirmationBoundary(Protocol):
    """Ask a human to accept or decline; closing the dialog counts as decline."""

    async def present(self, prompt: ConfirmationPrompt) -> bool:
        """Suspend until the editor decides."""
        ...
