"""Action routes — list a document's actions and trigger one."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from studio_sync.actions import resolve_actions
from studio_sync.exceptions import (
    ActionDisabledError,
    DocumentNotFoundError,
    UnknownActionError,
)
from studio_sync.services.sessions import SessionSnapshot

router = APIRouter(prefix="/documents", tags=["actions"])


class ActionView(BaseModel):
    name: str
    label: str
    tone: str
    disabled: bool
    title: str | None = None


@router.get("/{document_id}/actions")
async def list_actions(request: Request, document_id: str) -> list[ActionView]:
    """List the actions available for a document."""
    store = request.app.state.store
    try:
        actions = await resolve_actions(store, document_id)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return [
        ActionView(
            name=action.name,
            label=action.label,
            tone=action.tone,
            disabled=action.disabled,
            title=action.title,
        )
        for action in actions
    ]


@router.post("/{document_id}/actions/{action_name}", status_code=201)
async def trigger_action(
    request: Request, document_id: str, action_name: str
) -> SessionSnapshot:
    """Start an action session; returns once it prompts or finishes."""
    sessions = request.app.state.sessions
    try:
        session = await sessions.start(document_id, action_name)
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except UnknownActionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ActionDisabledError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return session.snapshot()
