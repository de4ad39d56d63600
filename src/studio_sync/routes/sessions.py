"""Session routes — poll a running action and answer its prompts."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from studio_sync.exceptions import NoPendingPromptError, SessionNotFoundError
from studio_sync.services.sessions import SessionSnapshot

router = APIRouter(prefix="/sessions", tags=["sessions"])


class Decision(BaseModel):
    accept: bool


@router.get("/{session_id}")
async def get_session(request: Request, session_id: str) -> SessionSnapshot:
    """Read the current state and pending prompt of an action session."""
    try:
        return request.app.state.sessions.get(session_id).snapshot()
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.post("/{session_id}/decision")
async def decide(request: Request, session_id: str, decision: Decision) -> SessionSnapshot:
    """Accept or decline the pending prompt; closing the dialog is a decline."""
    try:
        session = await request.app.state.sessions.decide(session_id, decision.accept)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except NoPendingPromptError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return session.snapshot()
