"""Action sessions — run a workflow in the background and relay its prompts.

HTTP requests are short-lived while a workflow may wait on the editor
indefinitely, so each triggered action runs as an asyncio task. The task
suspends on a ``SessionConfirmation`` until a decision is posted.
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
import secrets
from collections import OrderedDict
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from studio_sync.actions import resolve_action
from studio_sync.exceptions import (
    ActionDisabledError,
    NoPendingPromptError,
    SessionNotFoundError,
    StudioSyncError,
)
from studio_sync.workflow.confirmation import ConfirmationPrompt

if TYPE_CHECKING:
    from studio_sync.actions import DocumentAction
    from studio_sync.database.store import DocumentStore

logger = logging.getLogger(__name__)


class SessionConfirmation:
    """Confirmation boundary that parks the workflow until a decision arrives."""

    def __init__(self) -> None:
        self.prompt: ConfirmationPrompt | None = None
        self.prompted = asyncio.Event()
        self._decision: asyncio.Future[bool] | None = None

    async def present(self, prompt: ConfirmationPrompt) -> bool:
        self.prompt = prompt
        self._decision = asyncio.get_running_loop().create_future()
        self.prompted.set()
        try:
            return await self._decision
        finally:
            self.prompt = None
            self._decision = None
            self.prompted.clear()

    @property
    def waiting(self) -> bool:
        return self._decision is not None and not self._decision.done()

    def decide(self, accept: bool) -> bool:
        """Resolve the pending prompt; returns False when nothing was pending."""
        if not self.waiting:
            return False
        assert self._decision is not None
        self.prompt = None
        self.prompted.clear()
        self._decision.set_result(accept)
        return True


class SessionSnapshot(BaseModel):
    """Read model of one action session, as served over HTTP."""

    id: str
    document_id: str
    action: str
    state: str
    done: bool
    prompt: ConfirmationPrompt | None = None
    error: str | None = None
    result: dict[str, Any] | None = None
    created_at: datetime


class ActionSession:
    def __init__(self, session_id: str, action: DocumentAction) -> None:
        self.id = session_id
        self.action = action
        self.confirmation = SessionConfirmation()
        self.created_at = datetime.now(UTC)
        self.result: Any = None
        self.error: str | None = None
        self._completions = 0
        self._task: asyncio.Task | None = None

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    @property
    def completions(self) -> int:
        return self._completions

    def start(self) -> None:
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        try:
            self.result = await self.action.handle(self.confirmation, self._on_complete)
        except StudioSyncError as exc:
            self.error = str(exc)
            logger.warning("Action session failed — session=%s error=%s", self.id, exc)
        except Exception as exc:  # noqa: BLE001
            self.error = str(exc)
            logger.exception("Action session crashed — session=%s", self.id)

    def _on_complete(self, outcome: Any) -> None:
        self._completions += 1
        logger.info(
            "Action completed — session=%s action=%s document=%s",
            self.id,
            self.action.name,
            self.action.document_id,
        )

    async def settle(self, timeout: float | None = None) -> None:
        """Wait until the workflow asks for a decision or finishes."""
        if self._task is None:
            return
        waiter = asyncio.ensure_future(self.confirmation.prompted.wait())
        try:
            await asyncio.wait(
                {waiter, self._task},
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            if not waiter.done():
                waiter.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await waiter

    async def cancel(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task

    def snapshot(self) -> SessionSnapshot:
        result = self.result
        if dataclasses.is_dataclass(result) and not isinstance(result, type):
            result = dataclasses.asdict(result)
        return SessionSnapshot(
            id=self.id,
            document_id=self.action.document_id,
            action=self.action.name,
            state=self.action.state,
            done=self.done,
            prompt=self.confirmation.prompt,
            error=self.error,
            result=result if isinstance(result, dict) else None,
            created_at=self.created_at,
        )


class ActionSessionManager:
    """Track running and recently finished action sessions."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        retention: int = 200,
        settle_timeout: float | None = 10.0,
    ) -> None:
        self._store = store
        self._retention = retention
        self._settle_timeout = settle_timeout
        self._sessions: OrderedDict[str, ActionSession] = OrderedDict()

    async def start(self, document_id: str, action_name: str) -> ActionSession:
        """Trigger an action and return once it prompts or finishes."""
        action = await resolve_action(self._store, document_id, action_name)
        if action.disabled:
            raise ActionDisabledError(action.document_id, action.name, action.title or "disabled")
        session = ActionSession(secrets.token_hex(8), action)
        self._sessions[session.id] = session
        session.start()
        logger.info(
            "Action session started — session=%s action=%s document=%s",
            session.id,
            action.name,
            action.document_id,
        )
        await session.settle(self._settle_timeout)
        self._evict()
        return session

    def get(self, session_id: str) -> ActionSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def decide(self, session_id: str, accept: bool) -> ActionSession:
        """Resolve the pending prompt; closing a dialog is ``accept=False``."""
        session = self.get(session_id)
        if not session.confirmation.decide(accept):
            raise NoPendingPromptError(session_id)
        logger.info("Decision recorded — session=%s accept=%s", session_id, accept)
        await session.settle(self._settle_timeout)
        return session

    def _evict(self) -> None:
        finished = [sid for sid, session in self._sessions.items() if session.done]
        for session_id in finished[: max(0, len(finished) - self._retention)]:
            del self._sessions[session_id]

    async def close(self) -> None:
        for session in self._sessions.values():
            await session.cancel()
        self._sessions.clear()
