"""Exception hierarchy shared by the store boundary, workflows and routes."""

from __future__ import annotations


class StudioSyncError(Exception):
    """Base class for all studio-sync errors."""


class DocumentNotFoundError(StudioSyncError):
    """A document revision does not exist in the store."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document not found: {document_id}")
        self.document_id = document_id


class ConcurrentModificationError(StudioSyncError):
    """A patch lost an optimistic-concurrency race against another writer."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Document was modified concurrently: {document_id}")
        self.document_id = document_id


class NothingToPublishError(StudioSyncError):
    """Publish was requested for a document without a draft revision."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"No unpublished changes for {document_id}")
        self.document_id = document_id


class PublishFailedError(StudioSyncError):
    """The native publish primitive failed; the workflow aborted."""

    def __init__(self, document_id: str, reason: str) -> None:
        super().__init__(f"Publish failed for {document_id}: {reason}")
        self.document_id = document_id
        self.reason = reason


class DeleteFailedError(StudioSyncError):
    """Deleting one or more revisions failed after reference cleanup."""

    def __init__(self, document_id: str, failed_ids: list[str]) -> None:
        super().__init__(
            f"Delete failed for {document_id}: {', '.join(failed_ids)}"
        )
        self.document_id = document_id
        self.failed_ids = failed_ids


class UnknownActionError(StudioSyncError):
    """No action with the requested name is registered for the document type."""

    def __init__(self, document_type: str, action: str) -> None:
        super().__init__(f"No '{action}' action for document type '{document_type}'")
        self.document_type = document_type
        self.action = action


class ActionDisabledError(StudioSyncError):
    """The requested action exists but cannot run in the document's current state."""

    def __init__(self, document_id: str, action: str, reason: str) -> None:
        super().__init__(f"Action '{action}' is disabled for {document_id}: {reason}")
        self.document_id = document_id
        self.action = action
        self.reason = reason


class SessionNotFoundError(StudioSyncError):
    """No action session with the given id is tracked."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Action session not found: {session_id}")
        self.session_id = session_id


class NoPendingPromptError(StudioSyncError):
    """A decision was submitted while the session was not waiting for one."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Action session {session_id} is not awaiting a decision")
        self.session_id = session_id
