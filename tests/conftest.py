"""Shared fakes: an in-memory document store and a scripted confirmation boundary."""

from __future__ import annotations

import copy
import itertools
from collections.abc import Callable, Iterable
from types import SimpleNamespace
from typing import Any

import pytest

from studio_sync.database.filters import DocumentFilter
from studio_sync.database.patch import Patch, PatchOperation, apply_operations
from studio_sync.documents import Document, draft_id, published_id
from studio_sync.exceptions import DocumentNotFoundError, NothingToPublishError
from studio_sync.workflow.confirmation import ConfirmationPrompt


class InMemoryDocumentStore:
    """DocumentStore fake keeping revisions in a dict, with failure injection."""

    def __init__(self, documents: Iterable[Document] = ()) -> None:
        self.documents: dict[str, Document] = {}
        self.fail_get: set[str] = set()
        self.fail_patch: set[str] = set()
        self.fail_delete: set[str] = set()
        self.fail_query: set[str] = set()
        self.fail_publish = False
        self.commits: list[tuple[str, list[PatchOperation]]] = []
        self.published: list[str] = []
        self.deleted: list[str] = []
        for document in documents:
            self.put(document)

    def put(self, document: Document) -> None:
        self.documents[document["id"]] = copy.deepcopy(document)

    async def get(self, document_id: str) -> Document | None:
        if document_id in self.fail_get:
            raise RuntimeError(f"get failed for {document_id}")
        document = self.documents.get(document_id)
        return copy.deepcopy(document) if document is not None else None

    async def query(self, document_filter: DocumentFilter) -> list[Document]:
        if document_filter.document_type in self.fail_query:
            raise RuntimeError(f"query failed for {document_filter.document_type}")
        return [
            copy.deepcopy(document)
            for document in self.documents.values()
            if document_filter.matches(document)
        ]

    def patch(self, document_id: str) -> Patch:
        return Patch(self, document_id)

    async def commit_patch(
        self, document_id: str, operations: list[PatchOperation]
    ) -> Document:
        if document_id in self.fail_patch:
            raise RuntimeError(f"patch failed for {document_id}")
        if document_id not in self.documents:
            raise DocumentNotFoundError(document_id)
        patched = apply_operations(self.documents[document_id], operations)
        self.documents[document_id] = patched
        self.commits.append((document_id, list(operations)))
        return copy.deepcopy(patched)

    async def publish(self, document_id: str) -> None:
        if self.fail_publish:
            raise RuntimeError("publish rejected")
        canonical = published_id(document_id)
        draft = self.documents.pop(draft_id(canonical), None)
        if draft is None:
            raise NothingToPublishError(canonical)
        self.documents[canonical] = {**draft, "id": canonical}
        self.published.append(canonical)

    async def delete(self, document_id: str) -> None:
        if document_id in self.fail_delete:
            raise RuntimeError(f"delete failed for {document_id}")
        if document_id not in self.documents:
            raise DocumentNotFoundError(document_id)
        del self.documents[document_id]
        self.deleted.append(document_id)


class ScriptedConfirmation:
    """Answers prompts from a script; records every prompt it was shown."""

    def __init__(self, answers: Iterable[bool] = (), default: bool = False) -> None:
        self._answers = list(answers)
        self._default = default
        self.prompts: list[ConfirmationPrompt] = []

    async def present(self, prompt: ConfirmationPrompt) -> bool:
        self.prompts.append(prompt)
        if self._answers:
            return self._answers.pop(0)
        return self._default

    @property
    def kinds(self) -> list[str]:
        return [str(prompt.kind) for prompt in self.prompts]


def ref(target_id: str, key: str | None = None) -> dict[str, Any]:
    """Build a stored reference element."""
    return {"kind": "reference", "ref": target_id, "key": key or f"k-{target_id}"}


def artist(artist_id: str, *events: str, name: str | None = None) -> Document:
    return {
        "id": artist_id,
        "type": "artist",
        "name": name or f"Artist {published_id(artist_id)}",
        "events": [ref(event_id) for event_id in events],
    }


def event(event_id: str, *artists: str, title: str | None = None, **extra: Any) -> Document:
    return {
        "id": event_id,
        "type": "event",
        "title_no": title or f"Event {published_id(event_id)}",
        "artist": [ref(artist_id) for artist_id in artists],
        **extra,
    }


def listing(page_type: str, field: str, *ids: str, page_id: str | None = None) -> Document:
    return {"id": page_id or page_type, "type": page_type, field: [ref(i) for i in ids]}


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def make_store() -> Callable[..., InMemoryDocumentStore]:
    return lambda *documents: InMemoryDocumentStore(documents)


@pytest.fixture
def confirmation() -> Callable[..., ScriptedConfirmation]:
    """Factory: ``confirmation(True, False)`` answers two prompts in order."""
    return lambda *answers, default=False: ScriptedConfirmation(answers, default)


@pytest.fixture
def sequential_keys() -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"key-{next(counter)}"


@pytest.fixture
def docs() -> SimpleNamespace:
    """Document builders: ``docs.artist``, ``docs.event``, ``docs.listing``, ``docs.ref``."""
    return SimpleNamespace(artist=artist, event=event, listing=listing, ref=ref)
