"""Field-level patch builder committed through a document store."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel

if TYPE_CHECKING:
    from studio_sync.documents import Document


class PatchOp(StrEnum):
    """Supported field-level patch operations."""

    SET = "set"
    SET_IF_MISSING = "setIfMissing"
    APPEND = "append"
    UNSET = "unset"


@dataclass(frozen=True)
class PatchOperation:
    op: PatchOp
    field: str
    value: Any = None


class PatchCommitter(Protocol):
    """Anything that can apply a list of operations to one document."""

    async def commit_patch(
        self, document_id: str, operations: list[PatchOperation]
    ) -> Document: ...


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


def apply_operations(document: Document, operations: list[PatchOperation]) -> Document:
    """Apply patch operations in order and return the patched copy.

    Raises ``ValueError`` when appending to a field that is not an array.
    """
    patched = copy.deepcopy(document)
    for operation in operations:
        if operation.op is PatchOp.SET:
            patched[operation.field] = copy.deepcopy(operation.value)
        elif operation.op is PatchOp.SET_IF_MISSING:
            if patched.get(operation.field) is None:
                patched[operation.field] = copy.deepcopy(operation.value)
        elif operation.op is PatchOp.APPEND:
            current = patched.get(operation.field)
            if not isinstance(current, list):
                msg = f"Cannot append to non-array field '{operation.field}'"
                raise ValueError(msg)
            current.extend(copy.deepcopy(operation.value))
        elif operation.op is PatchOp.UNSET:
            patched.pop(operation.field, None)
    return patched


class Patch:
    """Chainable patch for a single document revision.

    ``store.patch(doc_id).set_if_missing({"events": []}).append("events", [ref]).commit()``
    """

    def __init__(self, committer: PatchCommitter, document_id: str) -> None:
        self._committer = committer
        self.document_id = document_id
        self.operations: list[PatchOperation] = []

    def set(self, values: dict[str, Any]) -> Patch:
        for field, value in values.items():
            self.operations.append(PatchOperation(PatchOp.SET, field, _plain(value)))
        return self

    def set_if_missing(self, values: dict[str, Any]) -> Patch:
        for field, value in values.items():
            self.operations.append(
                PatchOperation(PatchOp.SET_IF_MISSING, field, _plain(value))
            )
        return self

    def append(self, field: str, items: list[Any]) -> Patch:
        self.operations.append(
            PatchOperation(PatchOp.APPEND, field, [_plain(item) for item in items])
        )
        return self

    def unset(self, fields: list[str]) -> Patch:
        for field in fields:
            self.operations.append(PatchOperation(PatchOp.UNSET, field))
        return self

    async def commit(self) -> Document:
        """Send the accumulated operations to the store."""
        return await self._committer.commit_patch(self.document_id, self.operations)
