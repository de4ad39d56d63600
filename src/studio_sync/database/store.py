"""Document-store boundary and its Cosmos DB implementation.

Each document revision is one item in a single container partitioned by
``/id``; draft revisions carry the ``drafts.`` id prefix.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, cast, runtime_checkable

from azure.core import MatchConditions
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError

from studio_sync.database.patch import Patch, PatchOperation, apply_operations
from studio_sync.documents import Document, draft_id, published_id
from studio_sync.exceptions import (
    ConcurrentModificationError,
    DocumentNotFoundError,
    NothingToPublishError,
)

if TYPE_CHECKING:
    from azure.cosmos.aio import DatabaseProxy

    from studio_sync.database.filters import DocumentFilter

logger = logging.getLogger(__name__)

_HTTP_PRECONDITION_FAILED = 412
_SYSTEM_FIELDS = frozenset({"_rid", "_self", "_etag", "_attachments", "_ts"})


@runtime_checkable
class DocumentStore(Protocol):
    """Read, patch, publish and delete primitives of the document store."""

    async def get(self, document_id: str) -> Document | None:
        """Fetch one revision by its exact id, or None when absent."""
        ...

    async def query(self, document_filter: DocumentFilter) -> list[Document]:
        """Fetch every revision matching the filter."""
        ...

    def patch(self, document_id: str) -> Patch:
        """Start a field-level patch against one revision."""
        ...

    async def commit_patch(
        self, document_id: str, operations: list[PatchOperation]
    ) -> Document:
        """Apply patch operations to one revision."""
        ...

    async def publish(self, document_id: str) -> None:
        """Promote the draft revision to the published id."""
        ...

    async def delete(self, document_id: str) -> None:
        """Delete one revision; raises DocumentNotFoundError when absent."""
        ...


def _strip_system_fields(item: dict[str, Any]) -> Document:
    return {key: value for key, value in item.items() if key not in _SYSTEM_FIELDS}


class CosmosDocumentStore:
    """DocumentStore backed by an async Cosmos DB container."""

    def __init__(self, database: DatabaseProxy, container_name: str = "documents") -> None:
        self._container = database.get_container_client(container_name)

    async def _read(self, document_id: str) -> dict[str, Any] | None:
        try:
            return cast(
                "dict[str, Any]",
                await self._container.read_item(
                    item=document_id, partition_key=document_id
                ),
            )
        except CosmosResourceNotFoundError:
            return None

    async def get(self, document_id: str) -> Document | None:
        item = await self._read(document_id)
        return _strip_system_fields(item) if item is not None else None

    async def query(self, document_filter: DocumentFilter) -> list[Document]:
        query, parameters = document_filter.to_sql()
        return [
            _strip_system_fields(cast("dict[str, Any]", item))
            async for item in self._container.query_items(
                query=query, parameters=parameters
            )
        ]

    def patch(self, document_id: str) -> Patch:
        return Patch(self, document_id)

    async def commit_patch(
        self, document_id: str, operations: list[PatchOperation]
    ) -> Document:
        """Read, apply and replace the item guarded by its etag."""
        data = await self._read(document_id)
        if data is None:
            raise DocumentNotFoundError(document_id)

        etag = data.get("_etag")
        body = apply_operations(_strip_system_fields(data), operations)
        kwargs: dict[str, Any] = {}
        if isinstance(etag, str):
            kwargs = {"etag": etag, "match_condition": MatchConditions.IfNotModified}

        try:
            replaced = await self._container.replace_item(
                item=document_id, body=body, **kwargs
            )
        except CosmosHttpResponseError as exc:
            if exc.status_code == _HTTP_PRECONDITION_FAILED:
                raise ConcurrentModificationError(document_id) from exc
            raise

        logger.debug(
            "Patch committed — document=%s operations=%d", document_id, len(operations)
        )
        return _strip_system_fields(cast("dict[str, Any]", replaced))

    async def publish(self, document_id: str) -> None:
        canonical = published_id(document_id)
        draft = await self._read(draft_id(canonical))
        if draft is None:
            raise NothingToPublishError(canonical)

        body = {**_strip_system_fields(draft), "id": canonical}
        await self._container.upsert_item(body=body)
        await self._container.delete_item(
            item=draft_id(canonical), partition_key=draft_id(canonical)
        )
        logger.info("Document published — id=%s", canonical)

    async def delete(self, document_id: str) -> None:
        try:
            await self._container.delete_item(item=document_id, partition_key=document_id)
        except CosmosResourceNotFoundError as exc:
            raise DocumentNotFoundError(document_id) from exc
        logger.info("Document revision deleted — id=%s", document_id)
