"""Document-store access: Cosmos client, store boundary, patches and filters."""

from studio_sync.database.client import CosmosClient
from studio_sync.database.filters import DocumentFilter
from studio_sync.database.patch import Patch, PatchOp, PatchOperation
from studio_sync.database.store import CosmosDocumentStore, DocumentStore

__all__ = [
    "CosmosClient",
    "CosmosDocumentStore",
    "DocumentFilter",
    "DocumentStore",
    "Patch",
    "PatchOp",
    "PatchOperation",
]
