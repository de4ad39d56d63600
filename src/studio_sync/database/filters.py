"""Structured document filters compiled to parameterised Cosmos SQL."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from studio_sync.documents import Document, draft_id, has_reference, published_id

_FIELD_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _checked_field(name: str) -> str:
    """Field names cannot be query parameters, so only plain identifiers pass."""
    if not _FIELD_NAME.match(name):
        msg = f"Invalid field name: {name!r}"
        raise ValueError(msg)
    return name


@dataclass(frozen=True)
class DocumentFilter:
    """Select documents of one type, optionally referencing a target id.

    Both draft and published revisions match; callers group by published id.
    """

    document_type: str
    field: str | None = None
    references: str | None = None

    def __post_init__(self) -> None:
        if (self.field is None) != (self.references is None):
            msg = "field and references must be given together"
            raise ValueError(msg)
        if self.field is not None:
            _checked_field(self.field)

    def matches(self, document: Document) -> bool:
        """Evaluate the filter against an in-memory document."""
        if document.get("type") != self.document_type:
            return False
        if self.field is None or self.references is None:
            return True
        return has_reference(document.get(self.field), self.references)

    def to_sql(self) -> tuple[str, list[dict[str, Any]]]:
        """Compile to a Cosmos SQL query and its parameters."""
        query = "SELECT * FROM c WHERE c.type = @type"
        parameters: list[dict[str, Any]] = [
            {"name": "@type", "value": self.document_type},
        ]
        if self.field is not None and self.references is not None:
            target = published_id(self.references)
            query += (
                f' AND EXISTS(SELECT VALUE r FROM r IN c["{self.field}"]'
                " WHERE r.ref = @ref OR r.ref = @draft_ref OR r = @ref)"
            )
            parameters += [
                {"name": "@ref", "value": target},
                {"name": "@draft_ref", "value": draft_id(target)},
            ]
        return query, parameters
