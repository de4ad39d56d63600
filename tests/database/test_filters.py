"""Tests for structured document filters."""

import pytest

from studio_sync.database.filters import DocumentFilter


@pytest.mark.unit
class TestDocumentFilter:
    """Test the Document Filter."""

    def test_type_only_sql(self) -> None:
        """Verify a type filter compiles to a single parameter."""
        query, params = DocumentFilter("artistPage").to_sql()
        assert query == "SELECT * FROM c WHERE c.type = @type"
        assert params == [{"name": "@type", "value": "artistPage"}]

    def test_reference_sql_matches_published_and_draft_refs(self) -> None:
        """Verify reference filters match either id form and legacy strings."""
        query, params = DocumentFilter("event", field="artist", references="drafts.a1").to_sql()
        assert "EXISTS" in query
        assert "r = @ref" in query
        values = {p["name"]: p["value"] for p in params}
        assert values["@ref"] == "a1"
        assert values["@draft_ref"] == "drafts.a1"

    def test_rejects_unsafe_field_names(self) -> None:
        """Verify field names cannot inject SQL."""
        with pytest.raises(ValueError, match="Invalid field name"):
            DocumentFilter("event", field='artist"] OR 1=1 --', references="a1")

    def test_field_and_references_go_together(self) -> None:
        """Verify a half-specified reference filter is rejected."""
        with pytest.raises(ValueError, match="together"):
            DocumentFilter("event", field="artist")

    def test_matches(self) -> None:
        """Verify in-memory evaluation mirrors the SQL semantics."""
        document_filter = DocumentFilter("event", field="artist", references="a1")
        assert document_filter.matches({"type": "event", "artist": [{"ref": "a1", "key": "k"}]})
        assert document_filter.matches({"type": "event", "artist": ["a1"]})
        assert not document_filter.matches({"type": "event", "artist": []})
        assert not document_filter.matches({"type": "artist", "artist": ["a1"]})
