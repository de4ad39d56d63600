"""Static declarations of relationship pairs, listing pages and delete cleanup.

Everything entity-specific lives here as data; the sync and workflow modules
only ever see these dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RelationshipPair:
    """``source_type.source_field`` and ``target_type.target_field`` mirror each other."""

    source_type: str
    source_field: str
    target_type: str
    target_field: str

    def reversed(self) -> RelationshipPair:
        return RelationshipPair(
            source_type=self.target_type,
            source_field=self.target_field,
            target_type=self.source_type,
            target_field=self.source_field,
        )


@dataclass(frozen=True)
class DerivedField:
    """A sort key copied from the document referenced in ``reference_field``."""

    reference_field: str
    target_field: str
    source_value_path: str


@dataclass(frozen=True)
class ListingPage:
    """A singleton page document holding curated references."""

    document_type: str
    field: str
    label: str


@dataclass(frozen=True)
class ReferrerConfig:
    """A (type, field) pair that may hold references to a deleted document."""

    referring_type: str
    field_path: str
    display_label: str
    singular_form: str
    plural_form: str

    def count_label(self, count: int) -> str:
        return f"{count} {self.plural_form if count != 1 else self.singular_form}"


@dataclass(frozen=True)
class DeleteConfig:
    document_type: str
    label_singular: str
    references: tuple[ReferrerConfig, ...] = ()


@dataclass(frozen=True)
class EntityConfig:
    """Everything the publish and delete actions need for one document type."""

    document_type: str
    label_singular: str
    label_plural: str
    delete: DeleteConfig
    relationship: RelationshipPair | None = None
    target_label_singular: str = ""
    target_label_plural: str = ""
    derived_field: DerivedField | None = None
    listing: ListingPage | None = None


ARTIST_EVENTS = RelationshipPair(
    source_type="artist",
    source_field="events",
    target_type="event",
    target_field="artist",
)
EVENT_ARTISTS = ARTIST_EVENTS.reversed()

EVENT_DATE_VALUE = DerivedField(
    reference_field="eventDate",
    target_field="eventDateValue",
    source_value_path="date",
)

ARTIST_PAGE = ListingPage(
    document_type="artistPage", field="selectedArtists", label="artist page"
)
PROGRAM_PAGE = ListingPage(
    document_type="programPage", field="selectedEvents", label="program page"
)
ARTICLE_PAGE = ListingPage(
    document_type="articlePage", field="selectedArticles", label="article page"
)

ARTICLE_DELETE = DeleteConfig(
    document_type="article",
    label_singular="article",
    references=(
        ReferrerConfig(
            referring_type="articlePage",
            field_path="selectedArticles",
            display_label="article overview",
            singular_form="page",
            plural_form="pages",
        ),
    ),
)

ARTIST_DELETE = DeleteConfig(
    document_type="artist",
    label_singular="artist",
    references=(
        ReferrerConfig(
            referring_type="artistPage",
            field_path="selectedArtists",
            display_label="artist overview",
            singular_form="page",
            plural_form="pages",
        ),
        ReferrerConfig(
            referring_type="event",
            field_path="artist",
            display_label="event",
            singular_form="event",
            plural_form="events",
        ),
    ),
)

EVENT_DELETE = DeleteConfig(
    document_type="event",
    label_singular="event",
    references=(
        ReferrerConfig(
            referring_type="programPage",
            field_path="selectedEvents",
            display_label="program overview",
            singular_form="page",
            plural_form="pages",
        ),
        ReferrerConfig(
            referring_type="artist",
            field_path="events",
            display_label="artist",
            singular_form="artist",
            plural_form="artists",
        ),
    ),
)

ENTITIES: dict[str, EntityConfig] = {
    "artist": EntityConfig(
        document_type="artist",
        label_singular="artist",
        label_plural="artists",
        delete=ARTIST_DELETE,
        relationship=ARTIST_EVENTS,
        target_label_singular="event",
        target_label_plural="events",
        listing=ARTIST_PAGE,
    ),
    "event": EntityConfig(
        document_type="event",
        label_singular="event",
        label_plural="events",
        delete=EVENT_DELETE,
        relationship=EVENT_ARTISTS,
        target_label_singular="artist",
        target_label_plural="artists",
        derived_field=EVENT_DATE_VALUE,
        listing=PROGRAM_PAGE,
    ),
    "article": EntityConfig(
        document_type="article",
        label_singular="article",
        label_plural="articles",
        delete=ARTICLE_DELETE,
        listing=ARTICLE_PAGE,
    ),
}


def get_entity_config(document_type: str | None) -> EntityConfig | None:
    """Look up the configuration for a document type, if it has one."""
    if document_type is None:
        return None
    return ENTITIES.get(document_type)


def relationship_pairs() -> list[RelationshipPair]:
    """Every declared pair, one per direction."""
    return [config.relationship for config in ENTITIES.values() if config.relationship]


def reference_fields() -> list[tuple[str, str]]:
    """Every (type, field) holding a reference array, for maintenance scans."""
    fields: set[tuple[str, str]] = set()
    for config in ENTITIES.values():
        if config.relationship:
            pair = config.relationship
            fields.add((pair.source_type, pair.source_field))
            fields.add((pair.target_type, pair.target_field))
        if config.listing:
            fields.add((config.listing.document_type, config.listing.field))
    return sorted(fields)
