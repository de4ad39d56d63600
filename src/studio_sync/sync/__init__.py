"""Reference detection and repair primitives."""

from studio_sync.sync.derived import BackfillReport, DerivedFieldSync
from studio_sync.sync.diff import ReferenceDiffEngine
from studio_sync.sync.listing import find_listing, insert_into_listing, listing_contains
from studio_sync.sync.patches import PatchApplier, PatchFailure, PatchReport

__all__ = [
    "BackfillReport",
    "DerivedFieldSync",
    "PatchApplier",
    "PatchFailure",
    "PatchReport",
    "ReferenceDiffEngine",
    "find_listing",
    "insert_into_listing",
    "listing_contains",
]
