"""Bidirectional reference consistency for a revisioned document store."""

__version__ = "0.1.0"
