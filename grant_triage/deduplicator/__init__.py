"""Search hit deduplication."""

from .dedup import Deduplicator

__all__ = ["Deduplicator"]
