"""Collaborator clients for search, qualification and drafting."""

from .search import PerplexitySearchAdapter
from .qualification import QualificationAdapter
from .drafting import DraftAdapter

__all__ = ["PerplexitySearchAdapter", "QualificationAdapter", "DraftAdapter"]
