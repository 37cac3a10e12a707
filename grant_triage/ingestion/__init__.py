"""Search-and-score workflow."""

from .runner import qualify, resolve_profile, search_and_score

__all__ = ["qualify", "resolve_profile", "search_and_score"]
