"""Deterministic scoring policy for grant opportunities."""

from .engine import score_opportunity, get_decision, capacity_penalty_for
from .weights import DEFAULT_RUBRIC, load_rubric, ScoringRubric
from .semantic_map import FOCUS_AREAS, INTERSECTIONAL_COMBINATIONS, find_focus_matches
from .validation import (
    fallback_qualification,
    qualification_from_payload,
    qualify_or_fallback,
    validate_qualification,
)

__all__ = [
    "score_opportunity",
    "get_decision",
    "capacity_penalty_for",
    "DEFAULT_RUBRIC",
    "load_rubric",
    "ScoringRubric",
    "FOCUS_AREAS",
    "INTERSECTIONAL_COMBINATIONS",
    "find_focus_matches",
    "fallback_qualification",
    "qualification_from_payload",
    "qualify_or_fallback",
    "validate_qualification",
]
