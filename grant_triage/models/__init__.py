"""Shared Pydantic models - contract between scoring, triage and storage."""

from .search import SearchFilters, SearchHit, SearchResult
from .opportunity_raw import RawOpportunity, derive_external_id
from .opportunity_scored import (
    Decision,
    HitlStatus,
    Qualification,
    QualificationScores,
    ScoredOpportunity,
    decision_for_score,
)
from .application import Application, ApplicationSection, ApplicationStatus
from .company_profile import CompanyProfile
from .batch_report import BatchReport, ScoringOutcome

__all__ = [
    "SearchFilters",
    "SearchHit",
    "SearchResult",
    "RawOpportunity",
    "derive_external_id",
    "Decision",
    "HitlStatus",
    "Qualification",
    "QualificationScores",
    "ScoredOpportunity",
    "decision_for_score",
    "Application",
    "ApplicationSection",
    "ApplicationStatus",
    "CompanyProfile",
    "BatchReport",
    "ScoringOutcome",
]
