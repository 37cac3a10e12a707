"""Search-and-score workflow.

One query runs as: search -> collapse duplicate hits -> for each hit, in
order: upsert raw opportunity -> qualify -> upsert scored opportunity ->
mark raw processed. A failure on one hit is logged and recorded on its
outcome; the rest of the batch still runs and completed writes are kept.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from ..applications.lifecycle import load_active_proposal_count
from ..deduplicator import Deduplicator
from ..errors import QualificationValidationError, require_user
from ..models.batch_report import BatchReport, ScoringOutcome
from ..models.company_profile import CompanyProfile
from ..models.opportunity_raw import DEFAULT_SOURCE, RawOpportunity
from ..models.opportunity_scored import HitlStatus, Qualification, ScoredOpportunity
from ..models.search import SearchFilters
from ..profile import build_default_profile
from ..scorer.engine import score_opportunity
from ..scorer.validation import fallback_qualification, qualify_or_fallback
from ..scorer.weights import DEFAULT_RUBRIC, ScoringRubric

logger = logging.getLogger(__name__)


def resolve_profile(store, user_id: str, profile: Optional[CompanyProfile] = None) -> CompanyProfile:
    """Explicit profile, else the user's saved profile, else the default profile."""
    if profile is not None:
        return profile
    saved = store.get_company_profile(user_id)
    if saved is not None:
        return saved
    logger.info("No saved company profile for user %s, using default profile", user_id)
    return build_default_profile()


async def qualify(
    opportunity: RawOpportunity,
    profile: CompanyProfile,
    active_proposal_count: int,
    qualifier=None,
    rubric: ScoringRubric = DEFAULT_RUBRIC,
    now: Optional[datetime] = None,
) -> tuple[Qualification, bool]:
    """Qualify one opportunity; returns (qualification, used_fallback).

    Without a qualifier the rule-based policy is used. Malformed qualifier
    output is replaced by the conservative fallback.
    """
    if qualifier is None:
        return score_opportunity(opportunity, profile, active_proposal_count, rubric, now), False

    try:
        payload = await qualifier.qualify(opportunity, profile)
    except QualificationValidationError as e:
        logger.warning("Qualification for '%s' unusable, using fallback: %s", opportunity.title, e)
        return fallback_qualification(str(e)), True

    return qualify_or_fallback(
        payload,
        active_proposal_count=active_proposal_count,
        rubric=rubric,
        method=getattr(qualifier, "model", None),
    )


async def search_and_score(
    query: str,
    user_id: str,
    store,
    searcher,
    qualifier=None,
    filters: Optional[SearchFilters] = None,
    profile: Optional[CompanyProfile] = None,
    rubric: ScoringRubric = DEFAULT_RUBRIC,
    source: str = DEFAULT_SOURCE,
    now: Optional[datetime] = None,
) -> BatchReport:
    """Search for grants and score every hit for one user.

    Raises:
        NotAuthenticatedError: without a user id; nothing runs
        CollaboratorUnavailableError: if the search itself fails
    """
    user_id = require_user(user_id)
    now = now or datetime.now(timezone.utc)

    logger.info("=" * 60)
    logger.info("Starting search-and-score for query: %s", query)
    logger.info("=" * 60)

    result = await searcher.search(query, filters)
    report = BatchReport(query=query, citations=result.citations, started_at=now)

    opportunities = Deduplicator().deduplicate(
        [RawOpportunity.from_search_hit(hit, source) for hit in result.grants]
    )
    if not opportunities:
        logger.info("No grant opportunities found for query")
        report.completed_at = datetime.now(timezone.utc)
        return report

    profile = resolve_profile(store, user_id, profile)
    active_count = max(
        load_active_proposal_count(store, user_id, now, rubric.active_window_days),
        profile.active_proposal_count,
    )

    for opportunity in opportunities:
        outcome = ScoringOutcome(title=opportunity.title, external_id=opportunity.external_id)
        report.outcomes.append(outcome)
        try:
            raw = store.upsert_raw_opportunity(opportunity)
            outcome.raw_id = raw.id

            qualification, outcome.used_fallback = await qualify(
                raw, profile, active_count, qualifier, rubric, now
            )

            existing = store.get_scored_for_raw(user_id, raw.id)
            scored = ScoredOpportunity.from_qualification(
                qualification,
                user_id=user_id,
                opportunity_raw_id=raw.id,
                hitl_status=existing.hitl_status if existing else HitlStatus.PENDING,
                snoozed_until=existing.snoozed_until if existing else None,
            )
            stored = store.upsert_scored_opportunity(scored)
            store.mark_raw_processed(raw.id)

            outcome.scored_id = stored.id
            outcome.total_score = stored.total_score
            outcome.decision = stored.decision
            logger.info(
                "✓ %s: total=%d decision=%s", opportunity.title, stored.total_score, stored.decision.value
            )
        except Exception as e:
            outcome.error = str(e) or type(e).__name__
            logger.error("✗ Failed to score '%s': %s", opportunity.title, e, exc_info=True)

    report.completed_at = datetime.now(timezone.utc)
    duration = (report.completed_at - report.started_at).total_seconds()
    logger.info(
        "Search-and-score completed: %d scored, %d failed in %.2f seconds",
        len(report.succeeded),
        len(report.failed),
        duration,
    )
    return report
