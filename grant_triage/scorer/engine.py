"""Rule-based scoring policy for grant opportunities.

Scores four components (strategic fit, win probability, resource
efficiency, strategic value) from keyword and amount rules, then applies
the intersectional/large-award bonuses and the capacity penalty. The
output is deterministic for identical inputs and an identical `now`.
"""

import re
from datetime import date, datetime, timezone
from typing import NamedTuple, Optional

from ..models.company_profile import CompanyProfile
from ..models.opportunity_raw import RawOpportunity
from ..models.opportunity_scored import Qualification, decision_for_score
from .semantic_map import (
    DISTINCT_AREAS,
    SOCIAL_ADJACENT,
    SOCIAL_COMPANION,
    SOCIAL_CORE,
    SOCIAL_GENERAL,
    TECHNICAL_ADJACENT,
    TECHNICAL_GENERAL,
    TECHNICAL_PRIMARY,
    find_focus_matches,
    matched_combinations,
    phrase_in_text,
)
from .weights import DEFAULT_RUBRIC, ScoringRubric

RULE_BASED_METHOD = "rule-based-v1"

# Same mapping the stored decision uses
get_decision = decision_for_score

DEFAULT_GEOGRAPHIC_PRIORITIES = ["USA", "EU"]

REGION_ALIASES = {
    "usa": ["united states", "usa", "u.s.", "us-based", "nationwide", "domestic"],
    "us": ["united states", "usa", "u.s.", "us-based", "nationwide", "domestic"],
    "eu": ["european union", "europe", "eu", "horizon europe", "eu member states"],
}

US_AGENCIES = [
    "department of energy",
    "doe",
    "arpa-e",
    "national science foundation",
    "nsf",
    "environmental protection agency",
    "epa",
    "department of labor",
    "department of education",
    "national institutes of health",
    "nih",
    "usda",
    "department of defense",
    "dod",
]

MAJOR_AGENCIES = US_AGENCIES + ["european commission", "horizon europe", "eic"]

INELIGIBLE_RESTRICTIONS = [
    "nonprofits only",
    "non-profits only",
    "nonprofit organizations only",
    "universities only",
    "institutions of higher education only",
    "only institutions of higher education",
    "state governments only",
    "tribal governments only",
    "individuals only",
]

NICHE_SIGNALS = ["limited competition", "limited submission", "niche", "first-of-its-kind", "pilot program"]
CROWDED_SIGNALS = ["highly competitive", "very competitive", "thousands of applications"]

MULTI_STAGE_SIGNALS = [
    "pre-application",
    "letter of intent",
    "concept paper",
    "two-stage",
    "full proposal by invitation",
]

NO_COST_SHARE_SIGNALS = [
    "no cost share",
    "no cost-share",
    "cost share is not required",
    "cost sharing is not required",
    "no match required",
    "no matching required",
]
FULL_MATCH_SIGNALS = ["dollar-for-dollar", "1:1 match", "100% match", "one-to-one match"]
IN_KIND_SIGNALS = ["in-kind"]
COST_SHARE_SIGNALS = ["cost share", "cost-share", "cost sharing", "matching funds", "match required"]

PARTNERSHIP_SIGNALS = [
    "consortium",
    "partnership",
    "partnerships",
    "industry partner",
    "industry partners",
    "national laboratory",
    "national laboratories",
    "national lab",
    "collaborative",
]

PIPELINE_SIGNALS = ["phase i", "phase 1", "multi-phase", "follow-on", "phase ii", "phase 2"]
MULTI_YEAR_SIGNALS = ["multi-year", "multiyear", "multi year"]

_POOL_RE = re.compile(r"(\d[\d,]*)\s+(?:applications|applicants|proposals|submissions)\b", re.IGNORECASE)
_COST_SHARE_PCT_RE = re.compile(
    r"(\d{1,3})\s*%\s*(?:non-federal\s+)?(?:cost[- ]share|cost[- ]sharing|match|matching)"
    r"|(?:cost[- ]share|cost[- ]sharing|match(?:ing)?)\s+(?:of\s+|at\s+)?(\d{1,3})\s*%",
    re.IGNORECASE,
)


class SubScore(NamedTuple):
    score: int
    reason: Optional[str] = None


class CostShare(NamedTuple):
    required: bool
    percent: Optional[float]
    in_kind_only: bool = False


def score_opportunity(
    opportunity: RawOpportunity,
    profile: Optional[CompanyProfile] = None,
    active_proposal_count: Optional[int] = None,
    rubric: ScoringRubric = DEFAULT_RUBRIC,
    now: Optional[datetime] = None,
) -> Qualification:
    """Score a raw opportunity for one organization.

    Args:
        opportunity: Opportunity to score
        profile: Organization profile (keywords, regions, cost share, credentials)
        active_proposal_count: Overrides the profile's active proposal count
        rubric: Bonus and penalty parameters
        now: Reference time for deadline risks

    Returns:
        Qualification with component scores, bonus, penalty, reasons and risks
    """

    now = now or datetime.now(timezone.utc)
    text = opportunity.full_text
    matches = find_focus_matches(text)
    areas = frozenset(area for area, _, _ in matches)
    risks: list[str] = []

    technical = _score_technical(areas, text, profile)
    social = _score_social(areas)
    geographic = _score_geographic(opportunity, text, profile, risks)

    competition = _score_competition(text, rubric, risks)
    differentiation = _score_differentiation(areas)
    track_record = _score_track_record(opportunity, text, areas, profile)

    cost_share = _detect_cost_share(text)
    cost_benefit = _score_cost_benefit(opportunity, text, risks)
    leverage = _score_cost_share(cost_share, profile, risks)

    partnership = _score_partnership(opportunity, text)
    pipeline = _score_pipeline(text)

    sub_scores = {
        "technical_alignment": technical,
        "social_alignment": social,
        "geographic_priority": geographic,
        "competition_density": competition,
        "differentiation": differentiation,
        "track_record": track_record,
        "cost_benefit": cost_benefit,
        "cost_share_leverage": leverage,
        "partnership_access": partnership,
        "pipeline_continuation": pipeline,
    }

    combinations = matched_combinations(areas)
    intersectional = rubric.intersectional_bonus if combinations else 0
    award = opportunity.award_amount
    large_award = (
        rubric.large_award_bonus
        if award is not None
        and award > rubric.large_award_threshold
        and cost_share.percent is not None
        and cost_share.percent < rubric.large_award_max_cost_share
        else 0
    )

    if active_proposal_count is None:
        active_proposal_count = profile.active_proposal_count if profile else 0
    penalty = capacity_penalty_for(active_proposal_count, rubric)
    if penalty:
        risks.append("Capacity ceiling exceeded")

    _add_deadline_risks(opportunity.deadline, now.date(), rubric, risks)

    qualification = Qualification(
        strategic_fit_score=technical.score + social.score + geographic.score,
        win_probability_score=competition.score + differentiation.score + track_record.score,
        resource_efficiency_score=cost_benefit.score + leverage.score,
        strategic_value_score=partnership.score + pipeline.score,
        bonus_points=intersectional + large_award,
        capacity_penalty=penalty,
        match_reasons=[s.reason for s in sub_scores.values() if s.score > 0 and s.reason],
        risks=risks,
    )

    if intersectional:
        qualification.match_reasons.append(f"Intersectional focus: {', '.join(combinations)}")
    if large_award:
        qualification.match_reasons.append("Large award with low cost share")
    if qualification.exceeds_scale:
        qualification.risks.append("Score exceeds 100-point scale")

    qualification.scoring_details = {
        "method": RULE_BASED_METHOD,
        "rubric_version": rubric.version,
        "sub_scores": {name: s.score for name, s in sub_scores.items()},
        "focus_areas": sorted(areas),
        "focus_evidence": {area: context for area, _, context in matches},
        "combinations": combinations,
        "bonus": {"intersectional": intersectional, "large_award": large_award},
        "active_proposal_count": active_proposal_count,
        "required_cost_share_pct": cost_share.percent,
        "display_score": qualification.display_score,
        "exceeds_scale": qualification.exceeds_scale,
    }

    return qualification


def capacity_penalty_for(active_proposal_count: int, rubric: ScoringRubric = DEFAULT_RUBRIC) -> int:
    """Penalty applied when active unsubmitted proposals exceed the ceiling."""
    return rubric.capacity_penalty if active_proposal_count > rubric.capacity_ceiling else 0


def _any(phrases: list[str], text: str) -> bool:
    return any(phrase_in_text(p, text) for p in phrases)


def _score_technical(areas: frozenset, text: str, profile: Optional[CompanyProfile]) -> SubScore:
    if areas & TECHNICAL_PRIMARY:
        return SubScore(15, "Primary technical focus: lithium/battery recycling")
    if areas & TECHNICAL_ADJACENT:
        names = ", ".join(sorted(areas & TECHNICAL_ADJACENT)).replace("_", " ")
        return SubScore(10, f"Adjacent technical focus: {names}")
    if profile and _any(profile.keywords, text):
        return SubScore(10, "Matches organization keywords")
    if areas & TECHNICAL_GENERAL:
        return SubScore(5, "General STEM/innovation scope")
    if profile and _any(profile.sectors, text):
        return SubScore(5, "Matches organization sector")
    return SubScore(0)


def _score_social(areas: frozenset) -> SubScore:
    if areas & SOCIAL_CORE and areas & SOCIAL_COMPANION:
        return SubScore(15, "Autism/neurodiversity with employment or underserved focus")
    if areas & SOCIAL_CORE:
        return SubScore(10, "Autism/neurodiversity focus")
    if areas & SOCIAL_ADJACENT:
        return SubScore(10, "Disability or inclusive education focus")
    if areas & (SOCIAL_COMPANION | SOCIAL_GENERAL):
        return SubScore(5, "General social impact")
    return SubScore(0)


def _score_geographic(
    opportunity: RawOpportunity, text: str, profile: Optional[CompanyProfile], risks: list[str]
) -> SubScore:
    if _any(INELIGIBLE_RESTRICTIONS, text):
        risks.append("Eligibility restricted to other entity types")
        return SubScore(0)

    priorities = (profile.geographic_priorities if profile else None) or DEFAULT_GEOGRAPHIC_PRIORITIES
    agency = opportunity.agency or ""
    for region in priorities:
        key = region.strip().lower()
        aliases = REGION_ALIASES.get(key, [key])
        if _any(aliases, text):
            return SubScore(10, f"Priority region: {region}")
        if key in ("usa", "us") and agency and _any(US_AGENCIES, agency):
            return SubScore(10, f"Priority region: {region}")

    return SubScore(5, "Eligible region")


def _score_competition(text: str, rubric: ScoringRubric, risks: list[str]) -> SubScore:
    match = _POOL_RE.search(text)
    if match:
        pool = int(match.group(1).replace(",", ""))
        if pool < rubric.competition_niche_max:
            return SubScore(10, f"Small applicant pool (~{pool})")
        if pool > rubric.competition_crowded_min:
            risks.append("High competition expected")
            return SubScore(0)
        return SubScore(5, f"Moderate applicant pool (~{pool})")

    if _any(CROWDED_SIGNALS, text):
        risks.append("High competition expected")
        return SubScore(0)
    if _any(NICHE_SIGNALS, text):
        return SubScore(10, "Niche or limited competition")
    return SubScore(5, "Typical competition")


def _score_differentiation(areas: frozenset) -> SubScore:
    distinct = areas & DISTINCT_AREAS
    if len(distinct) >= 2:
        return SubScore(10, "Distinctive combination of focus areas")
    if distinct:
        return SubScore(5, "Single focus area differentiation")
    return SubScore(0)


def _score_track_record(
    opportunity: RawOpportunity, text: str, areas: frozenset, profile: Optional[CompanyProfile]
) -> SubScore:
    credentials = profile.team_credentials if profile else []
    agency = (opportunity.agency or "").strip()

    for credential in credentials:
        if phrase_in_text(credential, text) or (agency and phrase_in_text(agency, credential)):
            return SubScore(10, f"Prior funded work: {credential}")

    specific = areas & DISTINCT_AREAS
    for credential in credentials:
        credential_areas = {area for area, _, _ in find_focus_matches(credential)}
        if credential_areas & specific:
            return SubScore(5, "Related prior experience")

    if not credentials and areas & (TECHNICAL_PRIMARY | TECHNICAL_ADJACENT):
        return SubScore(5, "Related technical experience")
    return SubScore(0)


def _score_cost_benefit(opportunity: RawOpportunity, text: str, risks: list[str]) -> SubScore:
    award = opportunity.award_amount
    if award is None:
        risks.append("Award amount not specified")
        score, reason = 5, None
    elif award >= 1_000_000:
        score, reason = 10, f"Award ${award:,.0f}"
    elif award >= 500_000:
        score, reason = 8, f"Award ${award:,.0f}"
    elif award >= 150_000:
        score, reason = 6, f"Award ${award:,.0f}"
    elif award >= 50_000:
        score, reason = 4, f"Award ${award:,.0f}"
    elif award > 0:
        score, reason = 2, f"Award ${award:,.0f}"
    else:
        score, reason = 0, None

    if _any(MULTI_STAGE_SIGNALS, text):
        score = max(0, score - 2)

    return SubScore(score, reason)


def _detect_cost_share(text: str) -> CostShare:
    if _any(NO_COST_SHARE_SIGNALS, text):
        return CostShare(required=False, percent=0.0)
    if _any(FULL_MATCH_SIGNALS, text):
        return CostShare(required=True, percent=100.0)

    match = _COST_SHARE_PCT_RE.search(text)
    if match:
        percent = float(match.group(1) or match.group(2))
        return CostShare(required=percent > 0, percent=percent)

    if _any(COST_SHARE_SIGNALS, text):
        return CostShare(required=True, percent=None, in_kind_only=_any(IN_KIND_SIGNALS, text))
    return CostShare(required=False, percent=0.0)


def _score_cost_share(
    cost_share: CostShare, profile: Optional[CompanyProfile], risks: list[str]
) -> SubScore:
    if not cost_share.required:
        return SubScore(10, "No cost share required")

    risks.append("Cost share required")
    capacity = profile.cost_share_capacity if profile else None

    if cost_share.percent is not None:
        if capacity is not None and capacity >= cost_share.percent:
            return SubScore(10, f"Cost share ({cost_share.percent:.0f}%) covered by committed partners")
        if cost_share.percent >= 100:
            return SubScore(0)
        return SubScore(5, f"Partial cost share ({cost_share.percent:.0f}%)")

    if cost_share.in_kind_only:
        return SubScore(5, "In-kind cost share accepted")
    return SubScore(5, "Cost share amount unspecified")


def _score_partnership(opportunity: RawOpportunity, text: str) -> SubScore:
    if _any(PARTNERSHIP_SIGNALS, text):
        return SubScore(5, "Partnership or consortium access")
    if opportunity.agency and _any(MAJOR_AGENCIES, opportunity.agency):
        return SubScore(3, f"Major agency: {opportunity.agency}")
    return SubScore(0)


def _score_pipeline(text: str) -> SubScore:
    if _any(PIPELINE_SIGNALS, text):
        return SubScore(5, "First phase of a multi-phase program")
    if _any(MULTI_YEAR_SIGNALS, text):
        return SubScore(3, "Multi-year funding")
    return SubScore(0)


def _add_deadline_risks(
    deadline: Optional[date], today: date, rubric: ScoringRubric, risks: list[str]
) -> None:
    if deadline is None:
        return
    days_left = (deadline - today).days
    if days_left < 0:
        risks.append("Deadline passed")
    elif days_left <= rubric.deadline_warning_days:
        risks.append("Deadline very near")
