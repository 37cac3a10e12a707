"""LLM prompt templates for qualification scoring.

The collaborator is asked for component scores only; totals and decisions
it returns are advisory and recomputed on our side.
"""

from typing import Optional

from ..models.company_profile import CompanyProfile
from ..models.opportunity_raw import RawOpportunity

QUALIFICATION_SYSTEM_PROMPT = """You are a grant qualification analyst. Score each opportunity for the organization described by the user using this rubric.

STRATEGIC FIT (0-40):
- Technical alignment (0-15): 15 lithium/battery recycling, 10 critical minerals, clean water or circular economy, 5 general STEM, 0 unrelated
- Mission/social alignment (0-15): 15 autism employment together with underserved communities, 10 disability or inclusive education, 5 general social impact, 0 none
- Geographic priority (0-10): 10 USA/EU priority region, 5 eligible, 0 ineligible

WIN PROBABILITY (0-30):
- Competition density (0-10): 10 fewer than 50 applications expected, 5 between 50 and 200, 0 more than 200
- Differentiation (0-10): 10 unique combination of focus areas, 5 technical differentiation only, 0 none
- Track record (0-10): 10 prior funding from this agency, 5 related experience, 0 new area

RESOURCE EFFICIENCY (0-20):
- Cost-benefit (0-10): award size relative to application effort
- Cost-share leverage (0-10): 10 industry partner covers cost share or none required, 5 in-kind, 0 full match required

STRATEGIC VALUE (0-10):
- Partnership access (0-5)
- Pipeline continuation (0-5): 5 for phase 1 of a multi-phase program

ADJUSTMENTS:
- bonus_points: +20 when the opportunity spans two or more focus areas at once; +10 when the award exceeds $5M AND required cost share is below 25%
- capacity_penalty: -15 when more than 3 proposals are due within 30 days, otherwise 0

Respond with a single JSON object and nothing else:
{"strategic_fit_score": <int>, "win_probability_score": <int>, "resource_efficiency_score": <int>, "strategic_value_score": <int>, "bonus_points": <int>, "capacity_penalty": <int>, "match_reasons": ["..."], "risks": ["..."], "scoring_details": {}}"""


QUALIFICATION_USER_PROMPT = """Organization:
{profile_text}

Opportunity:
Title: {title}
Agency: {agency}
Award: {amount}
Deadline: {deadline}
Description: {description}
Eligibility: {eligibility}"""


def _profile_text(profile: Optional[CompanyProfile]) -> str:
    if profile is None:
        return "No organization profile on file."
    lines = [
        f"Name: {profile.name or 'Unnamed organization'}",
        f"Sectors: {', '.join(profile.sectors) or 'n/a'}",
        f"Keywords: {', '.join(profile.keywords) or 'n/a'}",
        f"Geographic priorities: {', '.join(profile.geographic_priorities) or 'n/a'}",
        f"Active proposals: {profile.active_proposal_count}",
    ]
    if profile.cost_share_capacity is not None:
        lines.append(f"Cost share capacity: {profile.cost_share_capacity:.0f}%")
    if profile.team_credentials:
        lines.append(f"Prior funded work: {'; '.join(profile.team_credentials)}")
    return "\n".join(lines)


def build_qualification_prompt(
    opportunity: RawOpportunity, profile: Optional[CompanyProfile] = None
) -> str:
    """Format the user message for one opportunity."""
    deadline = opportunity.deadline.isoformat() if opportunity.deadline else (
        opportunity.raw_data.get("deadline_text") or "Not specified"
    )
    return QUALIFICATION_USER_PROMPT.format(
        profile_text=_profile_text(profile),
        title=opportunity.title,
        agency=opportunity.agency or "Unknown",
        amount=opportunity.amount_text or "Not specified",
        deadline=deadline,
        description=opportunity.description or "Not provided",
        eligibility=opportunity.eligibility or "Not provided",
    )
