"""Validation of collaborator-produced qualification output.

The scoring collaborator returns component scores as JSON. Components are
checked against their bounds, and total/decision are always recomputed;
whatever total or decision the collaborator supplied is kept only as an
advisory note in scoring_details.
"""

import logging
from typing import Any, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..errors import QualificationValidationError
from ..models.opportunity_scored import COMPONENT_MAXIMA, Qualification
from .engine import capacity_penalty_for
from .weights import DEFAULT_RUBRIC, ScoringRubric

logger = logging.getLogger(__name__)

FALLBACK_RATIO = 0.6
FALLBACK_MATCH_REASON = "Unable to fully analyze - manual review recommended"
FALLBACK_RISK = "AI analysis incomplete"


class QualificationPayload(BaseModel):
    """Shape of the JSON object the scoring collaborator must return."""

    model_config = ConfigDict(extra="ignore")

    strategic_fit_score: int = Field(..., ge=0, le=40)
    win_probability_score: int = Field(..., ge=0, le=30)
    resource_efficiency_score: int = Field(..., ge=0, le=20)
    strategic_value_score: int = Field(..., ge=0, le=10)
    bonus_points: int = Field(0, ge=0, le=30)
    capacity_penalty: int = Field(0, ge=-15, le=0)

    # Advisory only
    total_score: Optional[float] = None
    decision: Optional[str] = None

    match_reasons: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    scoring_details: dict[str, Any] = Field(default_factory=dict)

    @field_validator(
        "strategic_fit_score",
        "win_probability_score",
        "resource_efficiency_score",
        "strategic_value_score",
        "bonus_points",
        "capacity_penalty",
        mode="before",
    )
    @classmethod
    def numeric_only(cls, v: Any) -> Any:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError(f"Expected a number, got {type(v).__name__}")
        return v

    @field_validator("match_reasons", "risks", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return v if v is not None else []

    @field_validator("scoring_details", mode="before")
    @classmethod
    def _none_to_dict(cls, v: Any) -> Any:
        return v if v is not None else {}


def validate_qualification(payload: Any) -> QualificationPayload:
    """Validate raw collaborator output.

    Raises:
        QualificationValidationError: missing fields, wrong types,
            non-integral numbers or out-of-range values
    """
    if not isinstance(payload, dict):
        raise QualificationValidationError(
            f"Qualification payload must be an object, got {type(payload).__name__}"
        )
    try:
        return QualificationPayload.model_validate(payload)
    except ValidationError as e:
        raise QualificationValidationError(f"Invalid qualification payload: {e}") from e


def qualification_from_payload(
    payload: Any,
    active_proposal_count: Optional[int] = None,
    rubric: ScoringRubric = DEFAULT_RUBRIC,
    method: Optional[str] = None,
) -> Qualification:
    """Build a Qualification from collaborator output with a recomputed total.

    When the active proposal count is known the capacity penalty is
    re-derived from it instead of taken from the payload.
    """
    validated = validate_qualification(payload)

    penalty = validated.capacity_penalty
    if active_proposal_count is not None:
        penalty = capacity_penalty_for(active_proposal_count, rubric)

    risks = list(validated.risks)
    if penalty and "Capacity ceiling exceeded" not in risks:
        risks.append("Capacity ceiling exceeded")

    qualification = Qualification(
        strategic_fit_score=validated.strategic_fit_score,
        win_probability_score=validated.win_probability_score,
        resource_efficiency_score=validated.resource_efficiency_score,
        strategic_value_score=validated.strategic_value_score,
        bonus_points=validated.bonus_points,
        capacity_penalty=penalty,
        match_reasons=list(validated.match_reasons),
        risks=risks,
    )

    if qualification.exceeds_scale and "Score exceeds 100-point scale" not in qualification.risks:
        qualification.risks.append("Score exceeds 100-point scale")

    details = dict(validated.scoring_details)
    details["method"] = method or details.get("method") or "ai"
    details["rubric_version"] = rubric.version
    details["display_score"] = qualification.display_score
    details["exceeds_scale"] = qualification.exceeds_scale
    if active_proposal_count is not None:
        details["active_proposal_count"] = active_proposal_count

    advisory = {
        key: value
        for key, value in (("total_score", validated.total_score), ("decision", validated.decision))
        if value is not None
    }
    if advisory:
        details["advisory"] = advisory
        if validated.total_score is not None and validated.total_score != qualification.total_score:
            logger.warning(
                "Supplied total %s disagrees with recomputed total %s; using recomputed",
                validated.total_score,
                qualification.total_score,
            )

    qualification.scoring_details = details
    return qualification


def fallback_qualification(reason: Optional[str] = None) -> Qualification:
    """Conservative default used when collaborator output cannot be trusted.

    Each component sits at 60% of its maximum so the total lands in the
    conditional bucket and the record goes to manual review.
    """
    details: dict[str, Any] = {"method": "fallback"}
    if reason:
        details["error"] = reason

    return Qualification(
        **{name: int(maximum * FALLBACK_RATIO) for name, maximum in COMPONENT_MAXIMA.items()},
        bonus_points=0,
        capacity_penalty=0,
        match_reasons=[FALLBACK_MATCH_REASON],
        risks=[FALLBACK_RISK],
        scoring_details=details,
    )


def qualify_or_fallback(
    payload: Any,
    active_proposal_count: Optional[int] = None,
    rubric: ScoringRubric = DEFAULT_RUBRIC,
    method: Optional[str] = None,
) -> Tuple[Qualification, bool]:
    """Return (qualification, used_fallback)."""
    try:
        return qualification_from_payload(payload, active_proposal_count, rubric, method), False
    except QualificationValidationError as e:
        logger.warning("Qualification output rejected, using fallback: %s", e)
        return fallback_qualification(str(e)), True
