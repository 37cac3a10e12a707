"""ScoredOpportunity - one organization's qualification of a RawOpportunity.

total_score and decision are derived from the stored components every time
they are read; a supplied total or decision label is never trusted.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .opportunity_raw import RawOpportunity


class Decision(str, Enum):
    PRIORITY_A = "priority_a"
    PRIORITY_B = "priority_b"
    CONDITIONAL = "conditional"
    NO_GO = "no_go"


class HitlStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SNOOZED = "snoozed"


# Closed thresholds, checked top-down: 85+ A, 70-84 B, 55-69 conditional, else no_go
DECISION_THRESHOLDS: tuple[tuple[int, Decision], ...] = (
    (85, Decision.PRIORITY_A),
    (70, Decision.PRIORITY_B),
    (55, Decision.CONDITIONAL),
)

COMPONENT_MAXIMA = {
    "strategic_fit_score": 40,
    "win_probability_score": 30,
    "resource_efficiency_score": 20,
    "strategic_value_score": 10,
}

SCORE_SCALE_MAX = 100


def decision_for_score(total_score: float) -> Decision:
    """Map a total score to its decision bucket."""
    for floor, decision in DECISION_THRESHOLDS:
        if total_score >= floor:
            return decision
    return Decision.NO_GO


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class QualificationScores(BaseModel):
    """Component scores plus adjustments, with the derived total and decision."""

    strategic_fit_score: int = Field(0, ge=0, le=40)
    win_probability_score: int = Field(0, ge=0, le=30)
    resource_efficiency_score: int = Field(0, ge=0, le=20)
    strategic_value_score: int = Field(0, ge=0, le=10)
    bonus_points: int = Field(0, ge=0)
    capacity_penalty: int = Field(0, le=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_score(self) -> int:
        return (
            self.strategic_fit_score
            + self.win_probability_score
            + self.resource_efficiency_score
            + self.strategic_value_score
            + self.bonus_points
            + self.capacity_penalty
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def decision(self) -> Decision:
        return decision_for_score(self.total_score)

    @property
    def display_score(self) -> int:
        """Total clamped to the 0-100 scale for display."""
        return max(0, min(SCORE_SCALE_MAX, self.total_score))

    @property
    def exceeds_scale(self) -> bool:
        return self.total_score > SCORE_SCALE_MAX


class Qualification(QualificationScores):
    """Output of the scoring policy, ready to be stored for a user."""

    match_reasons: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    scoring_details: dict[str, Any] = Field(default_factory=dict)


class ScoredOpportunity(QualificationScores):
    """Stored qualification, unique per (user_id, opportunity_raw_id)."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    user_id: str
    opportunity_raw_id: str

    hitl_status: HitlStatus = HitlStatus.PENDING
    match_reasons: list[str] = Field(default_factory=list)
    risks: list[str] = Field(default_factory=list)
    scoring_details: dict[str, Any] = Field(default_factory=dict)
    snoozed_until: Optional[datetime] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    opportunity: Optional[RawOpportunity] = Field(None, alias="opportunities_raw")

    @field_validator("match_reasons", "risks", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return v if v is not None else []

    @field_validator("scoring_details", mode="before")
    @classmethod
    def _none_to_dict(cls, v: Any) -> Any:
        return v if v is not None else {}

    @field_validator("snoozed_until", mode="after")
    @classmethod
    def _snooze_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @classmethod
    def from_qualification(
        cls,
        qualification: Qualification,
        user_id: str,
        opportunity_raw_id: str,
        hitl_status: HitlStatus = HitlStatus.PENDING,
        snoozed_until: Optional[datetime] = None,
    ) -> "ScoredOpportunity":
        return cls(
            user_id=user_id,
            opportunity_raw_id=opportunity_raw_id,
            strategic_fit_score=qualification.strategic_fit_score,
            win_probability_score=qualification.win_probability_score,
            resource_efficiency_score=qualification.resource_efficiency_score,
            strategic_value_score=qualification.strategic_value_score,
            bonus_points=qualification.bonus_points,
            capacity_penalty=qualification.capacity_penalty,
            hitl_status=hitl_status,
            match_reasons=list(qualification.match_reasons),
            risks=list(qualification.risks),
            scoring_details=dict(qualification.scoring_details),
            snoozed_until=snoozed_until,
        )

    def effective_status(self, now: Optional[datetime] = None) -> HitlStatus:
        """Status as a reviewer sees it: an elapsed snooze reads as pending."""
        if self.hitl_status == HitlStatus.SNOOZED:
            now = now or datetime.now(timezone.utc)
            if self.snoozed_until is None or self.snoozed_until <= now:
                return HitlStatus.PENDING
        return self.hitl_status

    def is_actionable(self, now: Optional[datetime] = None) -> bool:
        return self.effective_status(now) == HitlStatus.PENDING

    def to_record(self) -> dict[str, Any]:
        """Row payload for opportunities_scored (total_score is generated by the backend)."""
        exclude = {"total_score", "opportunity"}
        exclude.update(
            name for name in ("id", "created_at", "updated_at") if getattr(self, name) is None
        )
        return self.model_dump(mode="json", exclude=exclude)
