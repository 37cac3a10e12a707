"""Scoring rubric configuration.

Bonus sizes, award thresholds and the capacity ceiling are externalized so
they can be tuned without code changes. Decision thresholds are fixed in
models.opportunity_scored and are not part of the rubric.
"""

import json
import yaml
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class ScoringRubric(BaseModel):
    """Tunable parameters for the rule-based scoring policy."""

    intersectional_bonus: int = Field(20, ge=0)
    large_award_bonus: int = Field(10, ge=0)
    large_award_threshold: float = Field(5_000_000, gt=0, description="Award must exceed this")
    large_award_max_cost_share: float = Field(
        25.0, ge=0, le=100, description="Required cost share (percent) must be below this"
    )

    capacity_ceiling: int = Field(3, ge=0, description="Active proposals allowed before penalty")
    capacity_penalty: int = Field(-15, description="Applied when the ceiling is exceeded")
    active_window_days: int = Field(30, gt=0)

    deadline_warning_days: int = Field(14, ge=0)
    competition_niche_max: int = Field(50, gt=0, description="Stated applicant pool below this is niche")
    competition_crowded_min: int = Field(200, gt=0, description="Stated applicant pool above this is crowded")

    version: str = "1.0"

    @field_validator("capacity_penalty")
    @classmethod
    def penalty_not_positive(cls, v: int) -> int:
        if v > 0:
            raise ValueError(f"Capacity penalty must be zero or negative, got {v}")
        return v

    def model_post_init(self, __context) -> None:
        if self.competition_niche_max > self.competition_crowded_min:
            raise ValueError(
                f"competition_niche_max ({self.competition_niche_max}) must not exceed "
                f"competition_crowded_min ({self.competition_crowded_min})"
            )

    def to_dict(self) -> dict:
        return self.model_dump()


DEFAULT_RUBRIC = ScoringRubric()


def load_rubric(filepath: Optional[str] = None) -> ScoringRubric:
    """Load a scoring rubric from file or return defaults.

    Supports JSON and YAML formats. Keys left out of the file keep their
    default values.

    Args:
        filepath: Optional path to rubric configuration file

    Returns:
        ScoringRubric instance

    Raises:
        FileNotFoundError: If filepath provided but doesn't exist
        ValueError: If the format is unsupported or values are invalid
    """

    if not filepath:
        return DEFAULT_RUBRIC

    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Rubric file not found: {filepath}")

    if path.suffix == '.json':
        with open(path, 'r') as f:
            data = json.load(f)
    elif path.suffix in ['.yaml', '.yml']:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    else:
        raise ValueError(f"Unsupported file format: {path.suffix}. Use .json, .yaml, or .yml")

    return ScoringRubric(**(data or {}))


def save_rubric(rubric: ScoringRubric, filepath: str) -> None:
    """Save a scoring rubric to file (extension determines format)."""

    path = Path(filepath)
    data = rubric.to_dict()

    if path.suffix == '.json':
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)
    elif path.suffix in ['.yaml', '.yml']:
        with open(path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False)
    else:
        raise ValueError(f"Unsupported file format: {path.suffix}")
