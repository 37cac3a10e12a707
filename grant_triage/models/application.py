"""Application - a drafted submission tied to one approved ScoredOpportunity."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator

from ..errors import UnknownSectionError
from .opportunity_raw import RawOpportunity


class ApplicationStatus(str, Enum):
    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    AWARDED = "awarded"
    REJECTED = "rejected"


class ApplicationSection(str, Enum):
    SPECIFIC_AIMS = "specific_aims"
    BUDGET_JUSTIFICATION = "budget_justification"
    LOGIC_MODEL = "logic_model"
    NARRATIVE = "narrative"


TERMINAL_STATUSES = frozenset({ApplicationStatus.AWARDED, ApplicationStatus.REJECTED})


def parse_section(section: Any) -> ApplicationSection:
    """Coerce a section identifier, rejecting anything outside the fixed set."""
    try:
        return ApplicationSection(section)
    except ValueError:
        raise UnknownSectionError(f"Unknown section: {section}") from None


def empty_sections() -> dict[str, str]:
    return {section.value: "" for section in ApplicationSection}


class Application(BaseModel):
    """Grant application moving through draft -> submitted -> outcome."""

    id: Optional[str] = None
    user_id: str
    opportunity_scored_id: str
    status: ApplicationStatus = ApplicationStatus.DRAFT
    content_sections: dict[str, str] = Field(default_factory=empty_sections)
    team_members: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    submitted_at: Optional[datetime] = Field(None, description="Set on first entry to submitted")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Joined through opportunities_scored -> opportunities_raw when loaded with context
    opportunity: Optional[RawOpportunity] = None

    @field_validator("content_sections", mode="before")
    @classmethod
    def _fill_sections(cls, v: Any) -> Any:
        sections = empty_sections()
        if isinstance(v, dict):
            sections.update({k: (text or "") for k, text in v.items()})
        return sections

    @field_validator("team_members", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return v if v is not None else []

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_record(self) -> dict[str, Any]:
        """Row payload for the applications table."""
        exclude = {"opportunity"}
        exclude.update(
            name for name in ("id", "created_at", "updated_at") if getattr(self, name) is None
        )
        return self.model_dump(mode="json", exclude=exclude)
