"""CompanyProfile - read-only scoring context for one organization."""

from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, Field, field_validator


class CompanyProfile(BaseModel):
    """Organization focus, capacity and track record used by the scoring policy."""

    id: Optional[str] = None
    user_id: Optional[str] = None
    name: str = Field(default="", description="Organization name")
    sectors: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    cost_share_capacity: Optional[float] = Field(
        None, ge=0, description="Percent of an award covered by committed third-party cost share"
    )
    geographic_priorities: list[str] = Field(default_factory=list)
    active_proposal_count: int = Field(default=0, ge=0)
    team_credentials: list[str] = Field(
        default_factory=list, description="Prior-funded work, one entry per award or program"
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("sectors", "keywords", "geographic_priorities", mode="before")
    @classmethod
    def _none_to_list(cls, v: Any) -> Any:
        return v if v is not None else []

    @field_validator("active_proposal_count", mode="before")
    @classmethod
    def _none_to_zero(cls, v: Any) -> Any:
        return v if v is not None else 0

    @field_validator("team_credentials", mode="before")
    @classmethod
    def _flatten_credentials(cls, v: Any) -> Any:
        # Stored as free-form JSON: accept a list, a mapping of lists/strings, or a string
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        if isinstance(v, dict):
            flat: list[str] = []
            for value in v.values():
                if isinstance(value, (list, tuple)):
                    flat.extend(str(item) for item in value)
                elif value:
                    flat.append(str(value))
            return flat
        return v

    def to_record(self) -> dict[str, Any]:
        exclude = {
            name for name in ("id", "created_at", "updated_at") if getattr(self, name) is None
        }
        return self.model_dump(mode="json", exclude=exclude)
