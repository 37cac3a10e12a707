"""BatchReport - per-item outcome of a search-and-score run."""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field

from .opportunity_scored import Decision


class ScoringOutcome(BaseModel):
    """What happened to one search hit."""

    title: str
    external_id: Optional[str] = None
    raw_id: Optional[str] = Field(None, description="opportunities_raw id once upserted")
    scored_id: Optional[str] = Field(None, description="opportunities_scored id once upserted")
    total_score: Optional[int] = None
    decision: Optional[Decision] = None
    used_fallback: bool = Field(default=False, description="Malformed AI output replaced by default")
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.scored_id is not None


class BatchReport(BaseModel):
    """Results for one query; failures are isolated per item."""

    query: str
    citations: list[str] = Field(default_factory=list)
    outcomes: list[ScoringOutcome] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @property
    def succeeded(self) -> list[ScoringOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[ScoringOutcome]:
        return [o for o in self.outcomes if not o.succeeded]
