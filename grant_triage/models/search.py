"""Search collaborator contracts: filters, hits and results."""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


class SearchFilters(BaseModel):
    """Optional narrowing applied to a grant search."""

    funding_range: Optional[str] = Field(None, description="e.g. '$100K-$500K'")
    deadline: Optional[str] = Field(None, description="Deadline bucket, e.g. 'next 30 days'")
    sector: Optional[str] = Field(None, description="Technology sector")


class SearchHit(BaseModel):
    """One grant returned by the search collaborator, as free text."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    agency: Optional[str] = None
    amount: Optional[str] = None
    deadline: Optional[str] = None
    description: Optional[str] = None
    eligibility: Optional[str] = None
    source_url: Optional[str] = Field(None, alias="sourceUrl")
    external_id: Optional[str] = Field(None, description="Source-supplied ID, if any")

    @field_validator("amount", mode="before")
    @classmethod
    def _numeric_amount(cls, v: Any) -> Any:
        # Bare numbers are dollar figures; keep them parseable as amount text
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return f"${v:,.0f}"
        return v

    @field_validator("deadline", "external_id", mode="before")
    @classmethod
    def _number_to_str(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class SearchResult(BaseModel):
    """All hits for one query plus the citation URLs backing them."""

    query: str
    grants: list[SearchHit] = Field(default_factory=list)
    citations: list[str] = Field(default_factory=list)
