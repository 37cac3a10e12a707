"""RawOpportunity - an externally discovered funding opportunity."""

import logging
import re
from datetime import date, datetime
from typing import Any, Optional, Tuple
from pydantic import BaseModel, Field, field_validator

from .search import SearchHit

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "perplexity"
EXTERNAL_ID_MAX_LENGTH = 100

_AMOUNT_RE = re.compile(
    r"\$\s*(?P<num>\d[\d,]*(?:\.\d+)?)\s*(?P<unit>thousand|million|billion|k|m|b)?\b"
    r"|(?P<bare>\d[\d,]*(?:\.\d+)?)\s*(?P<bare_unit>thousand|million|billion)\b",
    re.IGNORECASE,
)

_UNIT_MULTIPLIERS = {
    "k": 1_000,
    "thousand": 1_000,
    "m": 1_000_000,
    "million": 1_000_000,
    "b": 1_000_000_000,
    "billion": 1_000_000_000,
}

_DEADLINE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%B %d, %Y", "%b %d, %Y", "%B %d %Y", "%d %B %Y")


def derive_external_id(title: str, agency: Optional[str]) -> str:
    """Build the dedup key for sources that do not supply their own ID."""
    return f"{title}-{agency or ''}"[:EXTERNAL_ID_MAX_LENGTH]


def parse_amount_range(text: Optional[str]) -> Tuple[Optional[float], Optional[float]]:
    """Parse '$50K - $2M' style text into (amount_min, amount_max).

    A single amount is treated as a ceiling when phrased 'up to', otherwise
    as both floor and ceiling.
    """
    if not text:
        return None, None

    amounts = []
    for match in _AMOUNT_RE.finditer(text):
        raw = match.group("num") or match.group("bare")
        unit = (match.group("unit") or match.group("bare_unit") or "").lower()
        try:
            value = float(raw.replace(",", ""))
        except ValueError:
            continue
        amounts.append(value * _UNIT_MULTIPLIERS.get(unit, 1))

    if not amounts:
        return None, None
    if len(amounts) == 1:
        if "up to" in text.lower():
            return None, amounts[0]
        return amounts[0], amounts[0]
    return min(amounts), max(amounts)


def parse_deadline(text: Optional[str]) -> Optional[date]:
    """Parse a free-text deadline; 'Rolling' and unknown formats give None."""
    if not text:
        return None
    cleaned = text.strip()
    try:
        return datetime.fromisoformat(cleaned.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    for fmt in _DEADLINE_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    logger.debug("Could not parse deadline: %s", text)
    return None


class RawOpportunity(BaseModel):
    """Funding opportunity as ingested from a search source.

    Unique on (source, external_id): re-discovery updates the stored row.
    """

    id: Optional[str] = Field(None, description="Backend-assigned identifier")
    source: str = Field(default=DEFAULT_SOURCE, description="Provenance tag")
    external_id: str = Field(..., description="Dedup key within a source")

    title: str = Field(..., description="Opportunity title")
    agency: Optional[str] = Field(None, description="Funding agency or organization")

    amount_min: Optional[float] = Field(None, description="Minimum award amount")
    amount_max: Optional[float] = Field(None, description="Maximum award amount")
    amount_text: Optional[str] = Field(None, description="Free-form amount text")
    deadline: Optional[date] = Field(None, description="Application deadline")

    description: Optional[str] = None
    eligibility: Optional[str] = None
    source_url: Optional[str] = None
    raw_data: dict[str, Any] = Field(default_factory=dict, description="Source payload")

    is_processed: bool = False
    created_at: Optional[datetime] = None

    @field_validator("deadline", mode="before")
    @classmethod
    def _date_part(cls, v: Any) -> Any:
        # Backend may hand back a full timestamp for the date column
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        if isinstance(v, datetime):
            return v.date()
        return v

    @field_validator("raw_data", mode="before")
    @classmethod
    def _none_to_dict(cls, v: Any) -> Any:
        return v if v is not None else {}

    @property
    def dedup_key(self) -> Tuple[str, str]:
        return (self.source, self.external_id)

    @property
    def award_amount(self) -> Optional[float]:
        """Largest known award figure."""
        if self.amount_max is not None:
            return self.amount_max
        return self.amount_min

    @property
    def full_text(self) -> str:
        """All free text fields joined, for keyword matching."""
        parts = [self.title, self.agency, self.description, self.eligibility, self.amount_text]
        return " ".join(p for p in parts if p)

    def to_record(self) -> dict[str, Any]:
        """Row payload for the opportunities_raw table."""
        exclude = {name for name in ("id", "created_at") if getattr(self, name) is None}
        return self.model_dump(mode="json", exclude=exclude)

    @classmethod
    def from_search_hit(cls, hit: SearchHit, source: str = DEFAULT_SOURCE) -> "RawOpportunity":
        """Normalize a search hit, deriving external_id and parsing amounts."""
        amount_min, amount_max = parse_amount_range(hit.amount)
        raw_data: dict[str, Any] = {}
        if hit.deadline:
            raw_data["deadline_text"] = hit.deadline
        return cls(
            source=source,
            external_id=hit.external_id or derive_external_id(hit.title, hit.agency),
            title=hit.title,
            agency=hit.agency,
            amount_min=amount_min,
            amount_max=amount_max,
            amount_text=hit.amount,
            deadline=parse_deadline(hit.deadline),
            description=hit.description,
            eligibility=hit.eligibility,
            source_url=hit.source_url,
            raw_data=raw_data,
        )
