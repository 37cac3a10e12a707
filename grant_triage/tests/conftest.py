"""Pytest configuration and fixtures."""

from datetime import date, datetime

import pytest

from grant_triage.models import CompanyProfile, RawOpportunity
from grant_triage.tests.fakes import NOW, InMemoryStore, make_scored


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def user_id() -> str:
    return "user-123"


@pytest.fixture
def profile(user_id) -> CompanyProfile:
    return CompanyProfile(
        user_id=user_id,
        name="Circular Futures Co",
        sectors=["clean technology"],
        keywords=["battery recycling"],
        geographic_priorities=["USA", "EU"],
        active_proposal_count=0,
    )


@pytest.fixture
def flagship_opportunity() -> RawOpportunity:
    """Lithium recycling + autism employment, $750K, no cost share, phase I."""
    return RawOpportunity(
        id="raw-flagship",
        source="perplexity",
        external_id="flagship",
        title="Neurodiverse Workforce for Lithium Battery Recycling",
        agency="Clean Futures Foundation",
        amount_min=750_000,
        amount_max=750_000,
        amount_text="$750,000",
        deadline=date(2026, 6, 30),
        description=(
            "Phase I funding for lithium recycling pilots that create employment for autistic adults. "
            "Limited competition: fewer than 40 applications expected. Projects must be delivered "
            "through a consortium with an industry partner in the United States. No cost share required."
        ),
        eligibility="Small businesses in the United States",
    )


@pytest.fixture
def plain_opportunity() -> RawOpportunity:
    """No focus area overlap at all."""
    return RawOpportunity(
        id="raw-plain",
        source="perplexity",
        external_id="plain",
        title="Municipal Parking Study",
        agency="City Council",
        description="Survey of downtown parking meters.",
    )


@pytest.fixture
def seeded_scored(store, user_id, flagship_opportunity):
    """A pending scored opportunity linked to a stored raw opportunity."""
    raw = store.upsert_raw_opportunity(flagship_opportunity)
    return store.upsert_scored_opportunity(make_scored(user_id, raw.id, 35, 25, 15, 8))
