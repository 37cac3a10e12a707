"""Tests for record models and search-hit normalization."""

from datetime import date, datetime, timedelta, timezone

import pytest

from grant_triage.errors import UnknownSectionError
from grant_triage.models import (
    Application,
    CompanyProfile,
    HitlStatus,
    RawOpportunity,
    ScoredOpportunity,
    SearchHit,
    derive_external_id,
)
from grant_triage.models.application import parse_section
from grant_triage.models.opportunity_raw import parse_amount_range, parse_deadline
from grant_triage.tests.fakes import make_scored


class TestAmountParsing:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("$50K - $2M", (50_000, 2_000_000)),
            ("Up to $5,000,000", (None, 5_000_000)),
            ("$750,000", (750_000, 750_000)),
            ("$1.5 million", (1_500_000, 1_500_000)),
            ("Varies", (None, None)),
            (None, (None, None)),
        ],
    )
    def test_parse_amount_range(self, text, expected):
        assert parse_amount_range(text) == expected


class TestDeadlineParsing:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2026-05-15", date(2026, 5, 15)),
            ("05/15/2026", date(2026, 5, 15)),
            ("May 15, 2026", date(2026, 5, 15)),
            ("2026-05-15T17:00:00Z", date(2026, 5, 15)),
            ("Rolling", None),
            ("", None),
        ],
    )
    def test_parse_deadline(self, text, expected):
        assert parse_deadline(text) == expected


class TestRawOpportunity:
    def test_external_id_truncated(self):
        title = "T" * 120
        assert derive_external_id(title, "Agency") == title[:100]
        assert len(derive_external_id(title, "Agency")) == 100

    def test_external_id_without_agency(self):
        assert derive_external_id("Grant", None) == "Grant-"

    def test_from_search_hit(self):
        hit = SearchHit.model_validate(
            {
                "title": "Battery Recycling Prize",
                "agency": "DOE",
                "amount": "$50K - $2M",
                "deadline": "Rolling",
                "sourceUrl": "https://example.gov/prize",
            }
        )
        opp = RawOpportunity.from_search_hit(hit)

        assert opp.source == "perplexity"
        assert opp.external_id == "Battery Recycling Prize-DOE"
        assert (opp.amount_min, opp.amount_max) == (50_000, 2_000_000)
        assert opp.deadline is None
        assert opp.raw_data == {"deadline_text": "Rolling"}
        assert opp.source_url == "https://example.gov/prize"

    def test_backend_timestamp_deadline(self):
        opp = RawOpportunity(external_id="x", title="x", deadline="2026-05-15T00:00:00+00:00")
        assert opp.deadline == date(2026, 5, 15)

    def test_to_record_omits_unset_id(self):
        record = RawOpportunity(external_id="x", title="x").to_record()
        assert "id" not in record
        assert record["raw_data"] == {}


class TestScoredOpportunity:
    def test_supplied_total_not_trusted(self):
        row = {
            "id": "s1",
            "user_id": "u",
            "opportunity_raw_id": "r",
            "strategic_fit_score": 10,
            "win_probability_score": 10,
            "resource_efficiency_score": 10,
            "strategic_value_score": 5,
            "total_score": 99,
            "decision": "priority_a",
        }
        scored = ScoredOpportunity(**row)
        assert scored.total_score == 35
        assert scored.decision.value == "no_go"

    def test_joined_raw_parsed(self):
        scored = ScoredOpportunity(
            user_id="u",
            opportunity_raw_id="r",
            opportunities_raw={"id": "r", "external_id": "e", "title": "Joined"},
        )
        assert scored.opportunity.title == "Joined"

    def test_to_record_excludes_generated_total(self):
        record = make_scored("u", "r").to_record()
        assert "total_score" not in record
        assert "opportunity" not in record
        assert record["decision"] == "no_go"
        assert record["hitl_status"] == "pending"

    def test_effective_status(self):
        now = datetime(2026, 3, 1, tzinfo=timezone.utc)
        later = make_scored("u", "r", hitl_status=HitlStatus.SNOOZED, snoozed_until=now + timedelta(hours=1))
        lapsed = make_scored("u", "r", hitl_status=HitlStatus.SNOOZED, snoozed_until=now - timedelta(hours=1))

        assert later.effective_status(now) == HitlStatus.SNOOZED
        assert not later.is_actionable(now)
        assert lapsed.effective_status(now) == HitlStatus.PENDING
        assert lapsed.is_actionable(now)

    def test_naive_snooze_treated_as_utc(self):
        scored = make_scored("u", "r", hitl_status=HitlStatus.SNOOZED, snoozed_until=datetime(2026, 3, 2))
        assert scored.snoozed_until.tzinfo == timezone.utc

    def test_rejects_unknown_status(self):
        with pytest.raises(ValueError):
            make_scored("u", "r", hitl_status="maybe")


class TestApplicationModel:
    def test_sections_always_complete(self):
        app = Application(
            user_id="u", opportunity_scored_id="s", content_sections={"narrative": "Text"}
        )
        assert app.content_sections == {
            "specific_aims": "",
            "budget_justification": "",
            "logic_model": "",
            "narrative": "Text",
        }

    def test_parse_section(self):
        assert parse_section("logic_model").value == "logic_model"
        with pytest.raises(UnknownSectionError):
            parse_section("executive_summary")

    def test_unknown_section_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_section("appendix")


class TestCompanyProfile:
    def test_null_lists_normalized(self):
        profile = CompanyProfile(sectors=None, keywords=None, active_proposal_count=None)
        assert profile.sectors == []
        assert profile.active_proposal_count == 0

    def test_credentials_flattened(self):
        profile = CompanyProfile(
            team_credentials={"grants": ["DOE SBIR 2024"], "awards": "State innovation prize"}
        )
        assert profile.team_credentials == ["DOE SBIR 2024", "State innovation prize"]
