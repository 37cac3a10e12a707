"""Tests for database.client (SupabaseClient).

create_client is patched so no network call is made.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from postgrest.exceptions import APIError

from grant_triage.database import SupabaseClient
from grant_triage.errors import NotAuthenticatedError, RecordNotFoundError
from grant_triage.models import Application, CompanyProfile, HitlStatus, RawOpportunity
from grant_triage.tests.fakes import make_scored


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_supabase_client():
    """Patch create_client so no real network call is made."""
    with patch("grant_triage.database.client.create_client") as mock_create:
        mock_client = MagicMock()
        mock_create.return_value = mock_client
        client = SupabaseClient(url="https://fake.supabase.co", key="fake-key")
        yield client, mock_client


@pytest.fixture
def sample_raw() -> RawOpportunity:
    return RawOpportunity(
        source="perplexity",
        external_id="Battery Grant-DOE",
        title="Battery Grant",
        agency="DOE",
        source_url="https://example.com/grant",
    )


def _response(rows):
    response = MagicMock()
    response.data = rows
    return response


def _duplicate():
    return APIError({"code": "23505", "message": "duplicate key value violates unique constraint"})


# ---------------------------------------------------------------------------
# Raw opportunities
# ---------------------------------------------------------------------------


class TestUpsertRawOpportunity:
    def test_upserts_on_source_and_external_id(self, mock_supabase_client, sample_raw):
        client, mock_sb = mock_supabase_client
        mock_sb.table.return_value.upsert.return_value.execute.return_value = _response(
            [{"id": "raw-1", **sample_raw.to_record()}]
        )

        stored = client.upsert_raw_opportunity(sample_raw)

        assert stored.id == "raw-1"
        mock_sb.table.assert_called_with("opportunities_raw")
        record = mock_sb.table.return_value.upsert.call_args[0][0]
        assert record["external_id"] == "Battery Grant-DOE"
        assert "id" not in record
        assert mock_sb.table.return_value.upsert.call_args[1]["on_conflict"] == "source,external_id"

    def test_unique_violation_rereads_row(self, mock_supabase_client, sample_raw):
        client, mock_sb = mock_supabase_client
        mock_sb.table.return_value.upsert.return_value.execute.side_effect = _duplicate()
        select = mock_sb.table.return_value.select.return_value
        select.eq.return_value.eq.return_value.execute.return_value = _response(
            [{"id": "raw-9", **sample_raw.to_record()}]
        )

        stored = client.upsert_raw_opportunity(sample_raw)

        assert stored.id == "raw-9"
        select.eq.assert_called_with("source", "perplexity")

    def test_other_api_errors_propagate(self, mock_supabase_client, sample_raw):
        client, mock_sb = mock_supabase_client
        mock_sb.table.return_value.upsert.return_value.execute.side_effect = APIError(
            {"code": "42501", "message": "permission denied"}
        )
        with pytest.raises(APIError):
            client.upsert_raw_opportunity(sample_raw)


# ---------------------------------------------------------------------------
# Scored opportunities
# ---------------------------------------------------------------------------


class TestScored:
    def test_upsert_keyed_per_user(self, mock_supabase_client):
        client, mock_sb = mock_supabase_client
        scored = make_scored("user-1", "raw-1", 35, 25, 15, 8)
        mock_sb.table.return_value.upsert.return_value.execute.return_value = _response(
            [{"id": "scored-1", **scored.to_record()}]
        )

        stored = client.upsert_scored_opportunity(scored)

        assert stored.id == "scored-1"
        assert stored.total_score == 83
        record = mock_sb.table.return_value.upsert.call_args[0][0]
        assert "total_score" not in record
        assert record["user_id"] == "user-1"
        assert mock_sb.table.return_value.upsert.call_args[1]["on_conflict"] == "user_id,opportunity_raw_id"

    def test_upsert_requires_user(self, mock_supabase_client):
        client, mock_sb = mock_supabase_client
        scored = make_scored("user-1", "raw-1").model_copy(update={"user_id": ""})
        with pytest.raises(NotAuthenticatedError):
            client.upsert_scored_opportunity(scored)
        mock_sb.table.assert_not_called()

    def test_get_scored_filters_by_user(self, mock_supabase_client):
        client, mock_sb = mock_supabase_client
        row = {
            "id": "scored-1",
            **make_scored("user-1", "raw-1").to_record(),
            "opportunities_raw": {"id": "raw-1", "external_id": "e", "title": "Joined Grant"},
        }
        query = mock_sb.table.return_value.select.return_value.eq.return_value
        query.order.return_value.execute.return_value = _response([row])

        result = client.get_scored("user-1")

        assert result[0].opportunity.title == "Joined Grant"
        mock_sb.table.return_value.select.assert_called_with("*, opportunities_raw(*)")
        mock_sb.table.return_value.select.return_value.eq.assert_called_with("user_id", "user-1")
        query.order.assert_called_with("total_score", desc=True)

    def test_get_scored_requires_user(self, mock_supabase_client):
        client, _ = mock_supabase_client
        with pytest.raises(NotAuthenticatedError):
            client.get_scored(None)

    def test_update_hitl_status(self, mock_supabase_client):
        client, mock_sb = mock_supabase_client
        until = datetime(2026, 3, 2, tzinfo=timezone.utc)
        row = {
            "id": "scored-1",
            **make_scored("user-1", "raw-1").to_record(),
            "hitl_status": "snoozed",
            "snoozed_until": until.isoformat(),
        }
        update = mock_sb.table.return_value.update
        update.return_value.eq.return_value.eq.return_value.execute.return_value = _response([row])

        result = client.update_hitl_status("user-1", "scored-1", HitlStatus.SNOOZED, until)

        assert result.hitl_status == HitlStatus.SNOOZED
        payload = update.call_args[0][0]
        assert payload["hitl_status"] == "snoozed"
        assert payload["snoozed_until"] == until.isoformat()
        update.return_value.eq.assert_called_with("user_id", "user-1")

    def test_update_missing_record(self, mock_supabase_client):
        client, mock_sb = mock_supabase_client
        update = mock_sb.table.return_value.update
        update.return_value.eq.return_value.eq.return_value.execute.return_value = _response([])

        with pytest.raises(RecordNotFoundError):
            client.update_hitl_status("user-1", "nope", HitlStatus.APPROVED)


# ---------------------------------------------------------------------------
# Applications and profiles
# ---------------------------------------------------------------------------


class TestApplications:
    def test_create_returns_row(self, mock_supabase_client):
        client, mock_sb = mock_supabase_client
        application = Application(user_id="user-1", opportunity_scored_id="scored-1")
        mock_sb.table.return_value.insert.return_value.execute.return_value = _response(
            [{"id": "app-1", **application.to_record()}]
        )

        created = client.create_application(application)

        assert created.id == "app-1"
        record = mock_sb.table.return_value.insert.call_args[0][0]
        assert record["status"] == "draft"
        assert record["content_sections"]["narrative"] == ""

    def test_duplicate_returns_existing(self, mock_supabase_client):
        client, mock_sb = mock_supabase_client
        application = Application(user_id="user-1", opportunity_scored_id="scored-1")
        mock_sb.table.return_value.insert.return_value.execute.side_effect = _duplicate()
        select = mock_sb.table.return_value.select.return_value
        select.eq.return_value.eq.return_value.execute.return_value = _response(
            [
                {
                    "id": "app-existing",
                    **application.to_record(),
                    "opportunities_scored": {
                        "opportunities_raw": {"id": "raw-1", "external_id": "e", "title": "Grant"}
                    },
                }
            ]
        )

        existing = client.create_application(application)

        assert existing.id == "app-existing"
        assert existing.opportunity.title == "Grant"

    def test_update_missing_application(self, mock_supabase_client):
        client, mock_sb = mock_supabase_client
        update = mock_sb.table.return_value.update
        update.return_value.eq.return_value.eq.return_value.execute.return_value = _response([])

        with pytest.raises(RecordNotFoundError):
            client.update_application("user-1", "app-x", {"status": "submitted"})


class TestProfiles:
    def test_get_profile(self, mock_supabase_client):
        client, mock_sb = mock_supabase_client
        mock_sb.table.return_value.select.return_value.eq.return_value.execute.return_value = _response(
            [{"user_id": "user-1", "name": "Circular Futures Co", "team_credentials": None}]
        )

        profile = client.get_company_profile("user-1")

        assert profile.name == "Circular Futures Co"
        mock_sb.table.assert_called_with("company_profiles")

    def test_missing_profile(self, mock_supabase_client):
        client, mock_sb = mock_supabase_client
        mock_sb.table.return_value.select.return_value.eq.return_value.execute.return_value = _response([])
        assert client.get_company_profile("user-1") is None

    def test_upsert_profile(self, mock_supabase_client):
        client, mock_sb = mock_supabase_client
        profile = CompanyProfile(user_id="user-1", name="Circular Futures Co")
        mock_sb.table.return_value.upsert.return_value.execute.return_value = _response(
            [profile.to_record()]
        )

        assert client.upsert_company_profile(profile).name == "Circular Futures Co"
        assert mock_sb.table.return_value.upsert.call_args[1]["on_conflict"] == "user_id"
