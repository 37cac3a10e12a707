"""Tests for the chat-completion adapters using respx to mock HTTP."""

import json

import httpx
import pytest
import respx
from tenacity import wait_none

from grant_triage.adapters import DraftAdapter, PerplexitySearchAdapter, QualificationAdapter
from grant_triage.adapters.base import extract_json_array, extract_json_object, strip_code_fences
from grant_triage.adapters.qualification import AI_GATEWAY_URL
from grant_triage.adapters.search import PERPLEXITY_URL
from grant_triage.errors import (
    CollaboratorUnavailableError,
    QualificationValidationError,
    UnknownSectionError,
)
from grant_triage.models import RawOpportunity, SearchFilters


def _completion(content, **extra):
    body = {"choices": [{"message": {"role": "assistant", "content": content}}]}
    body.update(extra)
    return httpx.Response(200, json=body)


@pytest.fixture
def searcher():
    return PerplexitySearchAdapter("test-key", retry_wait=wait_none())


@pytest.fixture
def qualifier():
    return QualificationAdapter("test-key", retry_wait=wait_none())


@pytest.fixture
def drafter():
    return DraftAdapter("test-key", retry_wait=wait_none())


class TestJsonExtraction:
    def test_strip_fences(self):
        assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_object_in_prose(self):
        assert extract_json_object('Here you go: {"a": 1} thanks') == {"a": 1}

    def test_unparseable(self):
        assert extract_json_object("no json here") is None
        assert extract_json_array("[not, valid") is None


class TestPerplexitySearch:
    @pytest.mark.asyncio
    @respx.mock
    async def test_parses_hits_and_citations(self, searcher):
        grants = [
            {
                "title": "Battery Recycling Prize",
                "agency": "DOE",
                "amount": "$50K - $2M",
                "deadline": "Rolling",
                "sourceUrl": "https://example.gov/prize",
            },
            {"agency": "No title, skipped"},
        ]
        route = respx.post(PERPLEXITY_URL).mock(
            return_value=_completion(
                f"```json\n{json.dumps(grants)}\n```", citations=["https://example.gov"]
            )
        )

        result = await searcher.search("battery recycling", SearchFilters(sector="cleantech"))

        assert [g.title for g in result.grants] == ["Battery Recycling Prize"]
        assert result.grants[0].source_url == "https://example.gov/prize"
        assert result.citations == ["https://example.gov"]

        sent = json.loads(route.calls[0].request.content)
        assert sent["model"] == "sonar-pro"
        assert sent["temperature"] == 0.2
        assert "Technology sector: cleantech" in sent["messages"][1]["content"]
        assert route.calls[0].request.headers["Authorization"] == "Bearer test-key"

    @pytest.mark.asyncio
    @respx.mock
    async def test_numeric_amount_keeps_hit(self, searcher):
        grants = [{"title": "Numeric Award Grant", "agency": "NSF", "amount": 500000, "deadline": 2026}]
        respx.post(PERPLEXITY_URL).mock(return_value=_completion(json.dumps(grants)))

        result = await searcher.search("grants")

        (hit,) = result.grants
        assert hit.amount == "$500,000"
        assert hit.deadline == "2026"
        opportunity = RawOpportunity.from_search_hit(hit)
        assert (opportunity.amount_min, opportunity.amount_max) == (500_000, 500_000)

    @pytest.mark.asyncio
    @respx.mock
    async def test_unparseable_output_gives_no_hits(self, searcher):
        respx.post(PERPLEXITY_URL).mock(return_value=_completion("I could not find anything."))
        result = await searcher.search("anything")
        assert result.grants == []

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_content_is_unavailable(self, searcher):
        respx.post(PERPLEXITY_URL).mock(return_value=_completion(""))
        with pytest.raises(CollaboratorUnavailableError):
            await searcher.search("anything")

    @pytest.mark.asyncio
    async def test_empty_query_rejected(self, searcher):
        with pytest.raises(ValueError):
            await searcher.search("   ")

    @pytest.mark.asyncio
    async def test_missing_key(self):
        with pytest.raises(CollaboratorUnavailableError):
            await PerplexitySearchAdapter(None).search("grants")

    @pytest.mark.asyncio
    @respx.mock
    async def test_server_error_retried_then_raised(self, searcher):
        route = respx.post(PERPLEXITY_URL).mock(return_value=httpx.Response(500))

        with pytest.raises(CollaboratorUnavailableError) as exc_info:
            await searcher.search("grants")

        assert route.call_count == 3
        assert "500" in str(exc_info.value)
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    @respx.mock
    async def test_recovers_after_transient_failure(self, searcher):
        route = respx.post(PERPLEXITY_URL).mock(
            side_effect=[httpx.Response(503), _completion("[]")]
        )
        result = await searcher.search("grants")
        assert result.grants == []
        assert route.call_count == 2

    @pytest.mark.asyncio
    @respx.mock
    async def test_client_error_not_retried(self, searcher):
        route = respx.post(PERPLEXITY_URL).mock(return_value=httpx.Response(400))
        with pytest.raises(CollaboratorUnavailableError):
            await searcher.search("grants")
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_transport_error_retried(self, searcher):
        route = respx.post(PERPLEXITY_URL).mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(CollaboratorUnavailableError):
            await searcher.search("grants")
        assert route.call_count == 3


class TestQualificationAdapter:
    @pytest.mark.asyncio
    @respx.mock
    async def test_returns_payload(self, qualifier, flagship_opportunity, profile):
        payload = {"strategic_fit_score": 38, "win_probability_score": 24}
        route = respx.post(AI_GATEWAY_URL).mock(
            return_value=_completion(f"```json\n{json.dumps(payload)}\n```")
        )

        assert await qualifier.qualify(flagship_opportunity, profile) == payload
        sent = json.loads(route.calls[0].request.content)
        assert sent["temperature"] == 0.1
        assert flagship_opportunity.title in sent["messages"][1]["content"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_unparseable_reply(self, qualifier, flagship_opportunity):
        respx.post(AI_GATEWAY_URL).mock(return_value=_completion("Looks promising!"))
        with pytest.raises(QualificationValidationError):
            await qualifier.qualify(flagship_opportunity)


class TestDraftAdapter:
    @pytest.mark.asyncio
    @respx.mock
    async def test_generates_text(self, drafter):
        route = respx.post(AI_GATEWAY_URL).mock(return_value=_completion("Aim 1: ..."))
        text = await drafter.generate(
            "specific_aims",
            {"title": "Grant", "agency": "DOE", "amount": "$1M", "deadline": "2026-06-30"},
        )

        assert text == "Aim 1: ..."
        sent = json.loads(route.calls[0].request.content)
        assert sent["temperature"] == 0.7
        assert "Grant" in sent["messages"][1]["content"]

    @pytest.mark.asyncio
    @respx.mock
    async def test_unknown_section_makes_no_call(self, drafter):
        route = respx.post(AI_GATEWAY_URL).mock(return_value=_completion("x"))
        with pytest.raises(UnknownSectionError):
            await drafter.generate("executive_summary", {})
        assert route.call_count == 0

    @pytest.mark.asyncio
    @respx.mock
    async def test_empty_reply(self, drafter):
        respx.post(AI_GATEWAY_URL).mock(return_value=_completion(""))
        with pytest.raises(CollaboratorUnavailableError):
            await drafter.generate("narrative", {"title": "Grant"})
