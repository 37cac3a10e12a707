"""Perplexity search adapter - POST api.perplexity.ai/chat/completions."""

import logging
from typing import Optional

from pydantic import ValidationError

from ..errors import CollaboratorUnavailableError
from ..models.search import SearchFilters, SearchHit, SearchResult
from .base import ChatCompletionAdapter, extract_json_array, message_content

logger = logging.getLogger(__name__)

PERPLEXITY_URL = "https://api.perplexity.ai/chat/completions"
DEFAULT_SEARCH_MODEL = "sonar-pro"

SEARCH_SYSTEM_PROMPT = """You are an expert grant researcher. Find real, current grant opportunities that match the user's search query.

Focus on:
- SBIR/STTR programs from federal agencies
- NSF, NIH, DOE, NASA, DARPA grants
- State and local economic development grants
- Private foundation grants
- Corporate innovation programs

For each opportunity provide the title, funding agency, amount (range if applicable), deadline, a brief description, eligibility requirements and a source URL. Cite your sources."""

SEARCH_USER_PROMPT = """Search for grant opportunities matching: "{query}"
{filter_lines}
Find 5-10 relevant grant opportunities and return them as a JSON array with this structure:
[{{
  "title": "Grant Program Name",
  "agency": "Funding Organization",
  "amount": "$X - $Y",
  "deadline": "Date or Rolling",
  "description": "Brief program description",
  "eligibility": "Who can apply",
  "sourceUrl": "https://..."
}}]

Return ONLY the JSON array, no additional text."""


def build_search_prompt(query: str, filters: Optional[SearchFilters] = None) -> str:
    lines = []
    if filters is not None:
        if filters.funding_range:
            lines.append(f"Funding range: {filters.funding_range}")
        if filters.deadline:
            lines.append(f"Deadline preference: {filters.deadline}")
        if filters.sector:
            lines.append(f"Technology sector: {filters.sector}")
    filter_lines = "\n".join(lines) + "\n" if lines else ""
    return SEARCH_USER_PROMPT.format(query=query, filter_lines=filter_lines)


class PerplexitySearchAdapter(ChatCompletionAdapter):
    """Grant discovery through Perplexity's web-grounded chat model."""

    source_name = "perplexity"

    def __init__(
        self,
        api_key: Optional[str],
        url: str = PERPLEXITY_URL,
        model: str = DEFAULT_SEARCH_MODEL,
        **kwargs,
    ) -> None:
        super().__init__(api_key, url, model, **kwargs)

    async def search(self, query: str, filters: Optional[SearchFilters] = None) -> SearchResult:
        """Search for grants matching a query.

        Unparseable model output yields zero hits rather than an error;
        hits missing a title are skipped.

        Raises:
            ValueError: if query is empty
            CollaboratorUnavailableError: on HTTP failure or an empty response
        """
        if not query or not query.strip():
            raise ValueError("Query is required")

        logger.info("Searching grants with query: %s", query)
        data = await self._chat(
            [
                {"role": "system", "content": SEARCH_SYSTEM_PROMPT},
                {"role": "user", "content": build_search_prompt(query, filters)},
            ],
            temperature=0.2,
        )

        content = message_content(data)
        if not content:
            raise CollaboratorUnavailableError(self.source_name, "No results from search")

        citations = [c for c in (data.get("citations") or []) if isinstance(c, str)]

        items = extract_json_array(content)
        if items is None:
            logger.warning("Search response contained no parseable grant array")
            return SearchResult(query=query, grants=[], citations=citations)

        grants = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                grants.append(SearchHit.model_validate(item))
            except ValidationError as e:
                logger.warning("Skipping malformed search hit: %s", e)

        logger.info("Found %d grant opportunities", len(grants))
        return SearchResult(query=query, grants=grants, citations=citations)
