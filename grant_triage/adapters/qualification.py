"""AI gateway qualification adapter."""

import logging
from typing import Optional

from ..errors import QualificationValidationError
from ..models.company_profile import CompanyProfile
from ..models.opportunity_raw import RawOpportunity
from ..scorer.prompts import QUALIFICATION_SYSTEM_PROMPT, build_qualification_prompt
from .base import ChatCompletionAdapter, extract_json_object, message_content

logger = logging.getLogger(__name__)

AI_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_SCORING_MODEL = "google/gemini-3-flash-preview"


class QualificationAdapter(ChatCompletionAdapter):
    """Asks the scoring model for component scores of one opportunity.

    Returns the raw JSON object; validation and total/decision recomputation
    happen in scorer.validation.
    """

    source_name = "qualification"

    def __init__(
        self,
        api_key: Optional[str],
        url: str = AI_GATEWAY_URL,
        model: str = DEFAULT_SCORING_MODEL,
        **kwargs,
    ) -> None:
        super().__init__(api_key, url, model, **kwargs)

    async def qualify(
        self, opportunity: RawOpportunity, profile: Optional[CompanyProfile] = None
    ) -> dict:
        """Score an opportunity with the model.

        Raises:
            CollaboratorUnavailableError: on HTTP failure
            QualificationValidationError: when the reply holds no JSON object
        """
        data = await self._chat(
            [
                {"role": "system", "content": QUALIFICATION_SYSTEM_PROMPT},
                {"role": "user", "content": build_qualification_prompt(opportunity, profile)},
            ],
            temperature=0.1,
        )

        content = message_content(data)
        payload = extract_json_object(content)
        if payload is None:
            logger.warning("Unparseable qualification for %s: %.200s", opportunity.title, content)
            raise QualificationValidationError("Qualification response was not a JSON object")
        return payload
