"""AI gateway drafting adapter for application sections."""

import logging
from typing import Optional

from ..applications.prompts import SECTION_TEMPLATES, build_draft_prompt
from ..errors import CollaboratorUnavailableError
from ..models.application import parse_section
from .base import ChatCompletionAdapter, message_content
from .qualification import AI_GATEWAY_URL

logger = logging.getLogger(__name__)

DEFAULT_DRAFT_MODEL = "google/gemini-3-flash-preview"


class DraftAdapter(ChatCompletionAdapter):
    """Generates draft text for one application section."""

    source_name = "drafting"

    def __init__(
        self,
        api_key: Optional[str],
        url: str = AI_GATEWAY_URL,
        model: str = DEFAULT_DRAFT_MODEL,
        **kwargs,
    ) -> None:
        super().__init__(api_key, url, model, **kwargs)

    async def generate(self, section, context: dict) -> str:
        """Draft a section from opportunity context (title, agency, amount, deadline).

        Raises:
            UnknownSectionError: before any call, for an unknown section
            CollaboratorUnavailableError: on HTTP failure or an empty reply
        """
        section = parse_section(section)

        logger.info("Generating draft for section: %s", section.value)
        data = await self._chat(
            [
                {"role": "system", "content": SECTION_TEMPLATES[section]},
                {"role": "user", "content": build_draft_prompt(section, context)},
            ],
            temperature=0.7,
        )

        content = message_content(data)
        if not content:
            raise CollaboratorUnavailableError(self.source_name, "No response from AI")

        logger.info("Generated draft for %s, length=%d", section.value, len(content))
        return content
