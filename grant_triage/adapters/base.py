"""Base client for chat-completion collaborators (search, scoring, drafting)."""

import json
import logging
import re
import time
from typing import Any, Optional

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception,
    before_sleep_log,
)

from ..errors import CollaboratorUnavailableError

logger = logging.getLogger(__name__)

# Standard timeout for all adapters: 30s connect, 60s read
ADAPTER_TIMEOUT = httpx.Timeout(connect=30.0, read=60.0, write=30.0, pool=30.0)

MAX_ATTEMPTS = 3

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def is_retryable(exc: BaseException) -> bool:
    """Transport failures, rate limits and server errors are worth another try."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


def adapter_retry(wait=None):
    """Retry decorator for adapter HTTP calls: 3 attempts, exponential backoff."""
    return retry(
        stop=stop_after_attempt(MAX_ATTEMPTS),
        wait=wait if wait is not None else wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text.strip()).strip()


def extract_json_object(text: str) -> Optional[dict]:
    """First {...} block in model output, or None when absent/unparseable."""
    if not text:
        return None
    match = _OBJECT_RE.search(strip_code_fences(text))
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def extract_json_array(text: str) -> Optional[list]:
    """First [...] block in model output, or None when absent/unparseable."""
    if not text:
        return None
    match = _ARRAY_RE.search(strip_code_fences(text))
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, list) else None


def message_content(data: Any) -> str:
    """choices[0].message.content of a chat-completion response, or ''."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return ""
    return content or ""


class ChatCompletionAdapter:
    """OpenAI-compatible chat-completions client with retries and timing logs.

    Subclasses set `source_name` and call `_chat`. Any failure after retries
    surfaces as CollaboratorUnavailableError.
    """

    source_name = "chat"

    def __init__(
        self,
        api_key: Optional[str],
        url: str,
        model: str,
        timeout: httpx.Timeout = ADAPTER_TIMEOUT,
        retry_wait=None,
    ) -> None:
        self._api_key = api_key
        self._url = url
        self.model = model
        self._timeout = timeout
        self._post_with_retry = adapter_retry(retry_wait)(self._post)

    async def _post(self, payload: dict) -> dict:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(self._url, json=payload, headers=headers)
            response.raise_for_status()
            return response.json()

    async def _chat(self, messages: list[dict], temperature: float) -> dict:
        """POST a chat-completion request and return the decoded response body."""
        if not self._api_key:
            raise CollaboratorUnavailableError(self.source_name, "API key not configured")

        payload = {"model": self.model, "messages": messages, "temperature": temperature}
        start = time.monotonic()
        try:
            data = await self._post_with_retry(payload)
        except httpx.HTTPStatusError as exc:
            duration_ms = (time.monotonic() - start) * 1000
            logger.error(
                "call_complete source=%s result=failure status=%d duration_ms=%.0f",
                self.source_name,
                exc.response.status_code,
                duration_ms,
            )
            raise CollaboratorUnavailableError(
                self.source_name, f"API error: {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            duration_ms = (time.monotonic() - start) * 1000
            logger.error(
                "call_complete source=%s result=failure error=%s duration_ms=%.0f",
                self.source_name,
                exc,
                duration_ms,
            )
            raise CollaboratorUnavailableError(self.source_name, str(exc) or type(exc).__name__) from exc

        duration_ms = (time.monotonic() - start) * 1000
        logger.info(
            "call_complete source=%s result=success duration_ms=%.0f",
            self.source_name,
            duration_ms,
        )
        return data
