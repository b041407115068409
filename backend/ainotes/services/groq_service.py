"""
AI Notes Backend: Groq Summarization Service
=============================================

What:  SummaryProvider backed by an OpenAI-compatible chat-completion API
       (Groq by default).
Why:   Keeps the API credential on the server; the browser only ever talks to
       POST /api/summarize.
How:   Builds a fixed two-turn prompt, POSTs it with fixed model, token cap
       and temperature, and extracts the first completion's text.

Failure Handling:
    Each failure is reported once, as an exception, and never retried:
        no credential          → ConfigurationError (no upstream call)
        bad input              → ValidationError   (no upstream call)
        transport error        → SummarizationError
        upstream non-2xx       → SummarizationError with status + body
        no completion text     → SummarizationError("Failed to extract ...")
"""

import logging
import time
import uuid
from typing import Any, Dict, List, Optional

import httpx

from ainotes.config import Settings
from ainotes.exceptions import ConfigurationError, SummarizationError, ValidationError
from ainotes.services.llm_base import SummaryProvider

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant that summarizes text concisely."
USER_INSTRUCTION = "Summarize the following text concisely:"

INVALID_CONTENT_MESSAGE = "Invalid note content provided."
MISSING_KEY_MESSAGE = "API key not configured."
EXTRACTION_FAILED_MESSAGE = "Failed to extract summary from API response."


def build_messages(content: str) -> List[Dict[str, str]]:
    """
    Build the two-turn prompt.

    The note text is appended verbatim after the fixed instruction: no
    trimming, escaping or truncation, whatever it contains.
    """
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": f"{USER_INSTRUCTION}\n\n{content}"},
    ]


def extract_summary(data: Any) -> Optional[str]:
    """Return choices[0].message.content trimmed, or None if absent/empty."""
    try:
        text = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(text, str):
        return None
    return text.strip() or None


class GroqSummaryService(SummaryProvider):
    """
    Chat-completion summarizer.

    Args:
        api_key:     Bearer credential (empty string = not configured)
        api_url:     Full chat-completions endpoint URL
        model:       Model identifier
        max_tokens:  Completion token cap
        temperature: Sampling temperature
        timeout:     Per-request timeout in seconds
        transport:   Optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        api_key: str,
        api_url: str,
        *,
        model: str = "llama3-8b-8192",
        max_tokens: int = 100,
        temperature: float = 0.5,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self.api_url = api_url
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

        logger.info(
            "GroqSummaryService initialized with model=%s, max_tokens=%d, temperature=%.2f",
            model, max_tokens, temperature,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "GroqSummaryService":
        return cls(
            settings.groq_api_key,
            settings.groq_api_url,
            model=settings.summary_model,
            max_tokens=settings.summary_max_tokens,
            temperature=settings.summary_temperature,
            timeout=settings.http_timeout,
            transport=transport,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def build_payload(self, content: str) -> Dict[str, Any]:
        return {
            "model": self.model,
            "messages": build_messages(content),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    async def summarize(self, content: object) -> str:
        # Misconfiguration is reported before the input is even looked at
        if not self.is_configured:
            logger.error("Groq API key is not configured.")
            raise ConfigurationError(message=MISSING_KEY_MESSAGE, setting="GROQ_API_KEY")

        if not isinstance(content, str) or not content:
            raise ValidationError(message=INVALID_CONTENT_MESSAGE, field="content")

        call_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        try:
            response = await self._http.post(
                self.api_url,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self._api_key}",
                },
                json=self.build_payload(content),
            )
        except httpx.HTTPError as e:
            logger.error("[%s] Summarization request failed: %s", call_id, str(e))
            raise SummarizationError(
                message=f"Failed to reach the summarization service: {type(e).__name__}.",
                context={"call_id": call_id},
            ) from e

        duration_ms = (time.perf_counter() - start_time) * 1000

        if not response.is_success:
            body = response.text
            logger.error(
                "[%s] Groq API error: %d %s after %.0fms: %s",
                call_id, response.status_code, response.reason_phrase, duration_ms, body,
            )
            raise SummarizationError(
                message=(
                    f"API request failed with status {response.status_code}: "
                    f"{response.reason_phrase}. {body}"
                ),
                upstream_status=response.status_code,
                context={"call_id": call_id},
            )

        try:
            data = response.json()
        except ValueError:
            data = None

        summary = extract_summary(data)
        if summary is None:
            logger.error("[%s] Could not extract summary from Groq response", call_id)
            raise SummarizationError(
                message=EXTRACTION_FAILED_MESSAGE,
                upstream_status=response.status_code,
                context={"call_id": call_id},
            )

        logger.info(
            "[%s] Summary generated in %.0fms (%d chars in, %d chars out)",
            call_id, duration_ms, len(content), len(summary),
        )
        return summary

    async def health_check(self) -> bool:
        # Credential presence only: no upstream request per probe
        return self.is_configured

    async def aclose(self) -> None:
        await self._http.aclose()
