"""
AI Notes Backend: Summary Gateway
==================================

What:  How the Notes Client reaches the Summarize Proxy.
How:   LocalSummaryGateway calls the proxy's SummaryProvider in-process, so
       the notes page and POST /api/summarize share one Groq client and one
       set of error messages. Requests to either path count against the
       same per-IP rate limit.
"""

import logging
from abc import ABC, abstractmethod

from ainotes.exceptions import AINotesError, SummarizationError
from ainotes.services.llm_base import SummaryProvider

logger = logging.getLogger(__name__)


class SummaryGateway(ABC):
    @abstractmethod
    async def request_summary(self, content: str) -> str:
        """Return the summary for `content` or raise SummarizationError."""
        ...


class LocalSummaryGateway(SummaryGateway):
    def __init__(self, provider: SummaryProvider):
        self.provider = provider

    async def request_summary(self, content: str) -> str:
        try:
            return await self.provider.summarize(content)
        except SummarizationError:
            raise
        except AINotesError as e:
            # Configuration and validation failures surface with the proxy's message
            logger.warning("Summary request rejected: %s", e.message)
            raise SummarizationError(message=e.message, context=e.context) from e
