"""
AI Notes Backend: Abstract Summarization Provider
==================================================

What:  Abstract base class for the service behind POST /api/summarize.
Why:   The proxy route and the in-process summary gateway depend on this
       contract, not on a vendor. Tests substitute a fake provider.
How:   Concrete implementations inherit from SummaryProvider and implement
       summarize() and health_check().
"""

from abc import ABC, abstractmethod


class SummaryProvider(ABC):
    """
    Contract:
        - summarize() validates its input, calls the model once and returns
          the trimmed summary text
        - Missing credentials raise ConfigurationError before any call
        - Invalid input raises ValidationError before any call
        - Upstream or extraction failures raise SummarizationError
        - No retries, no caching
    """

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when the server-held credential is present."""
        ...

    @abstractmethod
    async def summarize(self, content: object) -> str:
        """
        Summarize a note's content.

        Args:
            content: Value of the request's `content` field. Anything other
                     than a non-empty string is rejected.

        Returns:
            The summary text, trimmed and never empty.

        Raises:
            ConfigurationError: Credential absent (checked first)
            ValidationError: content missing, not a string, or empty
            SummarizationError: Upstream non-success, transport failure, or
                no extractable completion text
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Cheap readiness check; must not spend model tokens."""
        ...

    async def aclose(self) -> None:
        """Release pooled resources. Default: nothing to release."""
        return None
