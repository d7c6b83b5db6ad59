"""Error taxonomy for catalog loading, chat sessions and outbound collaborators."""
from typing import Optional


class CatalogLoadError(RuntimeError):
    """The lender catalog could not be read or has no lender collection. Fatal at startup."""


class ChatSessionBusyError(RuntimeError):
    """A message was sent while the previous exchange is still pending."""


class CollaboratorError(Exception):
    """Base for failures of the hosted LLM or the property-insights service."""

    retryable = True

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class CollaboratorTimeoutError(CollaboratorError):
    pass


class CollaboratorRequestError(CollaboratorError):
    """Transport or server error that may succeed on retry."""


class CollaboratorAuthError(CollaboratorError):
    retryable = False


class CollaboratorUnavailableError(CollaboratorError):
    """Explicit "service unavailable" signal; retrying only adds latency."""

    retryable = False


class LLMNotConfiguredError(CollaboratorUnavailableError):
    """No API key configured for the hosted LLM."""
