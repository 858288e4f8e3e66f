"""
Error hierarchy shared by the Gemini client, the retry wrapper and the services.

- ConfigurationError: missing credential or invalid setting, never retried
- TransientServiceError: rate limit / overload / quota, retried with backoff
- FatalServiceError: any other remote failure, propagated unchanged
- RetriesExhaustedError: terminal, user-facing form of a transient failure
- ResponseFormatError: the model answered with text that does not parse
"""

from enum import Enum

TRANSIENT_STATUS_CODES = frozenset({429, 503})
TRANSIENT_STATUS_NAMES = frozenset({"RESOURCE_EXHAUSTED", "UNAVAILABLE"})
# Lowercase substrings of an error message that mark a transient failure
TRANSIENT_MESSAGE_MARKERS = ("429", "quota", "resource_exhausted", "overloaded", "rate limit")


class ErrorKind(str, Enum):
    """Retry classification of a failed remote call."""

    TRANSIENT = "transient"
    FATAL = "fatal"


class QuizAIError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(QuizAIError):
    """A required setting (e.g. the API credential) is missing or invalid."""


class ServiceError(QuizAIError):
    """A remote model call failed."""

    kind: ErrorKind = ErrorKind.FATAL

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransientServiceError(ServiceError):
    kind = ErrorKind.TRANSIENT


class FatalServiceError(ServiceError):
    kind = ErrorKind.FATAL


class RetriesExhaustedError(TransientServiceError):
    """
    Raised once every retry of a transient failure has been spent.

    Callers running many requests in a loop should stop when they see this.
    """

    def __init__(
        self,
        message: str,
        last_error: BaseException | None = None,
        attempts: int = 0,
    ) -> None:
        super().__init__(message, getattr(last_error, "status_code", None))
        self.last_error = last_error
        self.attempts = attempts


class QuotaExceededError(RetriesExhaustedError):
    pass


class ServiceOverloadedError(RetriesExhaustedError):
    pass


class ResponseFormatError(QuizAIError):
    """The model returned text that does not match the expected JSON shape."""

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text
