"""Custom exceptions for the courtroom engine."""

from typing import Any


class CourtroomError(Exception):
    """Base exception for all courtroom errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# =============================================================================
# LLM Errors
# =============================================================================


class LLMError(CourtroomError):
    """Base exception for LLM-related errors."""

    pass


class LLMRateLimitError(LLMError):
    """Raised when hitting API rate limits."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: float | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class LLMContextLengthError(LLMError):
    """Raised when context length is exceeded."""

    def __init__(
        self,
        message: str = "Context length exceeded",
        max_tokens: int | None = None,
        used_tokens: int | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.max_tokens = max_tokens
        self.used_tokens = used_tokens


class LLMAuthenticationError(LLMError):
    """Raised when API authentication fails."""

    pass


class LLMConnectionError(LLMError):
    """Raised when unable to connect to LLM API."""

    pass


class LLMResponseParseError(LLMError):
    """Raised when unable to parse LLM response."""

    def __init__(
        self,
        message: str = "Failed to parse LLM response",
        raw_response: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.raw_response = raw_response


class GatewayTimeoutError(LLMError):
    """Raised when the response gateway does not answer in time."""

    def __init__(self, timeout: float, **kwargs: Any):
        super().__init__(f"Gateway call exceeded {timeout}s", **kwargs)
        self.timeout = timeout


# =============================================================================
# Session Errors
# =============================================================================


class SessionError(CourtroomError):
    """Base exception for session-related errors."""

    pass


class SessionStateError(SessionError):
    """Raised when session is in invalid state for operation."""

    def __init__(
        self,
        message: str,
        expected_status: str | None = None,
        actual_status: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.expected_status = expected_status
        self.actual_status = actual_status


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(CourtroomError):
    """Raised when validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value


class ScenarioNotFoundError(ValidationError):
    """Raised when a scenario key is not in the catalog."""

    def __init__(self, key: str, **kwargs: Any):
        super().__init__(f"Scenario not found: {key}", field="scenario_key", value=key, **kwargs)


class ThemeNotFoundError(ValidationError):
    """Raised when a theme key is not in the catalog."""

    def __init__(self, key: str, **kwargs: Any):
        super().__init__(f"Theme not found: {key}", field="theme_key", value=key, **kwargs)


# =============================================================================
# Speech Errors
# =============================================================================


class SpeechError(CourtroomError):
    """Base exception for speech input errors."""

    pass


class SpeechUnavailableError(SpeechError):
    """Raised when the host platform has no speech recognition."""

    def __init__(
        self,
        message: str = "Speech recognition is not supported on this device.",
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)


class SpeechRecognitionError(SpeechError):
    """Raised when the recognizer fails at runtime."""

    def __init__(self, code: str, **kwargs: Any):
        super().__init__(f"Speech recognition error: {code}", **kwargs)
        self.code = code
