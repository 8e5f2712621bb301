"""Custom exceptions for generation services."""


class LLMServiceError(Exception):
    """Base exception for generation service errors."""

    pass


class LLMNotConfiguredError(LLMServiceError):
    """Raised when no API key is available."""

    pass


class LLMRateLimitError(LLMServiceError):
    """Raised when rate limit is exceeded."""

    def __init__(self, message: str, retry_after: float = 60.0):
        super().__init__(message)
        self.retry_after = retry_after


class LLMConnectionError(LLMServiceError):
    """Raised when unable to connect to the API (includes timeouts)."""

    pass


class LLMAuthenticationError(LLMServiceError):
    """Raised when API key is invalid."""

    pass


class LLMResponseError(LLMServiceError):
    """Raised on a non-2xx status or a response without candidate text."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class LLMCancelledError(LLMServiceError):
    """Raised when the request's cancellation token was cancelled."""

    pass
