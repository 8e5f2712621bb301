"""Generation services (Gemini)."""

from src.services.llm.exceptions import (
    LLMAuthenticationError,
    LLMCancelledError,
    LLMConnectionError,
    LLMNotConfiguredError,
    LLMRateLimitError,
    LLMResponseError,
    LLMServiceError,
)
from src.services.llm.gemini import GeminiService
from src.services.llm.protocol import (
    AudioClip,
    GenerationClient,
    Role,
    Turn,
)

__all__ = [
    # Protocol and types
    "GenerationClient",
    "Turn",
    "Role",
    "AudioClip",
    # Implementation
    "GeminiService",
    # Exceptions
    "LLMServiceError",
    "LLMNotConfiguredError",
    "LLMRateLimitError",
    "LLMConnectionError",
    "LLMAuthenticationError",
    "LLMResponseError",
    "LLMCancelledError",
]
