"""Generation client protocol and data types."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from src.core.cancellation import CancellationToken


class Role(str, Enum):
    """Message role in conversation history."""

    USER = "user"
    MODEL = "model"


@dataclass(frozen=True, slots=True)
class Turn:
    """A single role-tagged message in conversation history."""

    role: Role
    text: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True, slots=True)
class AudioClip:
    """A self-contained encoded audio clip sent inline to the API."""

    data: bytes
    mime_type: str = "audio/wav"
    sample_count: int = 0

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class GenerationClient(Protocol):
    """Protocol for generative-language API clients.

    Both calls accept the recent history window as context and an optional
    cancellation token, which implementations check before sending and after
    the response arrives.
    """

    @property
    def model(self) -> str:
        """Model name reported to clients."""
        ...

    @property
    def is_configured(self) -> bool:
        """Whether credentials are available for API calls."""
        ...

    async def transcribe(
        self,
        clip: AudioClip,
        history: Sequence[Turn],
        *,
        language_code: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Return the transcript of a recorded utterance."""
        ...

    async def generate_reply(
        self,
        text: str,
        history: Sequence[Turn],
        *,
        language_code: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Return the assistant's reply to a user message."""
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
