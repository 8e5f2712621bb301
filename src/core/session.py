"""Per-connection conversation session data."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from src.core.conversation_state import SessionState, determine_state
from src.services.llm.protocol import Role, Turn

if TYPE_CHECKING:
    import asyncio

    from src.core.cancellation import CancellationToken

DEFAULT_LANGUAGE_CODE = "en-IN"
DEFAULT_HISTORY_WINDOW = 10


@dataclass
class PendingRequest:
    """The one in-flight generation request of a session."""

    token: CancellationToken
    task: asyncio.Task[None]
    source: str  # "audio" or "text"

    def cancel(self) -> bool:
        return self.token.cancel()


@dataclass
class ConversationSession:
    """State for a single connected client.

    Created when the WebSocket is accepted and dropped when it closes.
    History is kept in full for the connection's lifetime; only the request
    context is windowed.
    """

    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    language_code: str = DEFAULT_LANGUAGE_CODE
    history_window: int = DEFAULT_HISTORY_WINDOW
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    mic_active: bool = field(default=False, init=False)
    audio_buffer: list[int] = field(default_factory=list, init=False, repr=False)
    history: list[Turn] = field(default_factory=list, init=False, repr=False)
    pending: PendingRequest | None = field(default=None, init=False, repr=False)

    # Metrics
    total_turns: int = field(default=0, init=False)
    total_interrupts: int = field(default=0, init=False)
    total_audio_samples: int = field(default=0, init=False)

    @property
    def state(self) -> SessionState:
        """Current state derived from the mic flag and pending request."""
        return determine_state(self.mic_active, self.pending is not None)

    def set_language(self, language_code: str | None) -> None:
        """Record a new language tag; blank or missing values keep the current one."""
        if isinstance(language_code, str) and language_code.strip():
            self.language_code = language_code.strip()

    def append_audio(self, samples: list[int]) -> bool:
        """Buffer samples if the mic is active. Returns whether they were kept."""
        if not self.mic_active:
            return False
        self.audio_buffer.extend(samples)
        self.total_audio_samples += len(samples)
        return True

    def take_audio(self) -> list[int]:
        """Return the buffered samples and clear the buffer."""
        samples = self.audio_buffer
        self.audio_buffer = []
        return samples

    def clear_audio(self) -> None:
        self.audio_buffer = []

    def add_user_turn(self, text: str) -> Turn:
        turn = Turn(role=Role.USER, text=text)
        self.history.append(turn)
        return turn

    def add_model_turn(self, text: str) -> Turn:
        turn = Turn(role=Role.MODEL, text=text)
        self.history.append(turn)
        self.total_turns += 1
        return turn

    def recent_history(self) -> list[Turn]:
        """The most recent ``history_window`` turns, oldest first."""
        return self.history[-self.history_window :]

    def get_transcript(self) -> str:
        """Plain-text transcript of the whole conversation."""
        return "\n".join(f"{turn.role.value}: {turn.text}" for turn in self.history)

    def get_metrics(self) -> dict[str, object]:
        duration = (datetime.now(UTC) - self.created_at).total_seconds()
        return {
            "session_id": self.session_id,
            "language_code": self.language_code,
            "duration_seconds": duration,
            "history_length": len(self.history),
            "total_turns": self.total_turns,
            "total_interrupts": self.total_interrupts,
            "total_audio_samples": self.total_audio_samples,
        }
