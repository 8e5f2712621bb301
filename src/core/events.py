"""Session events exchanged with the browser.

Every event is a JSON object tagged by ``type``. Field names on the wire are
camelCase (``languageCode``, ``hasApiKey``); Python attributes are snake_case.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

Int16 = Annotated[int, Field(ge=-32768, le=32767)]


class EventModel(BaseModel):
    """Base for all session events."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict[str, Any]:
        """Serialize with wire field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class MalformedEventError(ValueError):
    """Raised when an inbound payload cannot be parsed or validated."""

    pass


# =============================================================================
# Inbound (client -> server)
# =============================================================================


class StartMic(EventModel):
    type: Literal["start_mic"] = "start_mic"
    language_code: str | None = Field(default=None, alias="languageCode")


class AudioData(EventModel):
    type: Literal["audio_data"] = "audio_data"
    audio: list[Int16] = Field(default_factory=list)
    timestamp: float | None = None


class StopMic(EventModel):
    type: Literal["stop_mic"] = "stop_mic"


class Interrupt(EventModel):
    type: Literal["interrupt"] = "interrupt"


class TextMessage(EventModel):
    type: Literal["text_message"] = "text_message"
    text: str = ""


InboundEvent = StartMic | AudioData | StopMic | Interrupt | TextMessage

INBOUND_EVENT_TYPES: dict[str, type[EventModel]] = {
    "start_mic": StartMic,
    "audio_data": AudioData,
    "stop_mic": StopMic,
    "interrupt": Interrupt,
    "text_message": TextMessage,
}


def parse_inbound_event(raw: str | bytes) -> InboundEvent | None:
    """Parse a raw WebSocket message into an inbound event.

    Returns:
        The event, or None when the ``type`` is not one we handle.

    Raises:
        MalformedEventError: If the payload is not a JSON object or fails
            validation for its declared type.
    """
    try:
        message = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedEventError(str(e)) from e

    if not isinstance(message, dict):
        raise MalformedEventError("Event must be a JSON object")

    event_type = message.get("type")
    model = INBOUND_EVENT_TYPES.get(event_type) if isinstance(event_type, str) else None
    if model is None:
        return None

    try:
        return model.model_validate(message)  # type: ignore[return-value]
    except ValidationError as e:
        raise MalformedEventError(
            f"Invalid {message['type']} event: {e.error_count()} validation error(s)"
        ) from e


# =============================================================================
# Outbound (server -> client)
# =============================================================================


class ConnectionStatus(EventModel):
    type: Literal["connection_status"] = "connection_status"
    connected: bool = True
    has_api_key: bool = Field(alias="hasApiKey")


class GeminiStatus(EventModel):
    type: Literal["gemini_status"] = "gemini_status"
    connected: bool
    model: str


class MicStatus(EventModel):
    type: Literal["mic_status"] = "mic_status"
    started: bool


class InterruptAck(EventModel):
    type: Literal["interrupt_ack"] = "interrupt_ack"
    interrupted: bool = True


class UserMessage(EventModel):
    type: Literal["user_message"] = "user_message"
    text: str


class AIResponse(EventModel):
    type: Literal["ai_response"] = "ai_response"
    text: str


class ErrorEvent(EventModel):
    type: Literal["error"] = "error"
    message: str


OutboundEvent = (
    ConnectionStatus
    | GeminiStatus
    | MicStatus
    | InterruptAck
    | UserMessage
    | AIResponse
    | ErrorEvent
)
