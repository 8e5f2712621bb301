"""WebSocket handler for browser voice chat sessions.

Handles the chat event protocol:
- Receives mic control, audio frames, text messages, and interrupts
- Sends status updates, transcripts, and assistant replies
- Manages session lifecycle (one session per connection)
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from src.config import Settings, get_settings
from src.core.events import (
    ConnectionStatus,
    ErrorEvent,
    GeminiStatus,
    OutboundEvent,
)
from src.core.session import ConversationSession
from src.core.session_manager import SessionManager
from src.logging_config import get_logger
from src.observability.metrics import record_session_closed, record_session_opened
from src.services.llm.protocol import GenerationClient

logger: Any = get_logger(__name__)

# Close code for "try again later"
WS_CLOSE_TRY_AGAIN_LATER = 1013

MISSING_KEY_MESSAGE = (
    "Server misconfigured: missing GOOGLE_API_KEY. Please add your API key to .env file."
)


class SessionCapacityError(Exception):
    """Raised when the server is at maximum session capacity."""

    pass


class SessionRegistry:
    """Registry of active chat sessions keyed by connection id.

    Mutated only on connect and disconnect.
    """

    def __init__(self, max_sessions: int | None = None) -> None:
        self._sessions: dict[str, SessionManager] = {}
        self._lock = asyncio.Lock()
        self._max_sessions = max_sessions

    async def create(
        self,
        connection_id: str,
        *,
        client: GenerationClient,
        sender: WebSocketEventSender,
        settings: Settings,
    ) -> SessionManager:
        """Create the session for a newly accepted connection.

        Raises:
            SessionCapacityError: If the registry is full.
        """
        max_sessions = self._max_sessions or settings.max_concurrent_sessions
        async with self._lock:
            if connection_id in self._sessions:
                return self._sessions[connection_id]

            if len(self._sessions) >= max_sessions:
                logger.warning(
                    f"Max concurrent sessions reached ({max_sessions}), "
                    f"rejecting connection {connection_id}"
                )
                raise SessionCapacityError(
                    f"Server at capacity ({max_sessions} concurrent sessions)"
                )

            session = ConversationSession(
                session_id=connection_id,
                language_code=settings.default_language_code,
                history_window=settings.history_window,
            )
            manager = SessionManager(
                session,
                client,
                sender,
                sample_rate=settings.audio_sample_rate,
            )
            self._sessions[connection_id] = manager

            logger.info(
                f"Created session {connection_id} "
                f"(active: {len(self._sessions)}/{max_sessions})"
            )
            return manager

    async def remove(self, connection_id: str) -> SessionManager | None:
        """Remove a session from the registry.

        Returns its manager for final cleanup.
        """
        async with self._lock:
            return self._sessions.pop(connection_id, None)

    async def close_all(self) -> None:
        """Close all sessions (for shutdown)."""
        async with self._lock:
            managers = list(self._sessions.items())
            self._sessions.clear()

        for connection_id, manager in managers:
            record_session_closed()
            try:
                await manager.close()
            except Exception as e:
                logger.error(f"Error closing session {connection_id}: {e}")

    @property
    def active_count(self) -> int:
        """Number of active sessions."""
        return len(self._sessions)


# Global registry instance
session_registry = SessionRegistry()


class WebSocketEventSender:
    """Sends outbound events as JSON over the WebSocket.

    Implements the EventSender protocol for SessionManager.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._send_lock = asyncio.Lock()

    async def send_event(self, event: OutboundEvent) -> None:
        """Send one event; failures are logged and dropped."""
        if self._websocket.client_state != WebSocketState.CONNECTED:
            logger.debug(f"Dropping {event.type} event, socket not connected")
            return

        try:
            async with self._send_lock:
                await self._websocket.send_json(event.to_wire())
        except Exception as e:
            logger.error(f"Failed to send {event.type} event: {e}")


async def chat_stream_endpoint(
    websocket: WebSocket,
    client: GenerationClient,
    *,
    registry: SessionRegistry | None = None,
    settings: Settings | None = None,
) -> None:
    """Handle one browser chat WebSocket connection.

    Protocol:
    - Sends connection_status and gemini_status on connect
    - Receives JSON events: start_mic, audio_data, stop_mic, interrupt, text_message
    - Sends JSON events: mic_status, interrupt_ack, user_message, ai_response, error
    """
    registry = registry or session_registry
    settings = settings or get_settings()

    await websocket.accept()
    connection_id = uuid.uuid4().hex
    sender = WebSocketEventSender(websocket)
    logger.info(f"WebSocket connected: {connection_id}")

    try:
        manager = await registry.create(
            connection_id,
            client=client,
            sender=sender,
            settings=settings,
        )
    except SessionCapacityError as e:
        record_session_opened(accepted=False)
        await sender.send_event(ErrorEvent(message=str(e)))
        await websocket.close(code=WS_CLOSE_TRY_AGAIN_LATER)
        return

    record_session_opened(accepted=True)

    try:
        has_api_key = client.is_configured
        await sender.send_event(ConnectionStatus(connected=True, has_api_key=has_api_key))
        if has_api_key:
            await sender.send_event(GeminiStatus(connected=True, model=client.model))
        else:
            await sender.send_event(ErrorEvent(message=MISSING_KEY_MESSAGE))

        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket closed by client: {connection_id}")
                break

            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue

            await manager.handle_message(raw)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {connection_id}")

    except Exception as e:
        logger.error(f"WebSocket error for {connection_id}: {e}")

    finally:
        await _cleanup_session(connection_id, registry)


async def _cleanup_session(connection_id: str, registry: SessionRegistry) -> None:
    """Drop the session and cancel any in-flight request."""
    manager = await registry.remove(connection_id)
    if manager is None:
        return

    record_session_closed()
    try:
        await manager.close()
    except Exception as e:
        logger.error(f"Error closing session {connection_id}: {e}")
