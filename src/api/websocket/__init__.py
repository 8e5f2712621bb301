"""WebSocket handlers for browser chat sessions.

This module provides the chat WebSocket endpoint:
- chat_stream_endpoint: Main WebSocket handler
- session_registry: Global session registry
"""

from src.api.websocket.chat_stream import (
    SessionCapacityError,
    SessionRegistry,
    WebSocketEventSender,
    chat_stream_endpoint,
    session_registry,
)

__all__ = [
    "chat_stream_endpoint",
    "session_registry",
    "SessionRegistry",
    "SessionCapacityError",
    "WebSocketEventSender",
]
