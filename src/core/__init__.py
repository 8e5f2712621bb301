"""Core conversation session components.

This module provides the per-connection session logic:
- ConversationSession: Session data (mic flag, audio buffer, history)
- SessionManager: State machine reacting to client events
- CancellationToken: Handle for one in-flight generation request
"""

from src.core.cancellation import CancellationToken
from src.core.conversation_state import SessionState, determine_state
from src.core.session import ConversationSession, PendingRequest
from src.core.session_manager import EventSender, SessionManager

__all__ = [
    # Session data
    "ConversationSession",
    "PendingRequest",
    "SessionState",
    "determine_state",
    # State machine
    "SessionManager",
    "EventSender",
    "CancellationToken",
]
