"""Observability module for metrics."""

from src.observability.metrics import (
    ACTIVE_SESSIONS,
    GENERATION_LATENCY,
    GENERATION_TOTAL,
    INTERRUPT_TOTAL,
    SESSION_TOTAL,
    record_generation,
    record_session_closed,
    record_session_opened,
)

__all__ = [
    "SESSION_TOTAL",
    "ACTIVE_SESSIONS",
    "GENERATION_TOTAL",
    "GENERATION_LATENCY",
    "INTERRUPT_TOTAL",
    "record_generation",
    "record_session_opened",
    "record_session_closed",
]
