"""Prometheus metrics for the voice chat relay.

Provides metrics for monitoring sessions, generation latency, and failures.
Generation failures are also turned into chat-visible apologies, so the
error counters here are the structured signal for alerting.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

# =============================================================================
# Counters
# =============================================================================

SESSION_TOTAL = Counter(
    "relay_sessions_total",
    "Total WebSocket sessions opened",
    ["outcome"],
)

GENERATION_TOTAL = Counter(
    "relay_generation_requests_total",
    "Generation API calls by kind and outcome",
    ["kind", "outcome"],
)

INTERRUPT_TOTAL = Counter(
    "relay_interrupts_total",
    "Interrupt events received from clients",
)

MALFORMED_EVENT_TOTAL = Counter(
    "relay_malformed_events_total",
    "Inbound events that could not be parsed or validated",
)

DISCARDED_RESULT_TOTAL = Counter(
    "relay_discarded_results_total",
    "Generation results dropped because their request was cancelled",
)

# =============================================================================
# Gauges
# =============================================================================

ACTIVE_SESSIONS = Gauge(
    "relay_active_sessions",
    "Currently connected WebSocket sessions",
)

# =============================================================================
# Histograms
# =============================================================================

GENERATION_LATENCY = Histogram(
    "relay_generation_latency_seconds",
    "Generation API call latency",
    ["kind"],
    buckets=[0.25, 0.5, 0.75, 1.0, 1.5, 2.0, 3.0, 5.0, 10.0, 30.0],
)

UTTERANCE_DURATION = Histogram(
    "relay_utterance_duration_seconds",
    "Duration of recorded utterances sent for transcription",
    buckets=[0.5, 1, 2, 5, 10, 20, 30, 60],
)

# =============================================================================
# Helper Functions
# =============================================================================


def record_generation(kind: str, outcome: str, latency_seconds: float) -> None:
    """Record one generation API call.

    Args:
        kind: "transcribe" or "reply"
        outcome: "success", "error", or "cancelled"
        latency_seconds: Wall time spent on the call
    """
    GENERATION_TOTAL.labels(kind=kind, outcome=outcome).inc()
    if outcome != "cancelled":
        GENERATION_LATENCY.labels(kind=kind).observe(latency_seconds)


def record_session_opened(accepted: bool) -> None:
    """Record a connection attempt."""
    SESSION_TOTAL.labels(outcome="accepted" if accepted else "rejected").inc()
    if accepted:
        ACTIVE_SESSIONS.inc()


def record_session_closed() -> None:
    """Record a session teardown."""
    ACTIVE_SESSIONS.dec()


def record_utterance(sample_count: int, sample_rate: int) -> None:
    """Record the length of an utterance about to be transcribed."""
    if sample_rate > 0:
        UTTERANCE_DURATION.observe(sample_count / sample_rate)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output.

    Returns:
        Metrics in Prometheus text exposition format.
    """
    return generate_latest()


def get_content_type() -> str:
    """Get the content type for Prometheus metrics.

    Returns:
        Content-Type header value for Prometheus metrics.
    """
    return CONTENT_TYPE_LATEST
