"""Shared pytest fixtures for voice chat relay tests."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Callable, Generator, Sequence
from typing import Any

import pytest
import pytest_asyncio

from src.config import Settings
from src.core.session import ConversationSession
from src.core.session_manager import SessionManager
from src.services.llm.exceptions import LLMNotConfiguredError
from src.services.llm.protocol import AudioClip, Turn


def build_settings(**overrides) -> Settings:
    """Create a Settings object with safe test defaults."""
    base = {
        "google_api_key": "test-google-key",
        "gemini_model": "test-model",
        "gemini_api_base": "https://gemini.test/v1beta",
        "static_dir": "nonexistent-static-dir",
        "environment": "development",
    }
    base.update(overrides)
    return Settings(**base)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Return a factory to build Settings with overrides."""
    return build_settings


@pytest.fixture
def settings(settings_factory: Callable[..., Settings]) -> Settings:
    """Default Settings fixture."""
    return settings_factory()


# =============================================================================
# Session Fixtures
# =============================================================================


class FakeGenerationClient:
    """In-memory GenerationClient that records calls.

    Set ``gate`` to an asyncio.Event to hold calls until it is set, and
    ``transcribe_error`` / ``reply_error`` to make calls fail.
    """

    model = "fake-model"

    def __init__(
        self,
        *,
        transcript: str = "What is the range of the RV400?",
        reply: str = "The RV400 goes up to 150 km on a full charge.",
        configured: bool = True,
    ) -> None:
        self.transcript = transcript
        self.reply = reply
        self.configured = configured
        self.gate: asyncio.Event | None = None
        self.transcribe_error: Exception | None = None
        self.reply_error: Exception | None = None
        self.transcribe_calls: list[dict[str, Any]] = []
        self.reply_calls: list[dict[str, Any]] = []
        self.closed = False

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def transcribe(
        self,
        clip: AudioClip,
        history: Sequence[Turn],
        *,
        language_code: str,
        cancel_token=None,
    ) -> str:
        self.transcribe_calls.append(
            {
                "clip": clip,
                "history": list(history),
                "language_code": language_code,
                "cancel_token": cancel_token,
            }
        )
        await self._wait_and_check()
        if self.transcribe_error:
            raise self.transcribe_error
        return self.transcript

    async def generate_reply(
        self,
        text: str,
        history: Sequence[Turn],
        *,
        language_code: str,
        cancel_token=None,
    ) -> str:
        self.reply_calls.append(
            {
                "text": text,
                "history": list(history),
                "language_code": language_code,
                "cancel_token": cancel_token,
            }
        )
        await self._wait_and_check()
        if self.reply_error:
            raise self.reply_error
        return self.reply

    async def _wait_and_check(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if not self.configured:
            raise LLMNotConfiguredError("Missing GOOGLE_API_KEY")

    async def close(self) -> None:
        self.closed = True


class RecordingSender:
    """EventSender that keeps every outbound event as its wire dict."""

    def __init__(self) -> None:
        self.events: list[dict[str, Any]] = []

    async def send_event(self, event) -> None:
        self.events.append(event.to_wire())

    @property
    def types(self) -> list[str]:
        return [event["type"] for event in self.events]

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [event for event in self.events if event["type"] == event_type]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def fake_client() -> FakeGenerationClient:
    """Generation client that answers immediately."""
    return FakeGenerationClient()


@pytest.fixture
def sender() -> RecordingSender:
    """Sender that records outbound events."""
    return RecordingSender()


@pytest.fixture
def session() -> ConversationSession:
    """Fresh session with default language and history window."""
    return ConversationSession(session_id="test-session")


@pytest_asyncio.fixture
async def manager(
    session: ConversationSession,
    fake_client: FakeGenerationClient,
    sender: RecordingSender,
) -> AsyncGenerator[SessionManager, None]:
    """SessionManager wired to the fake client; closed after the test."""
    manager = SessionManager(session, fake_client, sender)
    yield manager
    await manager.close()


# =============================================================================
# FastAPI Test Client Fixtures
# =============================================================================


@pytest.fixture
def app_factory(settings_factory, monkeypatch) -> Callable[..., Any]:
    """Build an app with test settings, a fake client, and a fresh registry."""
    from src.api.websocket import chat_stream
    from src.config import get_settings
    from src.main import create_app

    def _build(
        client: FakeGenerationClient | None = None,
        **setting_overrides,
    ):
        test_settings = settings_factory(**setting_overrides)
        registry = chat_stream.SessionRegistry()
        monkeypatch.setattr(chat_stream, "session_registry", registry)
        monkeypatch.setattr("src.api.routes.health.session_registry", registry)

        app = create_app(
            settings=test_settings,
            generation_client=client or FakeGenerationClient(),
        )
        app.dependency_overrides[get_settings] = lambda: test_settings
        app.state.registry = registry
        return app

    return _build


@pytest.fixture
def test_client(app_factory, fake_client) -> Generator:
    """FastAPI TestClient with test settings and the fake generation client."""
    from fastapi.testclient import TestClient

    app = app_factory(client=fake_client)
    with TestClient(app) as client:
        yield client
