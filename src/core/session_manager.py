"""Session manager: the per-connection conversation state machine.

Reacts to inbound events from one client and drives at most one outbound
generation request at a time:

- start_mic / audio_data / stop_mic: record an utterance, then transcribe it
  and reply to the transcript (two sequential API calls)
- text_message: reply to typed text directly
- interrupt: cancel whatever is in flight and return to IDLE

Generation runs in a background task so the receive loop keeps accepting
audio and interrupts. Each request carries its own CancellationToken; a
result is applied only if its token is still live when the call returns.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from src.core.cancellation import CancellationToken
from src.core.conversation_state import SessionState
from src.core.events import (
    AIResponse,
    AudioData,
    ErrorEvent,
    InboundEvent,
    Interrupt,
    InterruptAck,
    MalformedEventError,
    MicStatus,
    OutboundEvent,
    StartMic,
    StopMic,
    TextMessage,
    UserMessage,
    parse_inbound_event,
)
from src.core.session import ConversationSession, PendingRequest
from src.logging_config import get_logger, truncate_for_log
from src.observability.metrics import (
    DISCARDED_RESULT_TOTAL,
    INTERRUPT_TOTAL,
    MALFORMED_EVENT_TOTAL,
    record_utterance,
)
from src.services.audio.wav import DEFAULT_SAMPLE_RATE, encode_wav
from src.services.llm.exceptions import LLMServiceError
from src.services.llm.protocol import AudioClip, GenerationClient, Turn

logger: Any = get_logger(__name__)

# Chat-visible replacements for failed calls. Failures are reported in the
# transcript rather than as protocol errors.
REPLY_FAILURE_TEMPLATE = "Sorry, I encountered an error: {error}. Please try again."
AUDIO_FAILURE_TEMPLATE = "Sorry, I could not process the audio: {error}"


class EventSender(Protocol):
    """Protocol for delivering outbound events to the client."""

    async def send_event(self, event: OutboundEvent) -> None:
        """Send one event. Implementations log and drop delivery failures."""
        ...


class SessionManager:
    """Owns one ConversationSession and interprets its events."""

    def __init__(
        self,
        session: ConversationSession,
        client: GenerationClient,
        sender: EventSender,
        *,
        sample_rate: int = DEFAULT_SAMPLE_RATE,
    ) -> None:
        self._session = session
        self._client = client
        self._sender = sender
        self._sample_rate = sample_rate
        self._closed = False

    @property
    def session(self) -> ConversationSession:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def pending_request(self) -> PendingRequest | None:
        return self._session.pending

    # =========================================================================
    # Inbound events
    # =========================================================================

    async def handle_message(self, raw: str | bytes) -> None:
        """Parse and dispatch one raw message from the transport."""
        try:
            event = parse_inbound_event(raw)
        except MalformedEventError as e:
            await self.report_malformed(e)
            return

        if event is None:
            logger.warning(f"Unknown message type from session {self._session.session_id}")
            return

        await self.handle_event(event)

    async def handle_event(self, event: InboundEvent) -> None:
        """Dispatch a parsed inbound event."""
        if self._closed:
            return

        if isinstance(event, AudioData):
            self.receive_audio(event.audio)
        elif isinstance(event, StartMic):
            await self.start_mic(event.language_code)
        elif isinstance(event, StopMic):
            await self.stop_mic()
        elif isinstance(event, Interrupt):
            await self.interrupt()
        elif isinstance(event, TextMessage):
            await self.send_text(event.text)

    async def report_malformed(self, error: Exception) -> None:
        """Report an unparseable payload without touching session state."""
        MALFORMED_EVENT_TOTAL.inc()
        logger.warning(f"Malformed event from session {self._session.session_id}: {error}")
        await self._emit(ErrorEvent(message=f"Server error: {error}"))

    async def start_mic(self, language_code: str | None = None) -> None:
        """Begin buffering an utterance."""
        session = self._session
        session.set_language(language_code)
        if session.mic_active and session.audio_buffer:
            logger.debug(f"start_mic while listening; dropping {len(session.audio_buffer)} samples")

        session.mic_active = True
        session.clear_audio()
        logger.info(f"Microphone started (language={session.language_code})")

        await self._emit(MicStatus(started=True))

    def receive_audio(self, samples: list[int]) -> None:
        """Append samples while listening; drop them otherwise."""
        if not self._session.append_audio(samples):
            logger.trace(f"Dropped {len(samples)} samples (mic inactive)")

    async def stop_mic(self) -> None:
        """End the utterance and hand it to the audio path."""
        session = self._session
        if not session.mic_active:
            logger.debug("stop_mic while not listening; ignored")
            return

        session.mic_active = False
        samples = session.take_audio()

        if not samples:
            logger.info("Microphone stopped with empty buffer")
            await self._emit(MicStatus(started=False))
            return

        logger.info(f"Microphone stopped, processing {len(samples)} samples")
        record_utterance(len(samples), self._sample_rate)

        context = session.recent_history()
        language_code = session.language_code
        self._issue_request(
            "audio",
            lambda token: self._run_audio_turn(token, samples, context, language_code),
        )

    async def send_text(self, text: str) -> None:
        """Reply to a typed message, bypassing transcription."""
        if not text:
            return

        session = self._session
        self._cancel_pending("new text message")

        context = session.recent_history()
        language_code = session.language_code
        await self._commit_user_turn(text)

        logger.info(f"Processing text message: {truncate_for_log(text)}")
        self._issue_request(
            "text",
            lambda token: self._reply_to(token, text, context, language_code),
        )

    async def interrupt(self) -> None:
        """Cancel in-flight work, drop buffered audio, and return to IDLE."""
        session = self._session
        self._cancel_pending("interrupt")
        session.clear_audio()
        session.mic_active = False
        session.total_interrupts += 1
        INTERRUPT_TOTAL.inc()

        logger.info(f"Conversation interrupted (session {session.session_id})")
        await self._emit(InterruptAck(interrupted=True))
        await self._emit(MicStatus(started=False))

    # =========================================================================
    # Request issuance
    # =========================================================================

    def _issue_request(
        self,
        source: str,
        runner: Callable[[CancellationToken], Awaitable[None]],
    ) -> PendingRequest:
        """Start a background request, replacing any pending one."""
        self._cancel_pending(f"new {source} request")

        token = CancellationToken()
        task = asyncio.create_task(
            self._run_request(token, source, runner),
            name=f"{source}-{self._session.session_id}-{token.request_id}",
        )
        token.bind(task)

        pending = PendingRequest(token=token, task=task, source=source)
        self._session.pending = pending
        logger.debug(f"Issued {source} request {token.request_id}")
        return pending

    def _cancel_pending(self, reason: str) -> bool:
        """Cancel the pending request, if any. Returns whether one existed."""
        pending = self._session.pending
        if pending is None:
            return False

        self._session.pending = None
        if pending.cancel():
            logger.info(f"Cancelled {pending.source} request {pending.token.request_id} ({reason})")
        return True

    async def _run_request(
        self,
        token: CancellationToken,
        source: str,
        runner: Callable[[CancellationToken], Awaitable[None]],
    ) -> None:
        try:
            await runner(token)
        except asyncio.CancelledError:
            logger.debug(f"{source} request {token.request_id} task cancelled")
            raise
        except Exception as e:
            logger.exception(f"Unexpected error in {source} request {token.request_id}: {e}")
            if not token.cancelled:
                await self._emit(ErrorEvent(message=f"Server error: {e}"))
        finally:
            pending = self._session.pending
            if pending is not None and pending.token is token:
                self._session.pending = None

    # =========================================================================
    # Turn processing
    # =========================================================================

    async def _run_audio_turn(
        self,
        token: CancellationToken,
        samples: list[int],
        context: list[Turn],
        language_code: str,
    ) -> None:
        """Transcribe an utterance, then reply to the transcript."""
        clip = AudioClip(
            data=encode_wav(samples, self._sample_rate),
            sample_count=len(samples),
        )

        try:
            transcript = await self._client.transcribe(
                clip,
                context,
                language_code=language_code,
                cancel_token=token,
            )
        except LLMServiceError as e:
            if self._is_stale(token, "transcription error"):
                return
            logger.error(f"Transcription failed: {e}")
            # The apology stands in for the transcript and still gets a reply
            transcript = AUDIO_FAILURE_TEMPLATE.format(error=e)

        if self._is_stale(token, "transcript"):
            return

        logger.info(f"Transcript: {truncate_for_log(transcript)}")
        await self._commit_user_turn(transcript)

        if await self._reply_to(token, transcript, context, language_code):
            await self._emit(MicStatus(started=False))

    async def _commit_user_turn(self, text: str) -> None:
        self._session.add_user_turn(text)
        await self._emit(UserMessage(text=text))

    async def _reply_to(
        self,
        token: CancellationToken,
        text: str,
        context: list[Turn],
        language_code: str,
    ) -> bool:
        """Produce and record the reply to a committed user turn.

        ``context`` is the history window captured before the user turn was
        appended. Returns False if the result was discarded.
        """
        try:
            reply = await self._client.generate_reply(
                text,
                context,
                language_code=language_code,
                cancel_token=token,
            )
        except LLMServiceError as e:
            if self._is_stale(token, "reply error"):
                return False
            logger.error(f"Reply generation failed: {e}")
            reply = REPLY_FAILURE_TEMPLATE.format(error=e)

        if self._is_stale(token, "reply"):
            return False

        self._session.add_model_turn(reply)
        await self._emit(AIResponse(text=reply))
        logger.info(f"AI response sent: {truncate_for_log(reply)}")
        return True

    def _is_stale(self, token: CancellationToken, what: str) -> bool:
        """Check whether a result belongs to a cancelled request."""
        if not token.cancelled and not self._closed:
            return False
        DISCARDED_RESULT_TOTAL.inc()
        logger.debug(f"Discarding {what} for cancelled request {token.request_id}")
        return True

    async def _emit(self, event: OutboundEvent) -> None:
        await self._sender.send_event(event)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def wait_for_pending(self) -> None:
        """Wait until the current pending request (if any) finishes."""
        pending = self._session.pending
        if pending is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await pending.task

    async def close(self) -> dict[str, object]:
        """Cancel in-flight work and drop buffers. Returns session metrics."""
        if self._closed:
            return self._session.get_metrics()

        self._closed = True
        pending = self._session.pending
        self._cancel_pending("session closed")
        self._session.clear_audio()
        self._session.mic_active = False

        if pending is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await pending.task

        metrics = self._session.get_metrics()
        logger.info(f"Session {self._session.session_id} closed: {metrics}")
        return metrics
