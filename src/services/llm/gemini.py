"""Gemini generateContent client over httpx."""

from __future__ import annotations

import asyncio
import base64
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import httpx

from src.config import Settings, get_settings
from src.logging_config import get_logger, truncate_for_log
from src.observability.metrics import record_generation
from src.prompts.assistant import (
    build_reply_instruction,
    build_transcription_instruction,
)
from src.services.llm.exceptions import (
    LLMAuthenticationError,
    LLMCancelledError,
    LLMConnectionError,
    LLMNotConfiguredError,
    LLMRateLimitError,
    LLMResponseError,
    LLMServiceError,
)
from src.services.llm.protocol import AudioClip, Role, Turn

if TYPE_CHECKING:
    from src.core.cancellation import CancellationToken

logger: Any = get_logger(__name__)

# Longest error body kept in exception messages
MAX_ERROR_BODY_CHARS = 500


def format_history(history: Sequence[Turn]) -> list[dict[str, Any]]:
    """Format history turns as API contents, skipping empty ones."""
    contents: list[dict[str, Any]] = []
    for turn in history:
        if not turn.text:
            continue
        role = Role.MODEL.value if turn.role == Role.MODEL else Role.USER.value
        contents.append({"role": role, "parts": [{"text": turn.text}]})
    return contents


def build_request_body(
    system_instruction: str,
    history: Sequence[Turn],
    user_parts: list[dict[str, Any]],
) -> dict[str, Any]:
    """Build a generateContent request body."""
    contents = format_history(history)
    contents.append({"role": Role.USER.value, "parts": user_parts})
    return {
        "system_instruction": {"parts": [{"text": system_instruction}]},
        "contents": contents,
    }


def extract_text(payload: Any) -> str:
    """Return ``candidates[0].content.parts[0].text`` from a response body.

    Raises:
        LLMResponseError: If the body has any other shape or the text is empty.
    """
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise LLMResponseError("Invalid API response structure") from e

    if not isinstance(text, str) or not text.strip():
        raise LLMResponseError("No text found in AI response")
    return text


class GeminiService:
    """Gemini REST client used for both transcription and replies.

    Each voice turn makes two calls: ``transcribe`` with the recorded clip
    inlined as base64 WAV, then ``generate_reply`` with the transcript.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def model(self) -> str:
        return self._settings.gemini_model

    @property
    def is_configured(self) -> bool:
        return self._settings.has_api_key

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy initialization of the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.gemini_api_base,
                timeout=self._settings.gemini_timeout_seconds,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def transcribe(
        self,
        clip: AudioClip,
        history: Sequence[Turn],
        *,
        language_code: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Transcribe an utterance.

        Args:
            clip: Encoded WAV clip of the utterance
            history: Recent conversation turns (context only)
            language_code: Expected spoken language
            cancel_token: Checked before sending and after the response

        Returns:
            Transcript text

        Raises:
            LLMServiceError: On any failure, including cancellation
        """
        body = build_request_body(
            build_transcription_instruction(language_code),
            history,
            [
                {
                    "inline_data": {
                        "mime_type": clip.mime_type,
                        "data": base64.b64encode(clip.data).decode("ascii"),
                    }
                }
            ],
        )
        logger.debug(
            f"Transcribing {clip.size_bytes} bytes of audio "
            f"({clip.sample_count} samples, language={language_code})"
        )
        return await self._generate(body, kind="transcribe", cancel_token=cancel_token)

    async def generate_reply(
        self,
        text: str,
        history: Sequence[Turn],
        *,
        language_code: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Generate the assistant's reply to ``text``.

        Raises:
            LLMServiceError: On any failure, including cancellation
        """
        body = build_request_body(
            build_reply_instruction(self._settings.assistant_persona, language_code),
            history,
            [{"text": text}],
        )
        logger.debug(
            f"Requesting reply for '{truncate_for_log(text)}' "
            f"with {len(history)} history turns"
        )
        return await self._generate(body, kind="reply", cancel_token=cancel_token)

    async def _generate(
        self,
        body: dict[str, Any],
        *,
        kind: str,
        cancel_token: CancellationToken | None,
    ) -> str:
        """POST a generateContent request and extract the reply text."""
        start_time = time.perf_counter()
        try:
            text = await self._post(body, cancel_token)
        except (LLMCancelledError, asyncio.CancelledError):
            record_generation(kind, "cancelled", time.perf_counter() - start_time)
            raise
        except LLMServiceError:
            record_generation(kind, "error", time.perf_counter() - start_time)
            raise

        record_generation(kind, "success", time.perf_counter() - start_time)
        return text

    async def _post(
        self,
        body: dict[str, Any],
        cancel_token: CancellationToken | None,
    ) -> str:
        api_key = self._settings.google_api_key
        if api_key is None or not self.is_configured:
            raise LLMNotConfiguredError("Missing GOOGLE_API_KEY")

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        url = f"/models/{self.model}:generateContent"

        try:
            response = await self.client.post(
                url,
                params={"key": api_key.get_secret_value()},
                json=body,
            )
        except httpx.TimeoutException as e:
            logger.error(f"Gemini request timed out after {self._settings.gemini_timeout_seconds}s")
            raise LLMConnectionError("Request to Gemini API timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Gemini connection error: {type(e).__name__}")
            raise LLMConnectionError(f"Failed to connect to Gemini API ({type(e).__name__})") from e

        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        if response.status_code in (401, 403):
            logger.error("Gemini authentication failed")
            raise LLMAuthenticationError(f"HTTP {response.status_code}: invalid Gemini API key")

        if response.status_code == 429:
            logger.warning("Gemini rate limit hit")
            raise LLMRateLimitError(
                "HTTP 429: rate limit exceeded",
                retry_after=self._extract_retry_after(response),
            )

        if not response.is_success:
            error_text = response.text[:MAX_ERROR_BODY_CHARS]
            logger.error(f"Gemini API error: {response.status_code} - {error_text}")
            raise LLMResponseError(
                f"HTTP {response.status_code}: {error_text}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise LLMResponseError("Response body is not valid JSON") from e

        text = extract_text(payload)
        logger.debug(f"Gemini response: {truncate_for_log(text)}")
        return text

    def _extract_retry_after(self, response: httpx.Response) -> float:
        """Extract retry-after from a rate limit response."""
        retry_after = response.headers.get("retry-after")
        if retry_after:
            try:
                return float(retry_after)
            except ValueError:
                pass
        return 60.0  # Default to 60 seconds

    async def close(self) -> None:
        """Close the client connection."""
        if self._client:
            await self._client.aclose()
            self._client = None
