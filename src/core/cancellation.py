"""Cancellation handles for in-flight generation requests."""

from __future__ import annotations

import asyncio
import itertools

from src.services.llm.exceptions import LLMCancelledError

_request_ids = itertools.count(1)


class CancellationToken:
    """Explicit per-request cancellation handle.

    A token is created for every outbound request and never reused. Cancelling
    marks the token and cancels the bound task if one is attached; the task's
    owner must still check ``cancelled`` before applying a result, since the
    underlying call may complete anyway.
    """

    def __init__(self) -> None:
        self.request_id = next(_request_ids)
        self._cancelled = False
        self._task: asyncio.Task | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def bind(self, task: asyncio.Task) -> None:
        """Attach the task performing this request."""
        self._task = task
        if self._cancelled:
            task.cancel()

    def cancel(self) -> bool:
        """Cancel the request. Returns False if it was already cancelled."""
        if self._cancelled:
            return False
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        return True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise LLMCancelledError(f"Request {self.request_id} was cancelled")

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"CancellationToken(request_id={self.request_id}, {state})"
