"""Runs the prediction backend in a task that can be abandoned at any time."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from dataclasses import dataclass
from typing import Callable

from .context import Context
from .types import PredictionBackend

__all__ = ["PredictionInvoker", "PredictionOutcome", "PredictionRequest"]

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PredictionOutcome:
    """Result delivered for a request that was not cancelled."""

    generation: int
    suggestion: str | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PredictionRequest:
    """Handle for one in-flight backend call."""

    __slots__ = ("generation", "prefix", "suffix", "context", "_task", "_cancelled")

    def __init__(self, generation: int, prefix: str, suffix: str, context: Context) -> None:
        self.generation = generation
        self.prefix = prefix
        self.suffix = suffix
        self.context = context
        self._task: asyncio.Task[str] | None = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    @property
    def task(self) -> asyncio.Task[str] | None:
        return self._task

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()


class PredictionInvoker:
    """Wraps the external prediction backend with cancellation support."""

    def __init__(self, backend: PredictionBackend, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._backend = backend
        self._loop = loop
        self._current: PredictionRequest | None = None

    @property
    def backend(self) -> PredictionBackend:
        return self._backend

    @backend.setter
    def backend(self, backend: PredictionBackend) -> None:
        self._backend = backend

    @property
    def current(self) -> PredictionRequest | None:
        return self._current

    def invoke(
        self,
        prefix: str,
        suffix: str,
        context: Context,
        *,
        generation: int,
        on_complete: Callable[[PredictionOutcome], None],
    ) -> PredictionRequest:
        """Start a backend call; ``on_complete`` only runs if the request is still live when it settles."""

        self.cancel()
        request = PredictionRequest(generation, prefix, suffix, context)
        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(self._run(self._backend, prefix, suffix, context))
        request._task = task

        def _settled(done: asyncio.Task[str]) -> None:
            if request.cancelled or done.cancelled():
                LOGGER.debug("Dropping result of cancelled prediction (generation %d)", generation)
                return
            error = done.exception()
            if error is not None:
                on_complete(PredictionOutcome(generation=generation, error=error))
                return
            on_complete(PredictionOutcome(generation=generation, suggestion=done.result()))

        task.add_done_callback(_settled)
        self._current = request
        return request

    def cancel(self) -> None:
        if self._current is not None:
            self._current.cancel()
            self._current = None

    async def wait(self) -> None:
        """Wait for the current backend call to settle, if any."""

        request = self._current
        if request is None or request.task is None:
            return
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await asyncio.shield(request.task)
        # let the done callback run before returning
        await asyncio.sleep(0)

    @staticmethod
    async def _run(backend: PredictionBackend, prefix: str, suffix: str, context: Context) -> str:
        result = backend(prefix, suffix, context)
        if inspect.isawaitable(result):
            result = await result
        return "" if result is None else str(result)
