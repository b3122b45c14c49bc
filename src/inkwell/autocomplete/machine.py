"""Autocomplete orchestration state machine.

The machine turns editor events into a disciplined sequence of
``idle -> queued -> predicting -> suggesting`` transitions. Decisions are
made by :func:`~inkwell.autocomplete.transitions.transition`; this module
owns the current state and applies the side effects around each
transition:

* leaving ``Queued`` cancels its debounce handle,
* leaving ``Predicting`` cancels its backend request,
* entering ``Queued``/``Predicting`` stamps a fresh generation id and arms
  the timer or starts the request,
* entering or leaving ``Suggesting`` shows or withdraws the overlay.

Events are processed one at a time in arrival order. An event raised while
another is being handled is queued behind it rather than interleaved.
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections import deque
from dataclasses import replace
from typing import Any, Callable, Deque

from ..services.settings import Settings, check_for_errors
from ..utils.logging import set_debug_logging
from .cache import SuggestionCache
from .context import Context
from .events import (
    AcceptCommand,
    AcceptKeyPressed,
    CancelKeyPressed,
    DebounceElapsed,
    DocumentChanged,
    Event,
    FileChanged,
    PartialAcceptKeyPressed,
    PredictCommand,
    PredictionResolved,
    SettingsChanged,
)
from .invoker import PredictionInvoker, PredictionOutcome
from .states import (
    AutocompleteState,
    IdleState,
    InitState,
    PredictingState,
    QueuedState,
    SuggestingState,
    is_active,
    is_disabled,
)
from .timer import DebounceTimer
from .transitions import Transition, TransitionContext, transition
from .triggers import TriggerEvaluator, is_path_ignored, is_tag_ignored
from .types import (
    DocumentChange,
    EditorFile,
    NullRenderer,
    NullStatusReporter,
    PredictionBackend,
    StatusReporter,
    SuggestionRenderer,
)

__all__ = ["AutocompleteStateMachine"]

LOGGER = logging.getLogger(__name__)

BackendFactory = Callable[[Settings], PredictionBackend]


async def _no_backend(prefix: str, suffix: str, context: Context) -> str:
    LOGGER.debug("No prediction backend configured")
    return ""


async def _close_backend(backend: Any) -> None:
    close = getattr(backend, "aclose", None)
    if callable(close):
        result = close()
        if inspect.isawaitable(result):
            await result


class AutocompleteStateMachine:
    """Owns the current autocomplete state and routes editor events through it."""

    def __init__(
        self,
        settings: Settings,
        *,
        backend: PredictionBackend | None = None,
        backend_factory: BackendFactory | None = None,
        status: StatusReporter | None = None,
        renderer: SuggestionRenderer | None = None,
        cache: SuggestionCache | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._settings = settings
        self._backend_factory = backend_factory
        if backend is None:
            backend = backend_factory(settings) if backend_factory is not None else _no_backend
        self._status = status or NullStatusReporter()
        self._renderer: SuggestionRenderer = renderer or NullRenderer()
        self._cache = cache or SuggestionCache()
        self._cache.enabled = settings.cache_suggestions
        self._timer = DebounceTimer(settings.debounce_delay_seconds, loop=loop)
        self._invoker = PredictionInvoker(backend, loop=loop)
        self._evaluator = TriggerEvaluator(settings.triggers)
        self._setting_errors: dict[str, str] = {}
        self._state: AutocompleteState = InitState()
        self._context = Context.TEXT
        self._current_file: EditorFile | None = None
        self._generation = 0
        self._pending: Deque[Event] = deque()
        self._dispatching = False
        self._closing: set[asyncio.Task[None]] = set()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        backend: PredictionBackend | None = None,
        backend_factory: BackendFactory | None = None,
        status: StatusReporter | None = None,
        renderer: SuggestionRenderer | None = None,
        cache: SuggestionCache | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> AutocompleteStateMachine:
        """Create a machine and resolve its initial state from ``settings``."""

        machine = cls(
            settings,
            backend=backend,
            backend_factory=backend_factory,
            status=status,
            renderer=renderer,
            cache=cache,
            loop=loop,
        )
        machine._update_status()
        machine._setting_errors = machine._collect_errors(settings)
        machine._dispatch(SettingsChanged(settings))
        return machine

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def state(self) -> AutocompleteState:
        return self._state

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def context(self) -> Context:
        return self._context

    @property
    def cache(self) -> SuggestionCache:
        return self._cache

    @property
    def setting_errors(self) -> dict[str, str]:
        return dict(self._setting_errors)

    @property
    def current_file(self) -> EditorFile | None:
        return self._current_file

    @property
    def status_text(self) -> str:
        label = self._state.label
        if is_active(self._state):
            label = f"{label} ({self._context.label})"
        return f"autocomplete: {label}"

    def is_idle(self) -> bool:
        return isinstance(self._state, IdleState)

    def is_suggesting(self) -> bool:
        return isinstance(self._state, SuggestingState)

    def is_disabled(self) -> bool:
        return is_disabled(self._state)

    def is_current_file_ignored(self) -> bool:
        if self._current_file is None:
            return False
        return is_path_ignored(self._current_file.path, self._settings.ignored_file_patterns) or is_tag_ignored(
            self._current_file.tags, self._settings.ignored_tags
        )

    def get_cached_suggestion(self, prefix: str, suffix: str) -> str | None:
        return self._cache.get(prefix, suffix)

    def clear_suggestions_cache(self) -> None:
        self._cache.clear()

    # ------------------------------------------------------------------
    # Editor wiring
    # ------------------------------------------------------------------
    def attach_renderer(self, renderer: SuggestionRenderer | None) -> None:
        """Point overlay updates at the editor view (``None`` detaches)."""

        self._renderer = renderer or NullRenderer()

    def set_context(self, context: Context) -> None:
        if context == self._context:
            return
        self._context = context
        self._update_status()

    # ------------------------------------------------------------------
    # Event entry points
    # ------------------------------------------------------------------
    def handle_file_change(self, file: EditorFile) -> None:
        self._current_file = file
        self._dispatch(FileChanged(file))

    async def handle_document_change(self, change: DocumentChange) -> None:
        """Feed a document change; returns once the resulting transition is applied."""

        self._dispatch(DocumentChanged(change))

    def handle_accept_key_pressed(self) -> bool:
        return self._dispatch(AcceptKeyPressed()).consumed

    def handle_partial_accept_key_pressed(self) -> bool:
        return self._dispatch(PartialAcceptKeyPressed()).consumed

    def handle_cancel_key_pressed(self) -> bool:
        return self._dispatch(CancelKeyPressed()).consumed

    def handle_predict_command(self, prefix: str, suffix: str) -> None:
        self._dispatch(PredictCommand(prefix, suffix))

    def handle_accept_command(self) -> None:
        self._dispatch(AcceptCommand())

    def handle_setting_changed(self, settings: Settings) -> None:
        previous = self._settings
        self._settings = settings
        if settings.debug_logging != previous.debug_logging:
            self._update_logging_configuration(settings.debug_logging)
        self._evaluator = TriggerEvaluator(settings.triggers)
        self._timer.delay_seconds = settings.debounce_delay_seconds
        self._cache.enabled = settings.cache_suggestions
        if self._backend_factory is not None:
            replaced = self._invoker.backend
            self._invoker.backend = self._backend_factory(settings)
            self._dispose_backend(replaced)
        self._setting_errors = self._collect_errors(settings)
        self._dispatch(SettingsChanged(settings))

    async def wait_for_prediction(self) -> None:
        """Wait until the in-flight backend call (if any) has been delivered."""

        await self._invoker.wait()

    async def aclose(self) -> None:
        """Cancel pending work and close the backend; the machine stays in its current state."""

        self._timer.cancel()
        self._invoker.cancel()
        await asyncio.sleep(0)
        for task in list(self._closing):
            with contextlib.suppress(Exception):
                await task
        await _close_backend(self._invoker.backend)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def _dispatch(self, event: Event) -> Transition:
        if self._dispatching:
            # re-entrant call from a collaborator; handled after the current event
            self._pending.append(event)
            return Transition(self._state)
        self._dispatching = True
        try:
            result = self._step(event)
            while self._pending:
                self._step(self._pending.popleft())
            return result
        finally:
            self._dispatching = False

    def _step(self, event: Event) -> Transition:
        result = transition(self._state, event, self._transition_context())
        self._apply(result, event)
        return result

    def _transition_context(self) -> TransitionContext:
        return TransitionContext(
            autocomplete_enabled=self._settings.autocomplete_enabled,
            cache_enabled=self._cache.enabled,
            evaluator=self._evaluator,
            setting_errors=self._setting_errors,
            file_ignored=self.is_current_file_ignored(),
            cached_suggestion=self._cache.get,
        )

    def _apply(self, result: Transition, event: Event) -> None:
        previous = self._state
        target = result.state

        if result.insert_text:
            self._call_renderer("insert_text", result.insert_text)
        if result.cache_write is not None:
            self._cache.set(*result.cache_write)

        if target is previous:
            return

        if isinstance(previous, QueuedState) and previous.timer is not None:
            previous.timer.cancel()
        if isinstance(previous, PredictingState) and previous.request is not None:
            previous.request.cancel()

        target = self._enter(target)
        self._state = target

        if isinstance(target, SuggestingState):
            self._call_renderer("show_suggestion", target.suggestion)
        elif isinstance(previous, SuggestingState):
            self._call_renderer("clear_suggestion")

        LOGGER.debug(
            "Autocomplete transition %s -> %s on %s",
            type(previous).__name__,
            type(target).__name__,
            type(event).__name__,
        )
        self._update_status()

    def _enter(self, state: AutocompleteState) -> AutocompleteState:
        if isinstance(state, QueuedState) and state.timer is None:
            generation = self._next_generation()
            handle = self._timer.schedule(lambda: self._dispatch(DebounceElapsed(generation)))
            return replace(state, generation=generation, timer=handle)
        if isinstance(state, PredictingState) and state.request is None:
            generation = self._next_generation()
            request = self._invoker.invoke(
                state.prefix,
                state.suffix,
                self._context,
                generation=generation,
                on_complete=self._on_prediction_settled,
            )
            return replace(state, generation=generation, request=request)
        return state

    def _on_prediction_settled(self, outcome: PredictionOutcome) -> None:
        if outcome.error is not None:
            LOGGER.warning(
                "Prediction backend failed (generation %d): %s",
                outcome.generation,
                outcome.error,
                exc_info=(type(outcome.error), outcome.error, outcome.error.__traceback__),
            )
        self._dispatch(
            PredictionResolved(outcome.generation, suggestion=outcome.suggestion, error=outcome.error)
        )

    def _dispose_backend(self, backend: PredictionBackend) -> None:
        if not callable(getattr(backend, "aclose", None)):
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            LOGGER.debug("No running loop; replaced prediction backend left open")
            return
        task = loop.create_task(self._close_when_settled(backend))
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)

    async def _close_when_settled(self, backend: PredictionBackend) -> None:
        # a request started before the swap still runs on the old backend
        await self._invoker.wait()
        try:
            await _close_backend(backend)
        except Exception:
            LOGGER.debug("Failed to close replaced prediction backend", exc_info=True)

    def _update_logging_configuration(self, debug_enabled: bool) -> None:
        try:
            set_debug_logging(debug_enabled)
        except Exception as exc:  # pragma: no cover - log dir not writable
            LOGGER.warning("Unable to update logging configuration: %s", exc)

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _collect_errors(self, settings: Settings) -> dict[str, str]:
        errors = check_for_errors(settings)
        for key, message in self._evaluator.errors.items():
            errors.setdefault(key, message)
        return errors

    # ------------------------------------------------------------------
    # Collaborator seams
    # ------------------------------------------------------------------
    def _call_renderer(self, method: str, *args: str) -> None:
        try:
            getattr(self._renderer, method)(*args)
        except Exception:  # pragma: no cover - renderer failures must not corrupt state
            LOGGER.exception("Suggestion renderer %s failed", method)

    def _update_status(self) -> None:
        try:
            self._status.update_text(self.status_text)
        except Exception:  # pragma: no cover - display-only collaborator
            LOGGER.exception("Status reporter failed")
