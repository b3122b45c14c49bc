"""Pure transition function: ``(state, event, context) -> Transition``.

Nothing in here touches timers, tasks, the renderer, or the cache; the
machine applies those side effects after looking at the returned
:class:`Transition`. Returning the very same state object means "no-op".
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Mapping

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
from .states import (
    AutocompleteState,
    DisabledFileSpecificState,
    DisabledInvalidSettingsState,
    DisabledManualState,
    IdleState,
    InitState,
    PredictingState,
    QueuedState,
    SuggestingState,
    is_active,
    is_disabled,
)
from .triggers import TriggerEvaluator
from .types import DocumentChange

__all__ = ["Transition", "TransitionContext", "transition", "resolve_enabled_state", "split_partial_accept"]

_PARTIAL_ACCEPT_RE = re.compile(r"\s*(?:\w+|[^\w\s]+)?", re.UNICODE)


@dataclass(slots=True, frozen=True)
class TransitionContext:
    """Read-only view of the machine's environment used to pick the next state."""

    autocomplete_enabled: bool
    cache_enabled: bool
    evaluator: TriggerEvaluator
    setting_errors: Mapping[str, str]
    file_ignored: bool
    cached_suggestion: Callable[[str, str], str | None]


@dataclass(slots=True, frozen=True)
class Transition:
    """Next state plus the side effects the machine must perform.

    Attributes:
        state: The state to move to (the current object for a no-op).
        consumed: Whether a key press was handled by autocomplete.
        insert_text: Text to commit into the document before entering ``state``.
        cache_write: ``(prefix, suffix, suggestion)`` to store in the cache.
    """

    state: AutocompleteState
    consumed: bool = False
    insert_text: str | None = None
    cache_write: tuple[str, str, str] | None = None


def resolve_enabled_state(ctx: TransitionContext) -> AutocompleteState:
    """Manual disable wins over invalid settings, which wins over file exclusion."""

    if not ctx.autocomplete_enabled:
        return DisabledManualState()
    if ctx.setting_errors:
        return DisabledInvalidSettingsState()
    if ctx.file_ignored:
        return DisabledFileSpecificState()
    return IdleState()


def split_partial_accept(suggestion: str) -> tuple[str, str]:
    """Split off leading whitespace plus the next word (or punctuation run)."""

    match = _PARTIAL_ACCEPT_RE.match(suggestion)
    end = match.end() if match else len(suggestion)
    return suggestion[:end], suggestion[end:]


def transition(state: AutocompleteState, event: Event, ctx: TransitionContext) -> Transition:
    if isinstance(event, SettingsChanged):
        return _on_settings_changed(state, ctx)
    if isinstance(event, FileChanged):
        return _on_file_changed(state, ctx)
    if isinstance(state, InitState) or is_disabled(state):
        return Transition(state)

    if isinstance(event, DocumentChanged):
        return _on_document_changed(state, event.change, ctx)
    if isinstance(event, DebounceElapsed):
        if isinstance(state, QueuedState) and state.generation == event.generation:
            return Transition(_predict_or_suggest(state.prefix, state.suffix, ctx))
        return Transition(state)
    if isinstance(event, PredictionResolved):
        return _on_prediction_resolved(state, event)
    if isinstance(event, (AcceptKeyPressed, AcceptCommand)):
        if isinstance(state, SuggestingState):
            return Transition(IdleState(), consumed=True, insert_text=state.suggestion)
        return Transition(state)
    if isinstance(event, PartialAcceptKeyPressed):
        return _on_partial_accept(state)
    if isinstance(event, CancelKeyPressed):
        if is_active(state):
            return Transition(IdleState(), consumed=True)
        return Transition(state)
    if isinstance(event, PredictCommand):
        return Transition(_predict_or_suggest(event.prefix, event.suffix, ctx))
    return Transition(state)


def _on_settings_changed(state: AutocompleteState, ctx: TransitionContext) -> Transition:
    resolved = resolve_enabled_state(ctx)
    if isinstance(resolved, IdleState) and (is_active(state) or isinstance(state, IdleState)):
        return Transition(state)
    if type(resolved) is type(state):
        return Transition(state)
    return Transition(resolved)


def _on_file_changed(state: AutocompleteState, ctx: TransitionContext) -> Transition:
    if isinstance(state, (InitState, DisabledManualState, DisabledInvalidSettingsState)):
        return Transition(state)
    if ctx.file_ignored:
        if isinstance(state, DisabledFileSpecificState):
            return Transition(state)
        return Transition(DisabledFileSpecificState())
    if isinstance(state, IdleState):
        return Transition(state)
    return Transition(IdleState())


def _on_document_changed(state: AutocompleteState, change: DocumentChange, ctx: TransitionContext) -> Transition:
    qualifies = change.is_candidate and ctx.evaluator.should_trigger(change.prefix)
    if isinstance(state, IdleState):
        if qualifies:
            return Transition(QueuedState(change.prefix, change.suffix))
        return Transition(state)

    if isinstance(state, SuggestingState):
        typed_through = _type_through(state, change)
        if typed_through is not None:
            return Transition(typed_through)

    if qualifies:
        return Transition(QueuedState(change.prefix, change.suffix))
    if change.has_doc_changed or change.has_cursor_moved:
        return Transition(IdleState())
    return Transition(state)


def _type_through(state: SuggestingState, change: DocumentChange) -> AutocompleteState | None:
    """Keep suggesting when the user types exactly what the suggestion predicted."""

    if not change.is_candidate or change.suffix != state.suffix:
        return None
    if change.prefix == state.prefix:
        # the editor reporting text this machine just inserted (partial accept)
        return state
    if not change.prefix.startswith(state.prefix):
        return None
    typed = change.prefix[len(state.prefix):]
    if not typed or not state.suggestion.startswith(typed):
        return None
    remainder = state.suggestion[len(typed):]
    if not remainder.strip():
        return IdleState()
    return SuggestingState(remainder, change.prefix, change.suffix)


def _predict_or_suggest(prefix: str, suffix: str, ctx: TransitionContext) -> AutocompleteState:
    if ctx.cache_enabled:
        cached = ctx.cached_suggestion(prefix, suffix)
        if cached is not None and cached.strip():
            return SuggestingState(cached, prefix, suffix)
    return PredictingState(prefix, suffix)


def _on_prediction_resolved(state: AutocompleteState, event: PredictionResolved) -> Transition:
    if not isinstance(state, PredictingState) or state.generation != event.generation:
        return Transition(state)
    if event.error is not None:
        return Transition(IdleState())
    suggestion = event.suggestion or ""
    if not suggestion.strip():
        return Transition(IdleState())
    return Transition(
        SuggestingState(suggestion, state.prefix, state.suffix),
        cache_write=(state.prefix, state.suffix, suggestion),
    )


def _on_partial_accept(state: AutocompleteState) -> Transition:
    if not isinstance(state, SuggestingState):
        return Transition(state)
    accepted, remainder = split_partial_accept(state.suggestion)
    if not remainder.strip():
        return Transition(IdleState(), consumed=True, insert_text=accepted)
    return Transition(
        SuggestingState(remainder, state.prefix + accepted, state.suffix),
        consumed=True,
        insert_text=accepted,
    )
