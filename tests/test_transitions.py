"""Tests for the pure autocomplete transition function."""

from __future__ import annotations

from dataclasses import replace

import pytest

from inkwell.autocomplete.events import (
    AcceptCommand,
    AcceptKeyPressed,
    CancelKeyPressed,
    DebounceElapsed,
    DocumentChanged,
    FileChanged,
    PartialAcceptKeyPressed,
    PredictCommand,
    PredictionResolved,
    SettingsChanged,
)
from inkwell.autocomplete.states import (
    DisabledFileSpecificState,
    DisabledInvalidSettingsState,
    DisabledManualState,
    IdleState,
    InitState,
    PredictingState,
    QueuedState,
    SuggestingState,
)
from inkwell.autocomplete.transitions import (
    TransitionContext,
    resolve_enabled_state,
    split_partial_accept,
    transition,
)
from inkwell.autocomplete.triggers import Trigger, TriggerEvaluator
from inkwell.autocomplete.types import DocumentChange, EditorFile
from inkwell.services.settings import Settings


def _ctx(**overrides) -> TransitionContext:
    values = dict(
        autocomplete_enabled=True,
        cache_enabled=True,
        evaluator=TriggerEvaluator([Trigger.string(".")]),
        setting_errors={},
        file_ignored=False,
        cached_suggestion=lambda prefix, suffix: None,
    )
    values.update(overrides)
    return TransitionContext(**values)


def _changed(prefix: str, suffix: str = "", **flags) -> DocumentChanged:
    return DocumentChanged(DocumentChange(prefix, suffix, **flags))


# ---------------------------------------------------------------------------
# Enabled/disabled resolution
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("overrides", "expected"),
    [
        ({}, IdleState),
        ({"file_ignored": True}, DisabledFileSpecificState),
        ({"setting_errors": {"triggers[0]": "bad"}, "file_ignored": True}, DisabledInvalidSettingsState),
        (
            {"autocomplete_enabled": False, "setting_errors": {"x": "bad"}, "file_ignored": True},
            DisabledManualState,
        ),
    ],
)
def test_resolve_enabled_state_precedence(overrides: dict, expected: type) -> None:
    assert isinstance(resolve_enabled_state(_ctx(**overrides)), expected)


def test_settings_change_leaves_init() -> None:
    result = transition(InitState(), SettingsChanged(Settings()), _ctx())

    assert isinstance(result.state, IdleState)


def test_settings_change_keeps_active_state_when_still_enabled() -> None:
    queued = QueuedState("a.", "", generation=3)

    result = transition(queued, SettingsChanged(Settings()), _ctx())

    assert result.state is queued


def test_settings_change_disables_active_state() -> None:
    result = transition(SuggestingState("x", "a.", ""), SettingsChanged(Settings()), _ctx(autocomplete_enabled=False))

    assert isinstance(result.state, DisabledManualState)


def test_settings_change_reenables_from_disabled() -> None:
    result = transition(DisabledInvalidSettingsState(), SettingsChanged(Settings()), _ctx())

    assert isinstance(result.state, IdleState)


def test_file_change_to_ignored_file_disables() -> None:
    result = transition(IdleState(), FileChanged(EditorFile("secret/a.md")), _ctx(file_ignored=True))

    assert isinstance(result.state, DisabledFileSpecificState)


def test_file_change_does_not_override_manual_disable() -> None:
    state = DisabledManualState()

    result = transition(state, FileChanged(EditorFile("a.md")), _ctx(autocomplete_enabled=False))

    assert result.state is state


def test_file_change_abandons_active_work() -> None:
    result = transition(PredictingState("a.", "", generation=2), FileChanged(EditorFile("b.md")), _ctx())

    assert isinstance(result.state, IdleState)


def test_file_change_reenables_file_specific_state() -> None:
    result = transition(DisabledFileSpecificState(), FileChanged(EditorFile("b.md")), _ctx())

    assert isinstance(result.state, IdleState)


# ---------------------------------------------------------------------------
# Document changes
# ---------------------------------------------------------------------------


def test_idle_queues_on_trigger() -> None:
    result = transition(IdleState(), _changed("The cat sat."), _ctx())

    assert result.state == QueuedState("The cat sat.", "")


def test_idle_ignores_change_without_trigger() -> None:
    state = IdleState()

    assert transition(state, _changed("The cat sat"), _ctx()).state is state


@pytest.mark.parametrize(
    "flags",
    [
        {"is_doc_in_focus": False},
        {"has_doc_changed": False, "has_cursor_moved": True},
        {"has_selection": True},
        {"has_multiple_cursors": True},
        {"is_undo": True},
        {"is_redo": True},
    ],
)
def test_idle_ignores_non_candidate_changes(flags: dict) -> None:
    state = IdleState()

    assert transition(state, _changed("The cat sat.", **flags), _ctx()).state is state


def test_disabled_states_ignore_document_changes() -> None:
    for state in (InitState(), DisabledManualState(), DisabledInvalidSettingsState(), DisabledFileSpecificState()):
        assert transition(state, _changed("a."), _ctx()).state is state


def test_queued_requeues_on_new_trigger() -> None:
    result = transition(QueuedState("a.", "", generation=1), _changed("a. b."), _ctx())

    assert isinstance(result.state, QueuedState)
    assert result.state.prefix == "a. b."
    assert result.state.timer is None


def test_queued_goes_idle_on_edit_without_trigger() -> None:
    result = transition(QueuedState("a.", "", generation=1), _changed("a. b"), _ctx())

    assert isinstance(result.state, IdleState)


def test_predicting_goes_idle_on_cursor_move() -> None:
    result = transition(
        PredictingState("a.", "", generation=1),
        _changed("a", ".", has_doc_changed=False, has_cursor_moved=True),
        _ctx(),
    )

    assert isinstance(result.state, IdleState)


def test_suggesting_type_through_keeps_remainder() -> None:
    state = SuggestingState(" on the mat", "The cat sat.", "")

    result = transition(state, _changed("The cat sat. on"), _ctx())

    assert result.state == SuggestingState(" the mat", "The cat sat. on", "")


def test_suggesting_type_through_of_whole_suggestion_goes_idle() -> None:
    state = SuggestingState(" on", "The cat sat.", "")

    result = transition(state, _changed("The cat sat. on"), _ctx())

    assert isinstance(result.state, IdleState)


def test_suggesting_ignores_echo_of_inserted_text() -> None:
    state = SuggestingState(" the mat", "The cat sat. on", "")

    result = transition(state, _changed("The cat sat. on"), _ctx())

    assert result.state is state


def test_suggesting_diverging_edit_goes_idle() -> None:
    state = SuggestingState(" on the mat", "The cat sat.", "")

    result = transition(state, _changed("The cat sat. in"), _ctx())

    assert isinstance(result.state, IdleState)


# ---------------------------------------------------------------------------
# Timer and backend completions
# ---------------------------------------------------------------------------


def test_debounce_elapsed_starts_prediction() -> None:
    result = transition(QueuedState("a.", "b", generation=4), DebounceElapsed(4), _ctx())

    assert result.state == PredictingState("a.", "b")


def test_debounce_elapsed_uses_cache_hit() -> None:
    ctx = _ctx(cached_suggestion=lambda prefix, suffix: " cached" if prefix == "a." else None)

    result = transition(QueuedState("a.", "", generation=4), DebounceElapsed(4), ctx)

    assert result.state == SuggestingState(" cached", "a.", "")


def test_debounce_elapsed_skips_cache_when_disabled() -> None:
    ctx = _ctx(cache_enabled=False, cached_suggestion=lambda prefix, suffix: " cached")

    result = transition(QueuedState("a.", "", generation=4), DebounceElapsed(4), ctx)

    assert isinstance(result.state, PredictingState)


def test_stale_debounce_is_ignored() -> None:
    state = QueuedState("a.", "", generation=5)

    assert transition(state, DebounceElapsed(4), _ctx()).state is state


def test_prediction_resolved_shows_suggestion_and_writes_cache() -> None:
    result = transition(PredictingState("a.", "z", generation=2), PredictionResolved(2, suggestion=" b"), _ctx())

    assert result.state == SuggestingState(" b", "a.", "z")
    assert result.cache_write == ("a.", "z", " b")


@pytest.mark.parametrize(
    "event",
    [
        PredictionResolved(2, suggestion="   "),
        PredictionResolved(2, suggestion=None),
        PredictionResolved(2, error=RuntimeError("boom")),
    ],
)
def test_prediction_resolved_without_text_goes_idle(event: PredictionResolved) -> None:
    result = transition(PredictingState("a.", "", generation=2), event, _ctx())

    assert isinstance(result.state, IdleState)
    assert result.cache_write is None


def test_stale_prediction_is_ignored() -> None:
    state = PredictingState("a.", "", generation=3)

    result = transition(state, PredictionResolved(2, suggestion=" old"), _ctx())

    assert result.state is state
    assert result.cache_write is None


# ---------------------------------------------------------------------------
# Keys and commands
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("event", [AcceptKeyPressed(), AcceptCommand()])
def test_accept_inserts_suggestion(event) -> None:
    result = transition(SuggestingState(" on the mat", "The cat sat.", ""), event, _ctx())

    assert isinstance(result.state, IdleState)
    assert result.consumed is True
    assert result.insert_text == " on the mat"


def test_accept_outside_suggesting_is_not_consumed() -> None:
    for state in (IdleState(), QueuedState("a.", ""), PredictingState("a.", ""), DisabledManualState()):
        result = transition(state, AcceptKeyPressed(), _ctx())
        assert result.state is state
        assert result.consumed is False
        assert result.insert_text is None


def test_partial_accept_takes_next_word() -> None:
    result = transition(SuggestingState(" on the mat", "The cat sat.", ""), PartialAcceptKeyPressed(), _ctx())

    assert result.consumed is True
    assert result.insert_text == " on"
    assert result.state == SuggestingState(" the mat", "The cat sat. on", "")
    assert result.cache_write is None


def test_partial_accept_of_last_word_goes_idle() -> None:
    result = transition(SuggestingState(" mat", "a", ""), PartialAcceptKeyPressed(), _ctx())

    assert result.insert_text == " mat"
    assert isinstance(result.state, IdleState)


@pytest.mark.parametrize(
    ("suggestion", "expected"),
    [
        (" on the mat", (" on", " the mat")),
        ("hello, world", ("hello", ", world")),
        (", world", (",", " world")),
        ("   ", ("   ", "")),
        ("", ("", "")),
    ],
)
def test_split_partial_accept(suggestion: str, expected: tuple[str, str]) -> None:
    assert split_partial_accept(suggestion) == expected


@pytest.mark.parametrize(
    "state",
    [QueuedState("a.", ""), PredictingState("a.", ""), SuggestingState("x", "a.", "")],
)
def test_cancel_returns_active_state_to_idle(state) -> None:
    result = transition(state, CancelKeyPressed(), _ctx())

    assert isinstance(result.state, IdleState)
    assert result.consumed is True


def test_cancel_in_idle_is_not_consumed() -> None:
    state = IdleState()

    result = transition(state, CancelKeyPressed(), _ctx())

    assert result.state is state
    assert result.consumed is False


def test_predict_command_bypasses_triggers() -> None:
    result = transition(IdleState(), PredictCommand("no trigger here", ""), _ctx())

    assert result.state == PredictingState("no trigger here", "")


def test_predict_command_ignored_when_disabled() -> None:
    state = DisabledFileSpecificState()

    assert transition(state, PredictCommand("a", ""), _ctx()).state is state


def test_generation_handles_do_not_affect_state_equality() -> None:
    queued = QueuedState("a.", "", generation=1)

    assert replace(queued, timer=object()) == queued
