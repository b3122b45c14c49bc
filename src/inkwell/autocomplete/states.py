"""Tagged-variant autocomplete states.

Each state carries only the data it needs. The machine owns the current
value outright and swaps it for a new one on every transition; states hold
no reference back to the machine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Union

from .invoker import PredictionRequest
from .timer import DebounceHandle

__all__ = [
    "AutocompleteState",
    "InitState",
    "DisabledManualState",
    "DisabledInvalidSettingsState",
    "DisabledFileSpecificState",
    "IdleState",
    "QueuedState",
    "PredictingState",
    "SuggestingState",
    "ACTIVE_STATES",
    "DISABLED_STATES",
    "is_active",
    "is_disabled",
]


@dataclass(slots=True, frozen=True)
class InitState:
    label: ClassVar[str] = "initializing"


@dataclass(slots=True, frozen=True)
class DisabledManualState:
    label: ClassVar[str] = "disabled"


@dataclass(slots=True, frozen=True)
class DisabledInvalidSettingsState:
    label: ClassVar[str] = "disabled (invalid settings)"


@dataclass(slots=True, frozen=True)
class DisabledFileSpecificState:
    label: ClassVar[str] = "disabled for this file"


@dataclass(slots=True, frozen=True)
class IdleState:
    label: ClassVar[str] = "idle"


@dataclass(slots=True, frozen=True)
class QueuedState:
    """Waiting for the debounce delay before predicting.

    ``generation`` and ``timer`` are stamped by the machine when the state is
    entered; a freshly built instance carries ``generation == 0``.
    """

    label: ClassVar[str] = "queued"

    prefix: str
    suffix: str
    generation: int = 0
    timer: DebounceHandle | None = field(default=None, compare=False, repr=False)


@dataclass(slots=True, frozen=True)
class PredictingState:
    """A backend call is in flight for ``prefix``/``suffix``."""

    label: ClassVar[str] = "predicting"

    prefix: str
    suffix: str
    generation: int = 0
    request: PredictionRequest | None = field(default=None, compare=False, repr=False)


@dataclass(slots=True, frozen=True)
class SuggestingState:
    """A suggestion is displayed and waiting for accept/cancel."""

    label: ClassVar[str] = "suggesting"

    suggestion: str
    prefix: str
    suffix: str


AutocompleteState = Union[
    InitState,
    DisabledManualState,
    DisabledInvalidSettingsState,
    DisabledFileSpecificState,
    IdleState,
    QueuedState,
    PredictingState,
    SuggestingState,
]

ACTIVE_STATES: tuple[type, ...] = (QueuedState, PredictingState, SuggestingState)
DISABLED_STATES: tuple[type, ...] = (
    DisabledManualState,
    DisabledInvalidSettingsState,
    DisabledFileSpecificState,
)


def is_active(state: AutocompleteState) -> bool:
    return isinstance(state, ACTIVE_STATES)


def is_disabled(state: AutocompleteState) -> bool:
    return isinstance(state, DISABLED_STATES)
