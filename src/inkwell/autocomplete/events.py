"""Events consumed by the autocomplete state machine.

Public calls on :class:`~inkwell.autocomplete.machine.AutocompleteStateMachine`
are turned into one of these values and fed through a single dispatch
path, which is what gives the machine its strict arrival ordering.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .types import DocumentChange, EditorFile

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from ..services.settings import Settings

__all__ = [
    "Event",
    "FileChanged",
    "DocumentChanged",
    "DebounceElapsed",
    "PredictionResolved",
    "AcceptKeyPressed",
    "PartialAcceptKeyPressed",
    "CancelKeyPressed",
    "PredictCommand",
    "AcceptCommand",
    "SettingsChanged",
]


@dataclass(slots=True, frozen=True)
class Event:
    """Base class for all machine events."""


# =============================================================================
# Editor Events
# =============================================================================


@dataclass(slots=True, frozen=True)
class FileChanged(Event):
    """The editor switched to another document."""

    file: EditorFile


@dataclass(slots=True, frozen=True)
class DocumentChanged(Event):
    """The active document was edited or the cursor moved."""

    change: DocumentChange


@dataclass(slots=True, frozen=True)
class SettingsChanged(Event):
    """A complete new settings snapshot replaced the previous one."""

    settings: Settings


# =============================================================================
# Internal Events
# =============================================================================


@dataclass(slots=True, frozen=True)
class DebounceElapsed(Event):
    """The debounce timer stamped with ``generation`` fired."""

    generation: int


@dataclass(slots=True, frozen=True)
class PredictionResolved(Event):
    """The backend call stamped with ``generation`` settled.

    Attributes:
        generation: Generation id captured when the request was issued.
        suggestion: The backend result when the call succeeded.
        error: The failure raised by the backend, if any.
    """

    generation: int
    suggestion: str | None = None
    error: BaseException | None = None


# =============================================================================
# Key Presses and Commands
# =============================================================================


@dataclass(slots=True, frozen=True)
class AcceptKeyPressed(Event):
    pass


@dataclass(slots=True, frozen=True)
class PartialAcceptKeyPressed(Event):
    pass


@dataclass(slots=True, frozen=True)
class CancelKeyPressed(Event):
    pass


@dataclass(slots=True, frozen=True)
class PredictCommand(Event):
    """Manually request a prediction for the given cursor surroundings."""

    prefix: str
    suffix: str


@dataclass(slots=True, frozen=True)
class AcceptCommand(Event):
    pass
