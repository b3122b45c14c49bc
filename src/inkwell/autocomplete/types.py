"""Contracts shared between the autocomplete core and its editor collaborators."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Protocol, Sequence, Union

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from .context import Context

__all__ = [
    "DocumentChange",
    "EditorFile",
    "PredictionBackend",
    "SuggestionRenderer",
    "StatusReporter",
    "NullRenderer",
    "NullStatusReporter",
]

LOGGER = logging.getLogger(__name__)

PredictionBackend = Callable[[str, str, "Context"], Union[Awaitable[str], str]]


@dataclass(slots=True, frozen=True)
class DocumentChange:
    """A single edit as reported by the editor's change listener.

    Attributes:
        prefix: Text from the start of the document up to the cursor.
        suffix: Text from the cursor to the end of the document.
        is_doc_in_focus: Whether the editor view had focus when the change happened.
        has_doc_changed: Whether the document text changed (vs. a pure cursor move).
        has_cursor_moved: Whether the cursor moved without typing.
        has_selection: Whether a non-empty selection is active.
        has_multiple_cursors: Whether more than one cursor is active.
        is_undo: Whether the change came from an undo.
        is_redo: Whether the change came from a redo.
    """

    prefix: str
    suffix: str = ""
    is_doc_in_focus: bool = True
    has_doc_changed: bool = True
    has_cursor_moved: bool = False
    has_selection: bool = False
    has_multiple_cursors: bool = False
    is_undo: bool = False
    is_redo: bool = False

    def get_prefix(self) -> str:
        return self.prefix

    def get_suffix(self) -> str:
        return self.suffix

    @property
    def is_candidate(self) -> bool:
        """True when the change is a plain single-cursor edit in the focused document."""

        return (
            self.is_doc_in_focus
            and self.has_doc_changed
            and not self.has_multiple_cursors
            and not self.has_selection
            and not self.is_undo
            and not self.is_redo
        )


@dataclass(slots=True, frozen=True)
class EditorFile:
    """The document currently shown in the editor."""

    path: str
    tags: Sequence[str] = ()


class SuggestionRenderer(Protocol):
    """Editor-side overlay that displays and commits suggestions."""

    def show_suggestion(self, text: str) -> None:
        """Render ``text`` as ghost text after the cursor, replacing any previous overlay."""
        ...

    def clear_suggestion(self) -> None:
        """Withdraw the overlay."""
        ...

    def insert_text(self, text: str) -> None:
        """Insert ``text`` into the document at the cursor."""
        ...


class StatusReporter(Protocol):
    """Display-only sink for the autocomplete status label."""

    def update_text(self, text: str) -> None:
        ...


class NullRenderer:
    """Renderer used until the editor view attaches a real one."""

    def show_suggestion(self, text: str) -> None:
        LOGGER.debug("No renderer attached; dropping suggestion of %d chars", len(text))

    def clear_suggestion(self) -> None:
        return None

    def insert_text(self, text: str) -> None:
        LOGGER.debug("No renderer attached; cannot insert %d chars", len(text))


class NullStatusReporter:
    def update_text(self, text: str) -> None:
        return None
