"""Autocomplete status label with an optional Qt widget."""

from __future__ import annotations

from typing import Any, Callable

try:  # pragma: no cover - Qt imports are optional during tests
    from PySide6.QtWidgets import QLabel
except Exception:  # pragma: no cover - PySide6 not available
    QLabel = None  # type: ignore[assignment]


class AutocompleteStatusBar:
    """Receives one label per autocomplete transition and keeps it displayable.

    Works headless; when a Qt status bar is installed the text is mirrored
    into a permanent ``QLabel``.
    """

    def __init__(self, status_bar: Any | None = None) -> None:
        self._text: str = ""
        self._history: list[str] = []
        self._listeners: list[Callable[[str], None]] = []
        self._label: Any = None
        if status_bar is not None:
            self.install(status_bar)

    @property
    def text(self) -> str:
        return self._text

    @property
    def history(self) -> tuple[str, ...]:
        """Every distinct label shown so far, oldest first."""
        return tuple(self._history)

    def install(self, status_bar: Any | None) -> None:
        if status_bar is None or QLabel is None:
            return
        self._label = QLabel(self._text)
        self._label.setObjectName("inkwell-status-autocomplete")
        self._label.setContentsMargins(8, 0, 8, 0)
        try:
            status_bar.addPermanentWidget(self._label)
        except Exception:
            self._label = None

    def add_listener(self, listener: Callable[[str], None]) -> None:
        self._listeners.append(listener)

    def update_text(self, text: str) -> None:
        text = text.strip()
        if text == self._text:
            return
        self._text = text
        self._history.append(text)
        if self._label is not None:
            try:
                self._label.setText(text)
            except Exception:
                pass
        for listener in list(self._listeners):
            listener(text)
