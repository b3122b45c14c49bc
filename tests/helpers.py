"""Shared test helpers and stub classes.

Import from here instead of duplicating these classes in individual test files.
"""

from __future__ import annotations

import asyncio

from inkwell.autocomplete.context import Context


class RecordingRenderer:
    """Renderer stub remembering every overlay update and insertion."""

    def __init__(self) -> None:
        self.shown: list[str] = []
        self.inserted: list[str] = []
        self.cleared = 0
        self.visible: str | None = None

    def show_suggestion(self, text: str) -> None:
        self.shown.append(text)
        self.visible = text

    def clear_suggestion(self) -> None:
        self.cleared += 1
        self.visible = None

    def insert_text(self, text: str) -> None:
        self.inserted.append(text)


class RecordingStatus:
    def __init__(self) -> None:
        self.texts: list[str] = []

    def update_text(self, text: str) -> None:
        self.texts.append(text)

    @property
    def last(self) -> str:
        return self.texts[-1] if self.texts else ""


class FakeBackend:
    """Prediction backend stub with per-prefix responses and optional gates.

    Example:
        backend = FakeBackend({"The cat sat.": " on the mat"})
        gate = backend.block("slow.")  # call hangs until gate.set()
    """

    def __init__(self, responses: dict[str, str] | None = None, *, default: str = "") -> None:
        self.responses = dict(responses or {})
        self.default = default
        self.calls: list[tuple[str, str, Context]] = []
        self.gates: dict[str, asyncio.Event] = {}
        self.errors: dict[str, BaseException] = {}

    def block(self, prefix: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.gates[prefix] = gate
        return gate

    async def __call__(self, prefix: str, suffix: str, context: Context) -> str:
        self.calls.append((prefix, suffix, context))
        gate = self.gates.get(prefix)
        if gate is not None:
            await gate.wait()
        error = self.errors.get(prefix)
        if error is not None:
            raise error
        return self.responses.get(prefix, self.default)


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ClosableBackend(FakeBackend):
    """Backend stub owning a resource that must be released with ``aclose``."""

    def __init__(self, responses: dict[str, str] | None = None, *, default: str = "") -> None:
        super().__init__(responses, default=default)
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True
