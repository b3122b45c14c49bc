"""Shared pytest fixtures."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

import pytest

from inkwell.autocomplete.machine import AutocompleteStateMachine
from inkwell.autocomplete.triggers import Trigger
from inkwell.services.settings import Settings
from tests.helpers import FakeBackend, FakeClock, RecordingRenderer, RecordingStatus

DEBOUNCE_MS = 10


@pytest.fixture
def settings() -> Settings:
    return Settings(
        debounce_delay_ms=DEBOUNCE_MS,
        triggers=(Trigger.string("."), Trigger.string("\n"), Trigger.regex(r"[0-9]+\) ")),
        ignored_file_patterns="**/secret/**\nprivate/*.md",
        ignored_tags="draft\n#Journal",
    )


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def status() -> RecordingStatus:
    return RecordingStatus()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def machine(
    settings: Settings,
    backend: FakeBackend,
    renderer: RecordingRenderer,
    status: RecordingStatus,
) -> AutocompleteStateMachine:
    return AutocompleteStateMachine.from_settings(settings, backend=backend, renderer=renderer, status=status)


@pytest.fixture
def settle() -> Callable[[AutocompleteStateMachine], Awaitable[None]]:
    """Let the debounce delay elapse and any resulting prediction be delivered."""

    async def _settle(machine: AutocompleteStateMachine) -> None:
        await asyncio.sleep(DEBOUNCE_MS * 5 / 1000)
        await machine.wait_for_prediction()

    return _settle
