"""Trigger rules and per-document exclusion checks."""

from __future__ import annotations

import fnmatch
import logging
import re
from dataclasses import dataclass
from typing import Iterable, Literal, Mapping, Sequence

__all__ = [
    "Trigger",
    "TriggerEvaluator",
    "TRIGGER_KINDS",
    "compile_trigger_pattern",
    "is_path_ignored",
    "is_tag_ignored",
    "split_lines",
]

LOGGER = logging.getLogger(__name__)

TriggerKind = Literal["string", "regex"]
TRIGGER_KINDS: tuple[str, ...] = ("string", "regex")
_GLOBAL_FLAGS_RE = re.compile(r"^(?:\(\?[aiLmsux]+\))+")


@dataclass(slots=True, frozen=True)
class Trigger:
    """A rule deciding whether the text before the cursor should start a prediction."""

    kind: TriggerKind
    value: str

    @classmethod
    def string(cls, value: str) -> Trigger:
        return cls("string", value)

    @classmethod
    def regex(cls, value: str) -> Trigger:
        return cls("regex", value)

    @classmethod
    def from_mapping(cls, payload: Mapping[str, object]) -> Trigger:
        kind = str(payload.get("type", payload.get("kind", "string")))
        return cls(kind, str(payload.get("value", "")))  # type: ignore[arg-type]

    def to_mapping(self) -> dict[str, str]:
        return {"type": self.kind, "value": self.value}


def compile_trigger_pattern(source: str) -> re.Pattern[str]:
    """Compile ``source`` so it only matches at the very end of the examined text.

    Leading inline global flags such as ``(?i)`` are kept in front of the
    wrapping group. Raises :class:`re.error` for malformed sources.
    """

    flags = ""
    match = _GLOBAL_FLAGS_RE.match(source)
    if match:
        flags = match.group(0)
        source = source[match.end():]
    return re.compile(f"{flags}(?:{source})\\Z")


class TriggerEvaluator:
    """Decides whether a document change should start a prediction cycle."""

    def __init__(self, triggers: Iterable[Trigger] = ()) -> None:
        self._literals: list[str] = []
        self._patterns: list[re.Pattern[str]] = []
        self._errors: dict[str, str] = {}
        for index, trigger in enumerate(triggers):
            if trigger.kind == "string":
                if trigger.value:
                    self._literals.append(trigger.value)
                continue
            if trigger.kind == "regex":
                try:
                    self._patterns.append(compile_trigger_pattern(trigger.value))
                except re.error as exc:
                    self._errors[f"triggers[{index}]"] = f"Invalid regular expression {trigger.value!r}: {exc}"
                    LOGGER.warning("Ignoring malformed trigger pattern %r: %s", trigger.value, exc)
                continue
            self._errors[f"triggers[{index}]"] = f"Unknown trigger type {trigger.kind!r}"

    @property
    def errors(self) -> dict[str, str]:
        """Configuration problems found while loading the triggers."""
        return dict(self._errors)

    def should_trigger(self, prior_text: str) -> bool:
        if not prior_text:
            return False
        if any(prior_text.endswith(literal) for literal in self._literals):
            return True
        return any(pattern.search(prior_text) for pattern in self._patterns)


def split_lines(value: str | Iterable[str] | None) -> list[str]:
    """Turn a newline-separated setting (or an iterable) into stripped, non-empty entries."""

    if value is None:
        return []
    items = value.split("\n") if isinstance(value, str) else list(value)
    return [item.strip() for item in items if item and item.strip()]


def is_path_ignored(path: str, patterns: str | Iterable[str] | None) -> bool:
    """Case-insensitive glob match of ``path`` against any of ``patterns``."""

    normalized = _normalize_path(path)
    if not normalized:
        return False
    for pattern in split_lines(patterns):
        candidate = _normalize_path(pattern)
        if fnmatch.fnmatchcase(normalized, candidate):
            return True
        if candidate.startswith("**/") and fnmatch.fnmatchcase(normalized, candidate[3:]):
            return True
    return False


def is_tag_ignored(tags: Sequence[str] | Iterable[str], ignored_tags: str | Iterable[str] | None) -> bool:
    """True if any of the document ``tags`` appears in ``ignored_tags`` (case-insensitive, ``#`` optional)."""

    blocked = {_normalize_tag(tag) for tag in split_lines(ignored_tags)}
    blocked.discard("")
    if not blocked:
        return False
    return any(_normalize_tag(tag) in blocked for tag in tags)


def _normalize_path(path: str) -> str:
    normalized = path.strip().replace("\\", "/").lower()
    while normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.lstrip("/")


def _normalize_tag(tag: str) -> str:
    return tag.replace("#", "").strip().lower()
