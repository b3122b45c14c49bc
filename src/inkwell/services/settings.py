"""Settings snapshot, parsing helpers and validation for autocomplete."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Iterable, Mapping

from ..autocomplete.triggers import TRIGGER_KINDS, Trigger, compile_trigger_pattern

__all__ = [
    "Settings",
    "DEFAULT_TRIGGERS",
    "MAX_DEBOUNCE_DELAY_MS",
    "apply_env_overrides",
    "check_for_errors",
]

LOGGER = logging.getLogger(__name__)
MAX_DEBOUNCE_DELAY_MS = 2_000
_ENV_OVERRIDES: Mapping[str, str] = {
    "INKWELL_API_KEY": "api_key",
    "INKWELL_BASE_URL": "base_url",
    "INKWELL_MODEL": "model",
}
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "INKWELL_AUTOCOMPLETE_ENABLED": "autocomplete_enabled",
    "INKWELL_CACHE_SUGGESTIONS": "cache_suggestions",
    "INKWELL_DEBUG_LOGGING": "debug_logging",
}
_FLOAT_ENV_OVERRIDES: Mapping[str, str] = {
    "INKWELL_TEMPERATURE": "temperature",
    "INKWELL_REQUEST_TIMEOUT": "request_timeout",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "INKWELL_DEBOUNCE_MS": "debounce_delay_ms",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
# camelCase keys used by the editor plugin's settings payload
_ALIASES: Mapping[str, str] = {
    "autocompleteEnabled": "autocomplete_enabled",
    "cacheSuggestions": "cache_suggestions",
    "ignoredFilePatterns": "ignored_file_patterns",
    "ignoredTags": "ignored_tags",
    "delay": "debounce_delay_ms",
    "baseUrl": "base_url",
    "apiKey": "api_key",
    "maxTokens": "max_tokens",
    "maxPrefixCharLimit": "max_prefix_chars",
    "maxSuffixCharLimit": "max_suffix_chars",
}

DEFAULT_TRIGGERS: tuple[Trigger, ...] = (
    Trigger.string("# "),
    Trigger.string(". "),
    Trigger.string(": "),
    Trigger.string(", "),
    Trigger.string("! "),
    Trigger.string("? "),
    Trigger.string("`"),
    Trigger.string("' "),
    Trigger.string("= "),
    Trigger.string("$ "),
    Trigger.string("> "),
    Trigger.string("\n"),
    Trigger.regex(r"[0-9]+\. "),
    Trigger.regex(r"(?:^|\s)[-*+] "),
    Trigger.regex(r"(?:^|\s)[-*+] \[.\] "),
)


@dataclass(slots=True, frozen=True)
class Settings:
    """Immutable settings snapshot; a change replaces the whole object."""

    autocomplete_enabled: bool = True
    cache_suggestions: bool = True
    debounce_delay_ms: int = 500
    ignored_file_patterns: str = "**/secret/**\n"
    ignored_tags: str = ""
    triggers: tuple[Trigger, ...] = DEFAULT_TRIGGERS
    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    model: str = "gpt-4o-mini"
    temperature: float = 0.2
    max_tokens: int = 128
    request_timeout: float = 30.0
    max_retries: int = 2
    retry_min_seconds: float = 0.5
    retry_max_seconds: float = 4.0
    max_prefix_chars: int = 4_000
    max_suffix_chars: int = 4_000
    default_headers: dict[str, str] = field(default_factory=dict)
    debug_logging: bool = False

    @property
    def debounce_delay_seconds(self) -> float:
        return max(0, self.debounce_delay_ms) / 1000.0

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> Settings:
        """Build a snapshot from a settings payload, ignoring unknown keys."""

        data: Dict[str, Any] = {}
        known = {item.name for item in fields(cls)}
        for key, value in payload.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                LOGGER.debug("Ignoring unknown settings key %s", key)
                continue
            data[name] = value
        if "triggers" in data:
            data["triggers"] = _coerce_triggers(data["triggers"])
        if "ignored_file_patterns" in data:
            data["ignored_file_patterns"] = _coerce_lines(data["ignored_file_patterns"])
        if "ignored_tags" in data:
            data["ignored_tags"] = _coerce_lines(data["ignored_tags"])
        if "default_headers" in data:
            data["default_headers"] = dict(data["default_headers"] or {})
        return cls(**data)

    def to_mapping(self) -> dict[str, Any]:
        payload: dict[str, Any] = {item.name: getattr(self, item.name) for item in fields(self)}
        payload["triggers"] = [trigger.to_mapping() for trigger in self.triggers]
        payload["default_headers"] = dict(self.default_headers)
        return payload


def check_for_errors(settings: Settings) -> dict[str, str]:
    """Return ``{field: message}`` for every invalid value in ``settings``."""

    errors: dict[str, str] = {}
    for index, trigger in enumerate(settings.triggers):
        key = f"triggers[{index}]"
        if trigger.kind not in TRIGGER_KINDS:
            errors[key] = f"Unknown trigger type {trigger.kind!r}"
            continue
        if not trigger.value:
            errors[key] = "Trigger value must not be empty"
            continue
        if trigger.kind == "regex":
            try:
                compile_trigger_pattern(trigger.value)
            except re.error as exc:
                errors[key] = f"Invalid regular expression {trigger.value!r}: {exc}"
    if not 0 <= settings.debounce_delay_ms <= MAX_DEBOUNCE_DELAY_MS:
        errors["debounce_delay_ms"] = f"Delay must be between 0 and {MAX_DEBOUNCE_DELAY_MS} ms"
    if not 0.0 <= settings.temperature <= 2.0:
        errors["temperature"] = "Temperature must be between 0 and 2"
    for name in ("max_tokens", "max_prefix_chars", "max_suffix_chars"):
        if getattr(settings, name) <= 0:
            errors[name] = f"{name} must be a positive number"
    if errors:
        LOGGER.warning("Autocomplete settings are invalid: %s", "; ".join(f"{k}: {v}" for k, v in errors.items()))
    return errors


def apply_env_overrides(settings: Settings, environ: Mapping[str, str] | None = None) -> Settings:
    """Return a copy of ``settings`` with ``INKWELL_*`` environment overrides applied."""

    env = os.environ if environ is None else environ
    updates: Dict[str, Any] = {}
    for env_key, attr in _ENV_OVERRIDES.items():
        value = env.get(env_key)
        if value:
            updates[attr] = value
    for env_key, attr in _BOOL_ENV_OVERRIDES.items():
        value = env.get(env_key)
        if value is not None and value.strip():
            updates[attr] = value.strip().lower() in _TRUE_VALUES
    for env_key, attr in _FLOAT_ENV_OVERRIDES.items():
        value = env.get(env_key)
        if not value:
            continue
        try:
            updates[attr] = float(value)
        except ValueError:
            LOGGER.warning("Ignoring invalid float override for %s: %s", env_key, value)
    for env_key, attr in _INT_ENV_OVERRIDES.items():
        value = env.get(env_key)
        if not value:
            continue
        try:
            updates[attr] = int(value)
        except ValueError:
            LOGGER.warning("Ignoring invalid int override for %s: %s", env_key, value)
    if not updates:
        return settings
    LOGGER.debug("Applying environment overrides for %s", ", ".join(sorted(updates)))
    return replace(settings, **updates)


def _coerce_triggers(value: Any) -> tuple[Trigger, ...]:
    if value is None:
        return ()
    triggers: list[Trigger] = []
    for item in value:
        if isinstance(item, Trigger):
            triggers.append(item)
        elif isinstance(item, Mapping):
            triggers.append(Trigger.from_mapping(item))
        else:
            triggers.append(Trigger.string(str(item)))
    return tuple(triggers)


def _coerce_lines(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, Iterable):
        return "\n".join(str(item) for item in value)
    return str(value)
