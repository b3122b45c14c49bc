"""Inline autocomplete core: cache, triggers, timers and state variants.

The orchestrator lives in :mod:`inkwell.autocomplete.machine`.
"""

from .cache import MASK_TOKEN, SuggestionCache, SuggestionCacheConfig
from .context import Context, detect_context
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
)
from .triggers import Trigger, TriggerEvaluator, is_path_ignored, is_tag_ignored
from .types import DocumentChange, EditorFile

__all__ = [
    "MASK_TOKEN",
    "SuggestionCache",
    "SuggestionCacheConfig",
    "Context",
    "detect_context",
    "AutocompleteState",
    "DisabledFileSpecificState",
    "DisabledInvalidSettingsState",
    "DisabledManualState",
    "IdleState",
    "InitState",
    "PredictingState",
    "QueuedState",
    "SuggestingState",
    "Trigger",
    "TriggerEvaluator",
    "is_path_ignored",
    "is_tag_ignored",
    "DocumentChange",
    "EditorFile",
]
