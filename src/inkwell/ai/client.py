"""Prediction backend adapter for OpenAI-compatible chat completion endpoints."""

from __future__ import annotations

import inspect
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

import httpx
from openai import APIConnectionError, APIError, APIStatusError, AsyncOpenAI, RateLimitError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..autocomplete.cache import MASK_TOKEN
from ..autocomplete.context import Context
from ..services.settings import Settings

__all__ = ["ClientSettings", "CompletionClient", "build_prediction_backend", "clean_completion"]

LOGGER = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are an inline autocomplete engine inside a text editor. The user message contains the document "
    f"with the cursor marked by {MASK_TOKEN}. Reply with only the text that should be inserted at the "
    f"{MASK_TOKEN} position. Do not repeat text that already appears before or after the marker, do not "
    "add explanations, and reply with an empty message when nothing sensible can be added."
)
_CONTEXT_HINTS: Mapping[Context, str] = {
    Context.TEXT: "The cursor is inside regular prose. Continue the sentence naturally.",
    Context.HEADING: "The cursor is inside a Markdown heading. Complete the heading only.",
    Context.BLOCK_QUOTE: "The cursor is inside a block quote. Continue the quotation.",
    Context.UNORDERED_LIST: "The cursor is inside a bullet list item. Complete the item.",
    Context.NUMBERED_LIST: "The cursor is inside a numbered list item. Complete the item.",
    Context.TASK_LIST: "The cursor is inside a task list item. Complete the task description.",
    Context.LINK: "The cursor is inside a link. Complete the link target or title only.",
    Context.CODE_BLOCK: "The cursor is inside a fenced code block. Reply with code only, without fences.",
    Context.MATH_BLOCK: "The cursor is inside a LaTeX math block. Reply with LaTeX only, without delimiters.",
}
_FENCE_RE = re.compile(r"^```[\w+-]*\n?|\n?```$")
_MIN_OVERLAP = 3


@dataclass(slots=True)
class ClientSettings:
    """Subset of settings required to configure the completion client."""

    base_url: str
    api_key: str
    model: str
    temperature: float = 0.2
    max_tokens: int = 128
    request_timeout: float | None = 30.0
    max_retries: int = 2
    retry_min_seconds: float = 0.5
    retry_max_seconds: float = 4.0
    max_prefix_chars: int = 4_000
    max_suffix_chars: int = 4_000
    default_headers: Mapping[str, str] | None = None
    debug_logging: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> ClientSettings:
        return cls(
            base_url=settings.base_url,
            api_key=settings.api_key,
            model=settings.model,
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            request_timeout=settings.request_timeout,
            max_retries=settings.max_retries,
            retry_min_seconds=settings.retry_min_seconds,
            retry_max_seconds=settings.retry_max_seconds,
            max_prefix_chars=settings.max_prefix_chars,
            max_suffix_chars=settings.max_suffix_chars,
            default_headers=settings.default_headers or None,
            debug_logging=settings.debug_logging,
        )


class CompletionClient:
    """Async client that turns a prefix/suffix pair into an inline suggestion."""

    def __init__(self, settings: ClientSettings, *, client: AsyncOpenAI | None = None) -> None:
        self._settings = settings
        self._client = client or self._build_client(settings)

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    async def complete(self, prefix: str, suffix: str, context: Context = Context.TEXT) -> str:
        """Return the text to insert between ``prefix`` and ``suffix``."""

        prefix = prefix[-self._settings.max_prefix_chars:] if self._settings.max_prefix_chars > 0 else ""
        suffix = suffix[: self._settings.max_suffix_chars] if self._settings.max_suffix_chars > 0 else ""
        payload = self._build_payload(self.build_messages(prefix, suffix, context))
        LOGGER.debug(
            "Requesting completion via %s (%d prefix chars, %d suffix chars, context=%s)",
            self._settings.model,
            len(prefix),
            len(suffix),
            context.label,
        )
        if self._settings.debug_logging:
            LOGGER.debug("Completion payload: %s", payload)

        raw = ""
        async for attempt in self._retrying():
            with attempt:
                response = await self._client.chat.completions.create(**payload)
                raw = _first_choice_text(response)
        return clean_completion(raw, suffix, context)

    __call__ = complete

    def build_messages(self, prefix: str, suffix: str, context: Context) -> List[Dict[str, str]]:
        hint = _CONTEXT_HINTS.get(context, _CONTEXT_HINTS[Context.TEXT])
        return [
            {"role": "system", "content": f"{_SYSTEM_PROMPT}\n\n{hint}"},
            {"role": "user", "content": f"{prefix}{MASK_TOKEN}{suffix}"},
        ]

    def _build_payload(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        return {
            "model": self._settings.model,
            "messages": messages,
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
        }

    def _build_client(self, settings: ClientSettings) -> AsyncOpenAI:
        headers = dict(settings.default_headers) if settings.default_headers else None
        return AsyncOpenAI(
            api_key=settings.api_key,
            base_url=settings.base_url,
            timeout=settings.request_timeout,
            default_headers=headers,
            max_retries=0,
        )

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(max(1, self._settings.max_retries)),
            wait=wait_exponential(
                multiplier=self._settings.retry_min_seconds,
                max=self._settings.retry_max_seconds,
            ),
            retry=retry_if_exception_type(
                (
                    APIError,
                    APIStatusError,
                    APIConnectionError,
                    RateLimitError,
                    httpx.TimeoutException,
                )
            ),
        )

    async def aclose(self) -> None:
        """Close the underlying OpenAI client to release network resources."""

        close = getattr(self._client, "close", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result


def clean_completion(text: str, suffix: str, context: Context) -> str:
    """Strip prompt artefacts from a raw completion."""

    if not text:
        return ""
    cleaned = text.replace(MASK_TOKEN, "")
    if context != Context.CODE_BLOCK:
        cleaned = _FENCE_RE.sub("", cleaned)
    overlap = _suffix_overlap(cleaned, suffix)
    if overlap:
        cleaned = cleaned[:-overlap]
    return cleaned


def build_prediction_backend(settings: Settings) -> CompletionClient:
    """Backend factory suitable for ``AutocompleteStateMachine(backend_factory=...)``."""

    return CompletionClient(ClientSettings.from_settings(settings))


def _suffix_overlap(text: str, suffix: str) -> int:
    """Length of the longest tail of ``text`` that repeats the head of ``suffix``."""

    limit = min(len(text), len(suffix))
    for size in range(limit, _MIN_OVERLAP - 1, -1):
        if text.endswith(suffix[:size]):
            return size
    return 0


def _first_choice_text(response: Any) -> str:
    choices = getattr(response, "choices", None) or []
    if not choices:
        return ""
    message = getattr(choices[0], "message", None)
    content = getattr(message, "content", None)
    return content or ""
