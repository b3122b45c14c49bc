"""Classify the cursor position so predictions can adapt to the surrounding markup."""

from __future__ import annotations

import re
from enum import Enum

__all__ = ["Context", "detect_context"]

_TASK_LIST_RE = re.compile(r"^\s*[-*+]\s+\[.\]\s")
_UNORDERED_LIST_RE = re.compile(r"^\s*[-*+]\s")
_NUMBERED_LIST_RE = re.compile(r"^\s*\d+[.)]\s")
_HEADING_RE = re.compile(r"^#{1,6}\s")
_BLOCK_QUOTE_RE = re.compile(r"^\s*>")


class Context(str, Enum):
    """Semantic classification of the text around the cursor."""

    TEXT = "text"
    HEADING = "heading"
    BLOCK_QUOTE = "block quote"
    UNORDERED_LIST = "unordered list"
    NUMBERED_LIST = "numbered list"
    TASK_LIST = "task list"
    LINK = "link"
    CODE_BLOCK = "code block"
    MATH_BLOCK = "math block"

    @property
    def label(self) -> str:
        return self.value


def detect_context(prefix: str, suffix: str = "") -> Context:
    """Return the :class:`Context` for a cursor sitting between ``prefix`` and ``suffix``."""

    del suffix  # only the text before the cursor decides the context today
    if prefix.count("```") % 2 == 1:
        return Context.CODE_BLOCK
    if prefix.count("$$") % 2 == 1:
        return Context.MATH_BLOCK

    line = prefix.rsplit("\n", 1)[-1]
    if _inside_link(line):
        return Context.LINK
    if _HEADING_RE.match(line):
        return Context.HEADING
    if _TASK_LIST_RE.match(line):
        return Context.TASK_LIST
    if _BLOCK_QUOTE_RE.match(line):
        return Context.BLOCK_QUOTE
    if _UNORDERED_LIST_RE.match(line):
        return Context.UNORDERED_LIST
    if _NUMBERED_LIST_RE.match(line):
        return Context.NUMBERED_LIST
    return Context.TEXT


def _inside_link(line: str) -> bool:
    wiki_open = line.rfind("[[")
    if wiki_open != -1 and line.find("]]", wiki_open) == -1:
        return True
    url_open = line.rfind("](")
    return url_open != -1 and line.find(")", url_open) == -1
