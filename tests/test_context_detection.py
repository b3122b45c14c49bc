"""Tests for cursor context classification."""

from __future__ import annotations

import pytest

from inkwell.autocomplete.context import Context, detect_context


@pytest.mark.parametrize(
    ("prefix", "expected"),
    [
        ("Just some prose", Context.TEXT),
        ("# A heading", Context.HEADING),
        ("Intro\n## Sub", Context.HEADING),
        ("> quoted words", Context.BLOCK_QUOTE),
        ("- bullet", Context.UNORDERED_LIST),
        ("  * nested bullet", Context.UNORDERED_LIST),
        ("3. third", Context.NUMBERED_LIST),
        ("- [ ] buy milk", Context.TASK_LIST),
        ("- [x] done", Context.TASK_LIST),
        ("See [[Other no", Context.LINK),
        ("See [docs](https://exa", Context.LINK),
        ("See [[Other note]] and", Context.TEXT),
        ("```python\ndef f(", Context.CODE_BLOCK),
        ("```python\nx = 1\n```\nafter", Context.TEXT),
        ("$$\n\\frac{1}{", Context.MATH_BLOCK),
        ("#hashtag without space", Context.TEXT),
    ],
)
def test_detect_context(prefix: str, expected: Context) -> None:
    assert detect_context(prefix, "") is expected


def test_code_block_wins_over_line_markup() -> None:
    assert detect_context("```md\n# not a heading") is Context.CODE_BLOCK


def test_context_label_is_human_readable() -> None:
    assert Context.CODE_BLOCK.label == "code block"
    assert Context.TEXT.label == "text"
