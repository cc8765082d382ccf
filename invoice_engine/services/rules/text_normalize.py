"""Usage: shared text cleanup applied before patterns run."""

from __future__ import annotations

import re
from typing import Iterator

_ZERO_WIDTH_RE = re.compile(r"[\u200b-\u200d\ufeff]")
_INLINE_SPACE_RE = re.compile(r"[ \t]+")
_BLANK_RUN_RE = re.compile(r"\n\s*\n\s*\n")
_WHITESPACE_RE = re.compile(r"\s+")


def preprocess_text(text: str | None) -> str:
    """Normalize line breaks and spacing while keeping the line structure."""

    if not text:
        return ""
    value = text.replace("\r\n", "\n").replace("\r", "\n")
    value = _ZERO_WIDTH_RE.sub("", value)
    value = _INLINE_SPACE_RE.sub(" ", value)
    return _BLANK_RUN_RE.sub("\n\n", value)


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def iter_lines(text: str) -> Iterator[str]:
    """Yield trimmed, non-blank lines in reading order."""

    for line in text.split("\n"):
        trimmed = line.strip()
        if trimmed:
            yield trimmed


def join_line(buffer: str, line: str) -> str:
    """Append a line to a row buffer with one separating space when neither side has one."""

    if not buffer:
        return line
    if not line:
        return buffer
    if buffer[-1].isspace() or line[0].isspace():
        return buffer + line
    return f"{buffer} {line}"
