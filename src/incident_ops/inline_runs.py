from __future__ import annotations

import re
from dataclasses import dataclass

# Candidate order doubles as the tie-break when two spans start at the same offset.
_SPAN_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("bold", re.compile(r"\*\*(.+?)\*\*")),
    ("bold", re.compile(r"__(.+?)__")),
    ("italic", re.compile(r"(?<!\*)\*([^*]+)\*(?!\*)")),
    ("italic", re.compile(r"(?<!_)_([^_]+)_(?!_)")),
)


@dataclass(frozen=True)
class InlineRun:
    text: str
    bold: bool = False
    italic: bool = False


def parse_inline(text: str) -> list[InlineRun]:
    # Delimiters without a closing partner stay literal text.
    runs: list[InlineRun] = []
    remaining = text or ""
    while remaining:
        found = _earliest_span(remaining)
        if found is None:
            runs.append(InlineRun(remaining))
            break
        style, match = found
        before = remaining[: match.start()]
        if before:
            runs.append(InlineRun(before))
        runs.append(
            InlineRun(match.group(1), bold=style == "bold", italic=style == "italic")
        )
        remaining = remaining[match.end() :]
    return runs


def _earliest_span(text: str) -> tuple[str, re.Match[str]] | None:
    best: tuple[str, re.Match[str]] | None = None
    for style, pattern in _SPAN_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        if best is None or match.start() < best[1].start():
            best = (style, match)
    return best
