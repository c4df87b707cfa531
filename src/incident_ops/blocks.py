from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from incident_ops.inline_runs import InlineRun, parse_inline

_BULLET_MARKERS = ("- ", "* ")
_ORDERED_RE = re.compile(r"^(\d+)\.\s+(.*)$")
_LETTERED_RE = re.compile(r"^([a-zA-Z])[.)]\s+(.*)$")


class BlockKind(str, Enum):
    HEADING1 = "heading1"
    HEADING2 = "heading2"
    HEADING3 = "heading3"
    BULLET = "bullet"
    ORDERED = "ordered"
    LETTERED_SUB = "lettered_sub"
    PARAGRAPH = "paragraph"
    BLANK = "blank"


_HEADING_MARKERS = (
    ("### ", BlockKind.HEADING3),
    ("## ", BlockKind.HEADING2),
    ("# ", BlockKind.HEADING1),
)


@dataclass(frozen=True)
class Block:
    kind: BlockKind
    content: tuple[InlineRun, ...] = field(default_factory=tuple)
    ordinal: int = 0
    letter: str = ""


def classify_line(line: str, counter: int = 0) -> tuple[Block, int]:
    # counter is the number of consecutive ordered items so far; source digits
    # are never used for numbering.
    stripped = (line or "").strip()
    if not stripped:
        return Block(BlockKind.BLANK), 0

    for marker, kind in _HEADING_MARKERS:
        if stripped.startswith(marker):
            return Block(kind, _content(stripped[len(marker) :])), 0

    if stripped.startswith(_BULLET_MARKERS):
        return Block(BlockKind.BULLET, _content(stripped[2:])), 0

    match = _ORDERED_RE.match(stripped)
    if match:
        ordinal = counter + 1
        return Block(BlockKind.ORDERED, _content(match.group(2)), ordinal=ordinal), ordinal

    match = _LETTERED_RE.match(stripped)
    if match:
        block = Block(
            BlockKind.LETTERED_SUB,
            _content(match.group(2)),
            letter=match.group(1).lower(),
        )
        # Sub-items sit inside an ordered list, so numbering carries on after them.
        return block, counter

    return Block(BlockKind.PARAGRAPH, _content(stripped)), 0


def classify_lines(text: str) -> list[Block]:
    blocks: list[Block] = []
    counter = 0
    for line in (text or "").split("\n"):
        block, counter = classify_line(line, counter)
        blocks.append(block)
    return blocks


def _content(text: str) -> tuple[InlineRun, ...]:
    return tuple(parse_inline(text))
