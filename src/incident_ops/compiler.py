from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from incident_ops.blocks import Block, BlockKind, classify_line
from incident_ops.inline_runs import InlineRun

BODY_SIZE_PT = 10.0
BODY_COLOR = "000000"
MUTED_COLOR = "9ca3af"
PLACEHOLDER_TEXT = "No content provided"

_HEADING_PROFILES = {
    BlockKind.HEADING1: {"size_pt": 14.0, "space_before_pt": 12.5, "space_after_pt": 6.0},
    BlockKind.HEADING2: {"size_pt": 12.0, "space_before_pt": 10.0, "space_after_pt": 5.0},
    BlockKind.HEADING3: {"size_pt": 11.0, "space_before_pt": 7.5, "space_after_pt": 4.0},
}
_LIST_SPACE_AFTER_PT = 3.0
_PARAGRAPH_SPACE_AFTER_PT = 4.0
_BLANK_SPACE_AFTER_PT = 5.0
_ORDERED_INDENT_IN = 0.25
_LETTERED_INDENT_IN = 0.5


@dataclass(frozen=True)
class StyledRun:
    text: str
    bold: bool = False
    italic: bool = False
    size_pt: float = BODY_SIZE_PT
    color: str = BODY_COLOR


@dataclass(frozen=True)
class RenderedBlock:
    kind: BlockKind
    runs: tuple[StyledRun, ...] = field(default_factory=tuple)
    space_before_pt: float = 0.0
    space_after_pt: float = 0.0
    left_indent_in: float = 0.0
    bullet: bool = False

    @property
    def text(self) -> str:
        return "".join(run.text for run in self.runs)


def compile_markdown(text: str | None) -> list[RenderedBlock]:
    # Blank input still yields one muted placeholder block.
    if not text or not text.strip():
        return [placeholder_block(PLACEHOLDER_TEXT)]

    rendered: list[RenderedBlock] = []
    counter = 0
    for line in text.split("\n"):
        block, counter = classify_line(line, counter)
        rendered.append(render_block(block))
    return rendered


def placeholder_block(text: str) -> RenderedBlock:
    return RenderedBlock(
        kind=BlockKind.PARAGRAPH,
        runs=(StyledRun(text, italic=True, color=MUTED_COLOR),),
    )


def render_block(block: Block) -> RenderedBlock:
    kind = block.kind
    if kind == BlockKind.BLANK:
        return RenderedBlock(kind=kind, space_after_pt=_BLANK_SPACE_AFTER_PT)

    if kind in _HEADING_PROFILES:
        profile = _HEADING_PROFILES[kind]
        return RenderedBlock(
            kind=kind,
            runs=_styled_runs(block.content, size_pt=profile["size_pt"], force_bold=True),
            space_before_pt=profile["space_before_pt"],
            space_after_pt=profile["space_after_pt"],
        )

    if kind == BlockKind.BULLET:
        return RenderedBlock(
            kind=kind,
            runs=_styled_runs(block.content),
            space_after_pt=_LIST_SPACE_AFTER_PT,
            bullet=True,
        )

    if kind == BlockKind.ORDERED:
        prefix = StyledRun(f"{block.ordinal}. ", bold=True)
        return RenderedBlock(
            kind=kind,
            runs=(prefix, *_styled_runs(block.content)),
            space_after_pt=_LIST_SPACE_AFTER_PT,
            left_indent_in=_ORDERED_INDENT_IN,
        )

    if kind == BlockKind.LETTERED_SUB:
        prefix = StyledRun(f"{block.letter}. ")
        return RenderedBlock(
            kind=kind,
            runs=(prefix, *_styled_runs(block.content)),
            space_after_pt=_LIST_SPACE_AFTER_PT,
            left_indent_in=_LETTERED_INDENT_IN,
        )

    return RenderedBlock(
        kind=BlockKind.PARAGRAPH,
        runs=_styled_runs(block.content),
        space_after_pt=_PARAGRAPH_SPACE_AFTER_PT,
    )


def _styled_runs(
    content: Iterable[InlineRun],
    *,
    size_pt: float = BODY_SIZE_PT,
    force_bold: bool = False,
) -> tuple[StyledRun, ...]:
    return tuple(
        StyledRun(
            run.text,
            bold=run.bold or force_bold,
            italic=run.italic,
            size_pt=size_pt,
        )
        for run in content
    )
