from __future__ import annotations

from incident_ops.blocks import BlockKind, classify_line, classify_lines


def _text(block) -> str:
    return "".join(run.text for run in block.content)


def test_heading_wins_over_ordered_item() -> None:
    block, counter = classify_line("# 1. Title", 3)
    assert block.kind == BlockKind.HEADING1
    assert _text(block) == "1. Title"
    assert counter == 0


def test_heading_levels() -> None:
    assert classify_line("## Section")[0].kind == BlockKind.HEADING2
    assert classify_line("### Sub")[0].kind == BlockKind.HEADING3
    assert classify_line("#NoSpace")[0].kind == BlockKind.PARAGRAPH


def test_ordered_numbering_ignores_source_digits() -> None:
    first, counter = classify_line("1. Alpha", 0)
    second, counter = classify_line("5. Beta", counter)
    assert (first.kind, first.ordinal) == (BlockKind.ORDERED, 1)
    assert (second.kind, second.ordinal) == (BlockKind.ORDERED, 2)
    assert _text(second) == "Beta"
    assert counter == 2


def test_bullets_reset_counter() -> None:
    block, counter = classify_line("- item", 4)
    assert block.kind == BlockKind.BULLET
    assert _text(block) == "item"
    assert counter == 0
    assert classify_line("* star item")[0].kind == BlockKind.BULLET


def test_lettered_sub_item_keeps_counter() -> None:
    block, counter = classify_line("B) Follow-up", 2)
    assert block.kind == BlockKind.LETTERED_SUB
    assert block.letter == "b"
    assert _text(block) == "Follow-up"
    assert counter == 2


def test_blank_and_paragraph_reset_counter() -> None:
    blank, counter = classify_line("   ", 2)
    assert blank.kind == BlockKind.BLANK
    assert blank.content == ()
    assert counter == 0

    para, counter = classify_line("Just text", 2)
    assert para.kind == BlockKind.PARAGRAPH
    assert counter == 0


def test_lines_are_trimmed_before_classification() -> None:
    assert classify_line("   - indented")[0].kind == BlockKind.BULLET
    assert classify_line("1.missing space")[0].kind == BlockKind.PARAGRAPH


def test_numbering_restarts_after_interruption() -> None:
    blocks = classify_lines("1. A\n- x\n1. B")
    assert [block.kind for block in blocks] == [
        BlockKind.ORDERED,
        BlockKind.BULLET,
        BlockKind.ORDERED,
    ]
    assert blocks[2].ordinal == 1


def test_numbering_continues_across_lettered_sub_items() -> None:
    blocks = classify_lines("1. A\na. detail\nb. detail\n2. B")
    assert blocks[3].kind == BlockKind.ORDERED
    assert blocks[3].ordinal == 2


def test_heading_interrupts_numbering() -> None:
    blocks = classify_lines("1. A\n## Next\n1. B")
    assert blocks[2].ordinal == 1


def test_empty_lines_are_preserved() -> None:
    blocks = classify_lines("a\n\nb\n")
    assert [block.kind for block in blocks] == [
        BlockKind.PARAGRAPH,
        BlockKind.BLANK,
        BlockKind.PARAGRAPH,
        BlockKind.BLANK,
    ]
