from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from docx import Document
from docx.oxml.ns import qn


def _cell_fill(cell) -> str | None:
    tc_pr = cell._tc.tcPr
    if tc_pr is None:
        return None
    shading = tc_pr.find(qn("w:shd"))
    if shading is None:
        return None
    fill = shading.get(qn("w:fill"))
    return fill.lower() if fill else None


def _first_line(cell) -> str:
    for paragraph in cell.paragraphs:
        text = paragraph.text.strip()
        if text:
            return text
    return ""


def _table_summary(doc: Document) -> list[dict[str, Any]]:
    tables = []
    for table in doc.tables:
        fills: set[str] = set()
        for row in table.rows:
            for cell in row.cells:
                fill = _cell_fill(cell)
                if fill:
                    fills.add(fill)
        title = _first_line(table.cell(0, 0)) if table.rows else ""
        tables.append(
            {
                "rows": len(table.rows),
                "cols": len(table.columns),
                "fills": sorted(fills),
                "title": title,
            }
        )
    return tables


def _section_headings(doc: Document) -> list[str]:
    headings = []
    for paragraph in doc.paragraphs:
        text = paragraph.text.strip()
        if text and text.isupper() and all(run.bold for run in paragraph.runs if run.text):
            headings.append(text)
    return headings


@dataclass
class CompareResult:
    report_path: Path
    major_mismatches: list[str]
    minor_notes: list[str]


def compare_docx_structure(
    generated_path: Path, golden_path: Path, report_path: Path
) -> CompareResult:
    gen_doc = Document(str(generated_path))
    golden_doc = Document(str(golden_path))

    major: list[str] = []
    minor: list[str] = []

    gen_tables = _table_summary(gen_doc)
    golden_tables = _table_summary(golden_doc)

    if len(gen_tables) != len(golden_tables):
        major.append(
            f"Table count mismatch: generated={len(gen_tables)} golden={len(golden_tables)}"
        )

    table_lines = []
    for idx, golden_table in enumerate(golden_tables):
        if idx >= len(gen_tables):
            table_lines.append(f"- Table {idx + 1}: missing in generated output")
            continue
        gen_table = gen_tables[idx]
        if gen_table["title"] != golden_table["title"]:
            major.append(
                f"Table {idx + 1} order mismatch: generated={gen_table['title']!r} "
                f"golden={golden_table['title']!r}"
            )
        if gen_table["cols"] != golden_table["cols"]:
            major.append(
                f"Table {idx + 1} column mismatch: generated={gen_table['cols']} golden={golden_table['cols']}"
            )
        if gen_table["rows"] != golden_table["rows"]:
            minor.append(
                f"Table {idx + 1} row mismatch: generated={gen_table['rows']} golden={golden_table['rows']}"
            )
        if gen_table["fills"] != golden_table["fills"]:
            minor.append(
                f"Table {idx + 1} shading mismatch: generated={gen_table['fills']} golden={golden_table['fills']}"
            )
        table_lines.append(
            f"- Table {idx + 1} ({golden_table['title'] or 'untitled'}): "
            f"rows {gen_table['rows']} vs {golden_table['rows']}, "
            f"cols {gen_table['cols']} vs {golden_table['cols']}, "
            f"fills {gen_table['fills']} vs {golden_table['fills']}"
        )

    headings_gen = _section_headings(gen_doc)
    headings_gold = _section_headings(golden_doc)
    if headings_gen != headings_gold:
        major.append(f"Section headings differ: generated={headings_gen} golden={headings_gold}")

    report_lines = [
        "# DOCX Compare Report",
        "",
        f"Generated: `{generated_path}`",
        f"Golden: `{golden_path}`",
        "",
        "## Tables",
    ]
    report_lines.extend(table_lines or ["- No tables detected"])
    report_lines.extend(
        [
            "",
            "## Section headings",
            f"- generated: {', '.join(headings_gen) or '(none)'}",
            f"- golden: {', '.join(headings_gold) or '(none)'}",
            "",
            "## Notes",
        ]
    )
    if major:
        report_lines.append("Major mismatches:")
        report_lines.extend([f"- {item}" for item in major])
    if minor:
        report_lines.append("Minor notes:")
        report_lines.extend([f"- {item}" for item in minor])
    if not major and not minor:
        report_lines.append("- No structural differences detected.")

    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text("\n".join(report_lines) + "\n", encoding="utf-8")
    return CompareResult(
        report_path=report_path, major_mismatches=major, minor_notes=minor
    )


def main() -> int:
    if len(sys.argv) < 3:
        print(
            "Usage: python scripts/compare_docx_structure.py generated.docx golden.docx",
            file=sys.stderr,
        )
        return 2
    generated_path = Path(sys.argv[1])
    golden_path = Path(sys.argv[2])
    if not generated_path.exists():
        print(f"Missing generated docx: {generated_path}", file=sys.stderr)
        return 2
    if not golden_path.exists():
        print(f"Missing golden docx: {golden_path}", file=sys.stderr)
        return 2

    report_path = Path("out") / "docx_compare_report.md"
    result = compare_docx_structure(generated_path, golden_path, report_path)
    print(f"Wrote: {result.report_path}")
    if result.major_mismatches:
        return 3
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
