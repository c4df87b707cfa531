from __future__ import annotations

import io
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.image.exceptions import (
    InvalidImageStreamError,
    UnexpectedEndOfFileError,
    UnrecognizedImageError,
)
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Emu, Inches, Pt, RGBColor
from docx.text.paragraph import Paragraph

from incident_ops.blocks import BlockKind
from incident_ops.compiler import (
    BODY_COLOR,
    MUTED_COLOR,
    RenderedBlock,
    StyledRun,
    compile_markdown,
    placeholder_block,
)
from incident_ops.config import Branding
from incident_ops.formatting import (
    NOT_SPECIFIED,
    attachment_runs,
    format_date,
    format_date_time,
    format_impact_list,
)
from incident_ops.identity import IdentityAsset
from incident_ops.report_model import EmployeeDetails, ReportFields, report_filename

ACCENT_COLOR = "1d4ed8"
HEADER_TEXT_COLOR = "1e3a8a"
HEADER_SHADING = "dbeafe"
BOX_TITLE_SHADING = "f3f4f6"
BORDER_COLOR = "d1d5db"
BRAND_COLOR = "2563eb"
BRAND_DARK_COLOR = "1e40af"
LABEL_COLOR = "6b7280"
FOOTER_COLOR = "666666"
EMPTY_VALUE = "—"
SIGNATURE_LINE = "Signature: _______________________________"
BLANK_DATE_LINE = "Date: _______________________________"

_LOGO_WIDTH_IN = 1.25
_LOGO_HEIGHT_IN = 40 / 96
_TWIPS_PER_INCH = 1440
_EMU_PER_TWIP = 635
_IMAGE_DECODE_ERRORS = (
    UnrecognizedImageError,
    UnexpectedEndOfFileError,
    InvalidImageStreamError,
    struct.error,
    ValueError,
)
# Schema order of <w:tblPr> children.
_TBL_PR_ORDER = (
    "w:tblStyle",
    "w:tblpPr",
    "w:tblOverlap",
    "w:bidiVisual",
    "w:tblStyleRowBandSize",
    "w:tblStyleColBandSize",
    "w:tblW",
    "w:jc",
    "w:tblCellSpacing",
    "w:tblInd",
    "w:tblBorders",
    "w:shd",
    "w:tblLayout",
    "w:tblCellMar",
    "w:tblLook",
)
_BOX_BORDERS = {side: ("single", 8) for side in ("top", "left", "bottom", "right")}
_GRID_BORDERS = {
    **_BOX_BORDERS,
    "insideH": ("single", 4),
    "insideV": ("single", 4),
}


@dataclass(frozen=True)
class ReportDocument:
    document: Any
    filename: str

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.document.save(buffer)
        return buffer.getvalue()

    def save(self, path: str | Path) -> Path:
        out_file = Path(path)
        out_file.parent.mkdir(parents=True, exist_ok=True)
        _save_docx_atomic(self.document, out_file)
        return out_file


def assemble_report(
    fields: ReportFields | Mapping[str, Any],
    identity_asset: IdentityAsset | None = None,
    branding: Branding | None = None,
) -> ReportDocument:
    if not isinstance(fields, ReportFields):
        fields = ReportFields.model_validate(fields)
    identity_asset = identity_asset or IdentityAsset.wordmark()
    branding = branding or Branding()

    doc = Document()
    _apply_page_setup(doc)
    _add_header(doc, branding)
    _add_footer(doc)

    _add_title_block(doc, fields, identity_asset, branding)
    _add_spacer(doc, 15)

    _add_section_heading(doc, "EMPLOYEE DETAILS", space_after_pt=5)
    _add_employee_table(doc, fields.employee_details)
    _add_spacer(doc, 15)

    _add_section_heading(doc, "DESCRIPTION OF INCIDENT", space_after_pt=5)
    _add_description_table(doc, fields)
    _add_spacer(doc, 10)

    _add_content_box(doc, "Incident Details:", compile_markdown(fields.incident_details))
    _add_spacer(doc, 10)

    if fields.findings.strip():
        _add_content_box(doc, "Findings:", compile_markdown(fields.findings))
        _add_spacer(doc, 10)

    if fields.policy_violation.strip():
        _add_content_box(
            doc,
            "Policy/Code of Conduct Concerns:",
            compile_markdown(fields.policy_violation),
        )
        _add_spacer(doc, 10)

    _add_content_box(doc, "Attachments:", _attachment_blocks(fields))
    _add_spacer(doc, 10)

    _add_content_box(doc, "Impact:", _impact_blocks(fields))
    _add_spacer(doc, 20)

    _add_section_heading(doc, "SIGNATORIES", space_after_pt=7.5)
    _add_signatories_table(doc, fields)

    return ReportDocument(document=doc, filename=report_filename(fields))


def render_report_docx(
    fields: ReportFields | Mapping[str, Any],
    out_docx_path: str | Path,
    identity_asset: IdentityAsset | None = None,
    branding: Branding | None = None,
) -> Path:
    report = assemble_report(fields, identity_asset, branding)
    return report.save(out_docx_path)


def _attachment_blocks(fields: ReportFields) -> list[RenderedBlock]:
    if not fields.attachments:
        return [placeholder_block("No attachments")]
    return [
        RenderedBlock(
            kind=BlockKind.PARAGRAPH,
            runs=tuple(attachment_runs(idx, attachment)),
            space_after_pt=3,
            left_indent_in=0.15,
        )
        for idx, attachment in enumerate(fields.attachments, start=1)
    ]


def _impact_blocks(fields: ReportFields) -> list[RenderedBlock]:
    impact_list = format_impact_list(fields.impact_categories, fields.impact_others_specify)
    if impact_list:
        value_run = StyledRun(impact_list)
    else:
        value_run = StyledRun("None selected", italic=True, color=MUTED_COLOR)
    first_line = RenderedBlock(
        kind=BlockKind.PARAGRAPH,
        runs=(StyledRun("Impacted Parties: ", bold=True), value_run),
        space_after_pt=6,
    )
    return [first_line, *compile_markdown(fields.impact_description)]


class _DocWriter:
    def __init__(self, container: Any, reuse_first: Paragraph | None = None) -> None:
        self.container = container
        self.reuse_first = reuse_first

    def add_paragraph(self, style: str | None = None) -> Paragraph:
        if self.reuse_first is not None:
            paragraph = self.reuse_first
            self.reuse_first = None
        else:
            paragraph = self.container.add_paragraph()
        if style:
            try:
                paragraph.style = style
            except KeyError:
                pass
        return paragraph

    def add_block(self, block: RenderedBlock) -> Paragraph:
        paragraph = self.add_paragraph("List Bullet" if block.bullet else None)
        fmt = paragraph.paragraph_format
        fmt.space_before = Pt(block.space_before_pt)
        fmt.space_after = Pt(block.space_after_pt)
        if block.left_indent_in:
            fmt.left_indent = Inches(block.left_indent_in)
        _add_runs(paragraph, block.runs)
        return paragraph

    def add_runs(
        self,
        runs: Iterable[StyledRun],
        *,
        space_after_pt: float = 0,
        space_before_pt: float = 0,
        alignment: WD_ALIGN_PARAGRAPH | None = None,
    ) -> Paragraph:
        paragraph = self.add_paragraph()
        fmt = paragraph.paragraph_format
        fmt.space_before = Pt(space_before_pt)
        fmt.space_after = Pt(space_after_pt)
        if alignment is not None:
            paragraph.alignment = alignment
        _add_runs(paragraph, runs)
        return paragraph


def _cell_writer(cell) -> _DocWriter:
    return _DocWriter(cell, reuse_first=cell.paragraphs[0])


def _add_runs(paragraph: Paragraph, runs: Iterable[StyledRun]) -> None:
    for run_spec in runs:
        _add_styled_run(paragraph, run_spec)


def _add_styled_run(paragraph: Paragraph, run_spec: StyledRun) -> None:
    if not run_spec.text:
        return
    run = paragraph.add_run(run_spec.text)
    if run_spec.bold:
        run.bold = True
    if run_spec.italic:
        run.italic = True
    run.font.size = Pt(run_spec.size_pt)
    run.font.color.rgb = RGBColor.from_string(run_spec.color.upper())


def _apply_page_setup(doc: Document) -> None:
    normal = doc.styles["Normal"]
    normal.font.name = "Calibri"
    normal.font.size = Pt(11)
    section = doc.sections[0]
    section.top_margin = Inches(0.75)
    section.bottom_margin = Inches(0.75)
    section.left_margin = Inches(0.85)
    section.right_margin = Inches(0.85)


def _add_header(doc: Document, branding: Branding) -> None:
    header = doc.sections[0].header
    writer = _DocWriter(header, reuse_first=header.paragraphs[0])
    writer.add_runs(
        [StyledRun(branding.department_name, bold=True, color=BRAND_COLOR)],
        space_after_pt=5,
    )


def _add_footer(doc: Document) -> None:
    footer = doc.sections[0].footer
    paragraph = footer.paragraphs[0]
    paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
    _add_styled_run(paragraph, StyledRun("Page ", size_pt=9, color=FOOTER_COLOR))
    _add_field_run(paragraph, "PAGE", StyledRun("", size_pt=9, color=FOOTER_COLOR))
    _add_styled_run(paragraph, StyledRun(" of ", size_pt=9, color=FOOTER_COLOR))
    _add_field_run(paragraph, "NUMPAGES", StyledRun("", size_pt=9, color=FOOTER_COLOR))


def _add_field_run(paragraph: Paragraph, instruction: str, style: StyledRun) -> None:
    # Field runs: begin, instruction, separate, cached value, end.
    for kind in ("begin", "instr", "separate", "value", "end"):
        run = paragraph.add_run()
        run.font.size = Pt(style.size_pt)
        run.font.color.rgb = RGBColor.from_string(style.color.upper())
        if kind == "instr":
            instr = OxmlElement("w:instrText")
            instr.set(qn("xml:space"), "preserve")
            instr.text = f" {instruction} "
            run._r.append(instr)
        elif kind == "value":
            run.text = "1"
        else:
            fld_char = OxmlElement("w:fldChar")
            fld_char.set(qn("w:fldCharType"), kind)
            run._r.append(fld_char)


def _add_spacer(doc: Document, space_after_pt: float) -> None:
    paragraph = doc.add_paragraph()
    paragraph.paragraph_format.space_after = Pt(space_after_pt)


def _add_section_heading(doc: Document, title: str, *, space_after_pt: float) -> None:
    _DocWriter(doc).add_runs(
        [StyledRun(title, bold=True, size_pt=12, color=ACCENT_COLOR)],
        space_after_pt=space_after_pt,
    )


def _add_title_block(
    doc: Document, fields: ReportFields, identity_asset: IdentityAsset, branding: Branding
) -> None:
    table = doc.add_table(rows=1, cols=2)
    borders = {side: ("nil", 0) for side in ("top", "left", "right", "insideH", "insideV")}
    borders["bottom"] = ("single", 12)
    _apply_table_profile(table, doc, [70, 30], borders, border_color=BRAND_COLOR)

    left = _cell_writer(table.cell(0, 0))
    left.add_runs([StyledRun("Incident Report", bold=True, size_pt=26)])
    left.add_runs(
        [
            StyledRun("Date Prepared: ", bold=True, size_pt=11),
            StyledRun(format_date(fields.date_prepared), size_pt=11),
        ],
        space_before_pt=2.5,
    )

    right = _cell_writer(table.cell(0, 1))
    logo_paragraph = right.add_runs([], alignment=WD_ALIGN_PARAGRAPH.RIGHT)
    if not _add_logo(logo_paragraph, identity_asset):
        _add_runs(
            logo_paragraph,
            [
                StyledRun(branding.wordmark_primary, bold=True, size_pt=20, color=BRAND_COLOR),
                StyledRun(
                    branding.wordmark_secondary, bold=True, size_pt=20, color=BRAND_DARK_COLOR
                ),
            ],
        )
    right.add_runs(
        [StyledRun(branding.tagline, italic=True, size_pt=9, color=LABEL_COLOR)],
        alignment=WD_ALIGN_PARAGRAPH.RIGHT,
    )


def _add_logo(paragraph: Paragraph, identity_asset: IdentityAsset) -> bool:
    if not identity_asset.has_image:
        return False
    run = paragraph.add_run()
    try:
        run.add_picture(
            io.BytesIO(identity_asset.image),
            width=Inches(_LOGO_WIDTH_IN),
            height=Inches(_LOGO_HEIGHT_IN),
        )
    except _IMAGE_DECODE_ERRORS:
        paragraph._p.remove(run._r)
        return False
    return True


def _add_employee_table(doc: Document, employee: EmployeeDetails | None) -> None:
    employee_id = ""
    if employee is not None and employee.employee_id is not None:
        employee_id = str(employee.employee_id).strip()
    rows = [
        [
            ("EMPLOYEE REPORTED", True),
            ((employee.employee_name or "N/A") if employee else "Not selected", False),
            ("EMP ID", True),
            (employee_id or EMPTY_VALUE, False),
        ],
        [
            ("POSITION", True),
            ((employee.position if employee else "") or EMPTY_VALUE, False),
            ("CLIENT", True),
            ((employee.company if employee else "") or EMPTY_VALUE, False),
        ],
    ]
    _add_key_value_table(doc, rows, [22, 28, 15, 35])


def _add_description_table(doc: Document, fields: ReportFields) -> None:
    rows = [
        [("What:", True), (fields.incident_what or NOT_SPECIFIED, False)],
        [("Location:", True), (fields.incident_location or NOT_SPECIFIED, False)],
        [("Time:", True), (format_date_time(fields.incident_date_time), False)],
    ]
    _add_key_value_table(doc, rows, [12, 88])


def _add_key_value_table(
    doc: Document, rows: list[list[tuple[str, bool]]], widths_pct: list[int]
) -> None:
    table = doc.add_table(rows=len(rows), cols=len(widths_pct))
    _apply_table_profile(table, doc, widths_pct, _GRID_BORDERS)
    for r_idx, row in enumerate(rows):
        for c_idx, (text, is_header) in enumerate(row):
            cell = table.cell(r_idx, c_idx)
            if is_header:
                _shade_cell(cell, HEADER_SHADING)
                run = StyledRun(text, bold=True, color=HEADER_TEXT_COLOR)
            else:
                run = StyledRun(text, color=BODY_COLOR)
            _set_cell_margins(cell, vertical_in=0.05, horizontal_in=0.1)
            _cell_writer(cell).add_runs([run])
            _tighten_table_cell(cell)


def _add_content_box(doc: Document, title: str, blocks: list[RenderedBlock]) -> None:
    table = doc.add_table(rows=2, cols=1)
    _apply_table_profile(table, doc, [100], _BOX_BORDERS)

    title_cell = table.cell(0, 0)
    _shade_cell(title_cell, BOX_TITLE_SHADING)
    _set_cell_margins(title_cell, vertical_in=0.08, horizontal_in=0.15)
    _cell_writer(title_cell).add_runs(
        [StyledRun(title, bold=True, size_pt=11, color=ACCENT_COLOR)]
    )

    content_cell = table.cell(1, 0)
    _set_cell_margins(content_cell, vertical_in=0.1, horizontal_in=0.15)
    writer = _cell_writer(content_cell)
    for block in blocks:
        writer.add_block(block)


def _add_signatories_table(doc: Document, fields: ReportFields) -> None:
    table = doc.add_table(rows=1, cols=2)
    borders = {**_BOX_BORDERS, "insideV": ("single", 4)}
    _apply_table_profile(table, doc, [50, 50], borders)

    reported = fields.reported_by
    _fill_signatory_cell(
        table.cell(0, 0),
        "REPORTED BY",
        StyledRun(reported.employee_name or "N/A", bold=True, size_pt=12),
        reported.position or "N/A",
        f"Date: {format_date(fields.date_prepared)}",
    )

    attested = fields.attested_by
    if attested is not None:
        attested_name = StyledRun(attested.employee_name or "N/A", bold=True, size_pt=12)
    else:
        attested_name = StyledRun("Not selected", italic=True, size_pt=12, color=MUTED_COLOR)
    _fill_signatory_cell(
        table.cell(0, 1),
        "ATTESTED BY",
        attested_name,
        attested.position if attested is not None else "",
        BLANK_DATE_LINE,
    )


def _fill_signatory_cell(
    cell, label: str, name_run: StyledRun, position: str, date_line: str
) -> None:
    _set_cell_margins(cell, vertical_in=0.15, horizontal_in=0.2)
    writer = _cell_writer(cell)
    writer.add_runs(
        [StyledRun(label, bold=True, size_pt=9, color=LABEL_COLOR)], space_after_pt=6
    )
    writer.add_runs([name_run])
    writer.add_runs([StyledRun(position)], space_after_pt=12.5)
    writer.add_runs([StyledRun(SIGNATURE_LINE, color=LABEL_COLOR)], space_after_pt=4)
    writer.add_runs([StyledRun(date_line)])


def _apply_table_profile(
    table,
    doc: Document,
    widths_pct: list[int],
    borders: Mapping[str, tuple[str, int]],
    *,
    border_color: str = BORDER_COLOR,
) -> None:
    tbl_pr = table._tbl.tblPr

    tbl_w = OxmlElement("w:tblW")
    tbl_w.set(qn("w:type"), "pct")
    tbl_w.set(qn("w:w"), "5000")
    _set_tbl_pr_child(tbl_pr, tbl_w)

    tbl_borders = OxmlElement("w:tblBorders")
    for side in ("top", "left", "bottom", "right", "insideH", "insideV"):
        if side not in borders:
            continue
        style, size = borders[side]
        border = OxmlElement(f"w:{side}")
        border.set(qn("w:val"), style)
        if style != "nil":
            border.set(qn("w:sz"), str(size))
            border.set(qn("w:space"), "0")
            border.set(qn("w:color"), border_color)
        tbl_borders.append(border)
    _set_tbl_pr_child(tbl_pr, tbl_borders)

    tbl_layout = OxmlElement("w:tblLayout")
    tbl_layout.set(qn("w:type"), "fixed")
    _set_tbl_pr_child(tbl_pr, tbl_layout)

    section = doc.sections[0]
    total_width_emu = int(section.page_width - section.left_margin - section.right_margin)
    total_twips = max(1, int(round(total_width_emu / _EMU_PER_TWIP)))
    widths_twips = _compute_col_widths_twips(widths_pct, total_twips)

    _set_tbl_grid(table, widths_twips)
    for row in table.rows:
        for idx, cell in enumerate(row.cells):
            cell.width = Emu(max(1, widths_twips[idx] * _EMU_PER_TWIP))


def _set_tbl_pr_child(tbl_pr, element) -> None:
    existing = tbl_pr.find(element.tag)
    if existing is not None:
        tbl_pr.remove(existing)
    tag_names = [qn(name) for name in _TBL_PR_ORDER]
    position = tag_names.index(element.tag)
    later = set(tag_names[position + 1 :])
    for child in tbl_pr:
        if child.tag in later:
            child.addprevious(element)
            return
    tbl_pr.append(element)


def _compute_col_widths_twips(widths_pct: list[int], total_twips: int) -> list[int]:
    total_pct = sum(widths_pct) or 1
    widths = [int(total_twips * pct / total_pct) for pct in widths_pct]
    widths[-1] += total_twips - sum(widths)
    return widths


def _set_tbl_grid(table, widths_twips: list[int]) -> None:
    tbl = table._tbl
    tbl_grid = tbl.find(qn("w:tblGrid"))
    if tbl_grid is None:
        tbl_grid = OxmlElement("w:tblGrid")
        # tblGrid must follow tblPr.
        insert_at = 1 if tbl.tblPr is not None else 0
        tbl.insert(insert_at, tbl_grid)
    else:
        for child in list(tbl_grid):
            tbl_grid.remove(child)
    for width in widths_twips:
        grid_col = OxmlElement("w:gridCol")
        grid_col.set(qn("w:w"), str(max(1, int(width))))
        tbl_grid.append(grid_col)


def _shade_cell(cell, color: str) -> None:
    tc_pr = cell._tc.get_or_add_tcPr()
    shading = OxmlElement("w:shd")
    shading.set(qn("w:val"), "clear")
    shading.set(qn("w:color"), "auto")
    shading.set(qn("w:fill"), color)
    tc_pr.append(shading)


def _set_cell_margins(cell, *, vertical_in: float, horizontal_in: float) -> None:
    tc_pr = cell._tc.get_or_add_tcPr()
    tc_mar = OxmlElement("w:tcMar")
    for side, inches in (
        ("top", vertical_in),
        ("left", horizontal_in),
        ("bottom", vertical_in),
        ("right", horizontal_in),
    ):
        margin = OxmlElement(f"w:{side}")
        margin.set(qn("w:w"), str(int(round(inches * _TWIPS_PER_INCH))))
        margin.set(qn("w:type"), "dxa")
        tc_mar.append(margin)
    tc_pr.append(tc_mar)


def _tighten_table_cell(cell) -> None:
    # Drop trailing empty paragraphs and force compact spacing.
    while len(cell.paragraphs) > 1 and not (cell.paragraphs[-1].text or "").strip():
        _remove_paragraph(cell.paragraphs[-1])
    for paragraph in cell.paragraphs:
        fmt = paragraph.paragraph_format
        fmt.space_before = Pt(0)
        fmt.space_after = Pt(0)


def _remove_paragraph(paragraph: Paragraph) -> None:
    element = paragraph._p
    parent = element.getparent()
    if parent is not None:
        parent.remove(element)


def _save_docx_atomic(doc: Document, path: Path) -> None:
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    doc.save(str(tmp_path))
    tmp_path.replace(path)
