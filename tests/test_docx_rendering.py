from __future__ import annotations

import base64
import dataclasses
from pathlib import Path

import pytest
from docx import Document
from docx.shared import Pt

from incident_ops.config import Branding
from incident_ops.identity import IdentityAsset
from incident_ops.render_docx import assemble_report, render_report_docx
from dump_docx_runs import summarize_docx_runs

# 1x1 transparent PNG.
_PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def _sample_fields(**overrides) -> dict:
    fields = {
        "datePrepared": "2024-03-15",
        "employeeDetails": {
            "employee_id": 1042,
            "employee_name": "Jane Doe",
            "position": "Agent",
            "company": "Acme",
        },
        "incidentWhat": "Unauthorized absence",
        "incidentLocation": "Floor 3",
        "incidentDateTime": "2024-03-14T14:05",
        "incidentDetails": "## Timeline\n1. Arrived late\n- badge log checked\n**Confirmed** by lead",
        "findings": "Pattern over *two* weeks",
        "policyViolation": "Attendance policy 4.2",
        "attachments": [
            {"nameOrLink": "", "description": "log"},
            {"nameOrLink": "Screenshot", "description": ""},
        ],
        "impactCategories": ["Client", "Others"],
        "impactOthersSpecify": "Vendor",
        "impactDescription": "Delayed queue",
        "reportedBy": {"employee_name": "Sam Lead", "position": "Team Lead"},
        "attestedBy": None,
    }
    fields.update(overrides)
    return fields


def _render(tmp_path: Path, fields: dict, asset: IdentityAsset | None = None):
    path = render_report_docx(fields, tmp_path / "report.docx", asset or IdentityAsset.wordmark())
    return Document(str(path)), path


def _titles(doc) -> list[str]:
    return [table.cell(0, 0).paragraphs[0].text for table in doc.tables]


def _cell_texts(cell) -> list[str]:
    return [paragraph.text for paragraph in cell.paragraphs]


def test_section_order(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields())
    assert _titles(doc) == [
        "Incident Report",
        "EMPLOYEE REPORTED",
        "What:",
        "Incident Details:",
        "Findings:",
        "Policy/Code of Conduct Concerns:",
        "Attachments:",
        "Impact:",
        "REPORTED BY",
    ]
    headings = [p.text for p in doc.paragraphs if p.text.strip()]
    assert headings == ["EMPLOYEE DETAILS", "DESCRIPTION OF INCIDENT", "SIGNATORIES"]


def test_optional_boxes_are_omitted_when_blank(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields(findings="  \n", policyViolation=""))
    titles = _titles(doc)
    assert "Findings:" not in titles
    assert "Policy/Code of Conduct Concerns:" not in titles
    assert titles.index("Incident Details:") + 1 == titles.index("Attachments:")


def test_narrative_blocks_map_one_to_one(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields())
    content = doc.tables[3].cell(1, 0)
    assert _cell_texts(content) == [
        "Timeline",
        "1. Arrived late",
        "badge log checked",
        "Confirmed by lead",
    ]
    assert content.paragraphs[2].style.name == "List Bullet"
    heading_run = content.paragraphs[0].runs[0]
    assert heading_run.bold
    assert heading_run.font.size == Pt(12)


def test_empty_narrative_shows_placeholder(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields(incidentDetails=""))
    paragraph = doc.tables[3].cell(1, 0).paragraphs[0]
    assert paragraph.text == "No content provided"
    assert paragraph.runs[0].italic


def test_key_value_tables(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields(incidentLocation="", incidentDateTime=""))
    employee = doc.tables[1]
    assert [cell.text for cell in employee.rows[0].cells] == [
        "EMPLOYEE REPORTED",
        "Jane Doe",
        "EMP ID",
        "1042",
    ]
    description = doc.tables[2]
    assert description.cell(0, 1).text == "Unauthorized absence"
    assert description.cell(1, 1).text == "Not specified"
    assert description.cell(2, 1).text == "Not specified"


def test_missing_employee_details(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields(employeeDetails=None))
    employee = doc.tables[1]
    assert employee.cell(0, 1).text == "Not selected"
    assert employee.cell(0, 3).text == "—"
    assert employee.cell(1, 3).text == "—"


def test_attachment_lines(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields())
    cell = doc.tables[6].cell(1, 0)
    assert _cell_texts(cell) == ["1. Attachment 1 — log", "2. Screenshot"]


def test_no_attachments_placeholder(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields(attachments=[]))
    paragraph = doc.tables[6].cell(1, 0).paragraphs[0]
    assert paragraph.text == "No attachments"
    assert paragraph.runs[0].italic


def test_impact_box(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields())
    cell = doc.tables[7].cell(1, 0)
    assert _cell_texts(cell) == ["Impacted Parties: Client, Others (Vendor)", "Delayed queue"]
    assert cell.paragraphs[0].runs[0].bold


def test_impact_box_without_categories(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields(impactCategories=[], impactDescription=""))
    paragraphs = doc.tables[7].cell(1, 0).paragraphs
    assert paragraphs[0].text == "Impacted Parties: None selected"
    assert paragraphs[0].runs[1].italic
    assert paragraphs[1].text == "No content provided"


def test_signatories(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields())
    reported, attested = doc.tables[-1].rows[0].cells
    reported_lines = _cell_texts(reported)
    assert reported_lines[:3] == ["REPORTED BY", "Sam Lead", "Team Lead"]
    assert reported_lines[-1] == "Date: March 15, 2024"

    attested_lines = _cell_texts(attested)
    assert attested_lines[0] == "ATTESTED BY"
    assert attested_lines[1] == "Not selected"
    assert attested.paragraphs[1].runs[0].italic
    assert attested_lines[-1].startswith("Date: ___")


def test_attested_signatory_when_present(tmp_path: Path) -> None:
    doc, _ = _render(
        tmp_path,
        _sample_fields(attestedBy={"employee_name": "Ana HR", "position": "HR Partner"}),
    )
    attested = doc.tables[-1].cell(0, 1)
    assert _cell_texts(attested)[1:3] == ["Ana HR", "HR Partner"]


def test_header_footer_and_shading(tmp_path: Path) -> None:
    doc, path = _render(tmp_path, _sample_fields())
    section = doc.sections[0]
    assert section.header.paragraphs[0].text == "People and Culture Department"
    footer = section.footer.paragraphs[0]
    assert footer.text.startswith("Page ")
    assert "NUMPAGES" in footer._p.xml

    summary = summarize_docx_runs(path)
    assert summary["shaded_cells"]["dbeafe"] == 7
    assert summary["shaded_cells"]["f3f4f6"] == 5


def test_custom_branding() -> None:
    branding = Branding(department_name="Ops")
    report = assemble_report(_sample_fields(), IdentityAsset.wordmark(), branding)
    assert report.document.sections[0].header.paragraphs[0].text == "Ops"


def test_wordmark_when_no_logo(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields())
    logo_cell = doc.tables[0].cell(0, 1)
    assert _cell_texts(logo_cell) == ["GoTeam", "It's better together!"]
    assert len(doc.inline_shapes) == 0


def test_invalid_logo_bytes_fall_back_to_wordmark(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields(), IdentityAsset(image=b"not an image"))
    assert _cell_texts(doc.tables[0].cell(0, 1))[0] == "GoTeam"


@pytest.mark.parametrize(
    "image",
    [
        b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00",
        b"\xff\xd8\xff\xe0\x00\x10JFIF",
    ],
)
def test_truncated_logo_falls_back_to_wordmark(tmp_path: Path, image: bytes) -> None:
    doc, _ = _render(tmp_path, _sample_fields(), IdentityAsset(image=image))
    logo_paragraph = doc.tables[0].cell(0, 1).paragraphs[0]
    assert [run.text for run in logo_paragraph.runs] == ["Go", "Team"]
    assert len(doc.inline_shapes) == 0


def test_logo_image_is_embedded(tmp_path: Path) -> None:
    doc, _ = _render(tmp_path, _sample_fields(), IdentityAsset(image=_PNG_1X1))
    assert len(doc.inline_shapes) == 1
    assert "GoTeam" not in doc.tables[0].cell(0, 1).text


def test_report_document_bytes_and_filename() -> None:
    report = assemble_report(_sample_fields())
    assert report.filename == "Incident_Report_Jane_Doe_2024-03-15.docx"
    assert report.to_bytes()[:2] == b"PK"
    with pytest.raises(dataclasses.FrozenInstanceError):
        report.filename = "other.docx"


def test_save_creates_parent_directories(tmp_path: Path) -> None:
    report = assemble_report(_sample_fields())
    out = report.save(tmp_path / "nested" / "dir" / report.filename)
    assert out.exists()
    assert not (out.parent / (out.name + ".tmp")).exists()
