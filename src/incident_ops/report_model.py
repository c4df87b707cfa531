from __future__ import annotations

import json
import re
from datetime import date
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EmployeeDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    employee_id: int | str | None = None
    employee_name: str = Field(default="")
    employee_email: str = Field(default="")
    position: str = Field(default="")
    company: str = Field(default="")


class Attachment(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name_or_link: str = Field(default="")
    description: str = Field(default="")


class ReportFields(BaseModel):
    # Accepts snake_case names and the camelCase form keys; nothing is required.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date_prepared: str = Field(default="")
    employee_details: EmployeeDetails | None = None
    incident_what: str = Field(default="")
    incident_location: str = Field(default="")
    incident_date_time: str = Field(default="")
    incident_details: str = Field(default="")
    findings: str = Field(default="")
    policy_violation: str = Field(default="")
    attachments: list[Attachment] = Field(default_factory=list)
    impact_categories: list[str] = Field(default_factory=list)
    impact_others_specify: str = Field(default="")
    impact_description: str = Field(default="")
    reported_by: EmployeeDetails = Field(default_factory=EmployeeDetails)
    attested_by: EmployeeDetails | None = None


def load_report_fields(path: str | Path) -> ReportFields:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return ReportFields.model_validate(payload)


def report_filename(fields: ReportFields) -> str:
    employee = fields.employee_details
    name = employee.employee_name.strip() if employee else ""
    name = re.sub(r"\s+", "_", name) if name else "Employee"
    return f"Incident_Report_{name}_{_prepared_date_stamp(fields.date_prepared)}.docx"


def _prepared_date_stamp(value: str) -> str:
    raw = (value or "").strip()
    if raw:
        try:
            return date.fromisoformat(raw[:10]).isoformat()
        except ValueError:
            pass
    return date.today().isoformat()
