from __future__ import annotations

from datetime import date, datetime
from typing import Iterable

from incident_ops.compiler import StyledRun
from incident_ops.report_model import Attachment

NOT_SPECIFIED = "Not specified"
OTHERS_CATEGORY = "Others"


def format_date(value: str | date | None) -> str:
    parsed = _parse_date(value)
    if parsed is None:
        return _fallback(value)
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def format_date_time(value: str | datetime | None) -> str:
    parsed = _parse_date_time(value)
    if parsed is None:
        return _fallback(value)
    hour = parsed.hour % 12 or 12
    meridiem = "AM" if parsed.hour < 12 else "PM"
    return (
        f"{parsed:%B} {parsed.day}, {parsed.year} "
        f"{hour}:{parsed.minute:02d} {meridiem}"
    )


def format_impact_list(categories: Iterable[str], others_text: str = "") -> str:
    others = (others_text or "").strip()
    labels = []
    for category in categories:
        if category == OTHERS_CATEGORY and others:
            labels.append(f"{OTHERS_CATEGORY} ({others})")
        else:
            labels.append(category)
    return ", ".join(labels)


def attachment_runs(index: int, attachment: Attachment) -> list[StyledRun]:
    name = attachment.name_or_link.strip() or f"Attachment {index}"
    runs = [StyledRun(f"{index}. ", bold=True), StyledRun(name, bold=True)]
    description = attachment.description.strip()
    if description:
        runs.append(StyledRun(f" — {description}"))
    return runs


def _fallback(value: object) -> str:
    if value is None:
        return NOT_SPECIFIED
    text = str(value).strip()
    return text or NOT_SPECIFIED


def _parse_date(value: str | date | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = (value or "").strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def _parse_date_time(value: str | datetime | None) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = (value or "").strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1]
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None
