from __future__ import annotations

import csv
from datetime import datetime
from io import StringIO
from typing import Any, Iterable

from acrecap.schemas.submissions import SubmissionRead

SUBMISSION_COLUMNS = [
    "id",
    "created_at",
    "status",
    "name",
    "mobile",
    "email",
    "city",
    "business_name",
    "business_type",
    "annual_turnover",
    "years_in_business",
    "loan_amount",
    "loan_purpose",
    "tenure",
    "pan_number",
    "gst_number",
    "user_id",
]


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _write_csv(headers: list[str], rows: list[list[str]]) -> str:
    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def submissions_to_csv(submissions: Iterable[Any]) -> str:
    rows: list[list[str]] = []
    for submission in submissions:
        record = SubmissionRead.model_validate(submission)
        rows.append([_stringify(getattr(record, column)) for column in SUBMISSION_COLUMNS])
    return _write_csv(SUBMISSION_COLUMNS, rows)


def export_filename(prefix: str, now: datetime) -> str:
    return f"{prefix}-{now.strftime('%Y%m%d-%H%M%S')}.csv"
