"""
CSV rendering for application reports.

Two formats live here:

- the weekly report, whose byte layout is fixed: every field wrapped in
  double quotes with no escaping of embedded quotes or commas, "\\n" line
  endings, no BOM. Downstream consumers parse it as-is, so the known quoting
  gap is kept rather than silently changed.
- the on-demand export, written through the csv module with proper escaping
  and an extra phone column.
"""

import csv
import io
from collections.abc import Iterable
from datetime import datetime, tzinfo
from zoneinfo import ZoneInfo

from app.models.domain.recruitment_domain import ApplicationRecord

WEEKLY_REPORT_HEADER = ("Candidate Name", "Email", "Job Title", "Status", "Application Date")
EXPORT_HEADER = ("Candidate Name", "Email", "Phone", "Job Title", "Status", "Application Date")

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MISSING_PHONE = "N/A"


class ReportRenderer:
    """Turns application records into CSV bytes."""

    def __init__(self, timezone: str | tzinfo = "UTC"):
        self.timezone = ZoneInfo(timezone) if isinstance(timezone, str) else timezone

    def format_timestamp(self, value: datetime) -> str:
        # Naive timestamps are assumed to already be in report-local time.
        if value.tzinfo is not None:
            value = value.astimezone(self.timezone)
        return value.strftime(DATE_FORMAT)

    def render(self, records: Iterable[ApplicationRecord]) -> bytes:
        lines = [",".join(WEEKLY_REPORT_HEADER)]
        for record in records:
            fields = (
                record.candidate_name,
                record.candidate_email,
                record.job_title,
                str(record.status),
                self.format_timestamp(record.created_at),
            )
            lines.append(",".join(f'"{field}"' for field in fields))

        return ("\n".join(lines) + "\n").encode("utf-8")

    def render_export(self, records: Iterable[ApplicationRecord]) -> bytes:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(EXPORT_HEADER)
        for record in records:
            writer.writerow(
                [
                    record.candidate_name,
                    record.candidate_email,
                    record.candidate_phone or MISSING_PHONE,
                    record.job_title,
                    str(record.status),
                    self.format_timestamp(record.created_at),
                ]
            )
        return buffer.getvalue().encode("utf-8")
