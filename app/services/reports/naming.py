"""
Weekly report path scheme.

    reports/weekly_report_<YYYY-MM-DD>_recruiter_<recruiterId>.csv

The writer (report job) and the reader (locator) both go through this module
so the two sides can never drift apart.
"""

from dataclasses import dataclass
from datetime import date
from posixpath import basename

REPORTS_PREFIX = "reports/"

_NAME_PREFIX = "weekly_report_"
_RECRUITER_SEPARATOR = "_recruiter_"
_EXTENSION = ".csv"


@dataclass(frozen=True, slots=True)
class WeeklyReportName:
    date_segment: str
    recruiter_segment: str


def weekly_report_filename(recruiter_id: int | str, report_date: date) -> str:
    day = report_date.strftime("%Y-%m-%d")
    return f"{_NAME_PREFIX}{day}{_RECRUITER_SEPARATOR}{recruiter_id}{_EXTENSION}"


def weekly_report_path(recruiter_id: int | str, report_date: date) -> str:
    return REPORTS_PREFIX + weekly_report_filename(recruiter_id, report_date)


def parse_weekly_report_name(path: str) -> WeeklyReportName | None:
    """
    Split a stored path into its date and recruiter segments.

    Returns None for anything that is not a weekly report directly under
    reports/. The recruiter segment is whatever follows the last
    "_recruiter_" marker, so callers compare it for equality rather than
    with a prefix or substring test.
    """
    if not path.startswith(REPORTS_PREFIX):
        return None

    name = path[len(REPORTS_PREFIX) :]
    if "/" in name or not name.startswith(_NAME_PREFIX) or not name.endswith(_EXTENSION):
        return None

    stem = name[len(_NAME_PREFIX) : -len(_EXTENSION)]
    date_segment, separator, recruiter_segment = stem.rpartition(_RECRUITER_SEPARATOR)
    if not separator or not date_segment or not recruiter_segment:
        return None

    return WeeklyReportName(date_segment=date_segment, recruiter_segment=recruiter_segment)


def is_weekly_report_for(path: str, recruiter_id: int | str) -> bool:
    parsed = parse_weekly_report_name(path)
    return parsed is not None and parsed.recruiter_segment == str(recruiter_id)


def download_filename(path: str) -> str:
    return basename(path)
