from datetime import UTC, datetime, timedelta

import pytest

from app.jobs.weekly_report_job import WeeklyReportJob
from app.services.reports.errors import AggregationError, StoreError
from app.services.reports.renderer import ReportRenderer
from tests.fakes import FIXED_NOW, make_record

HEADER = b"Candidate Name,Email,Job Title,Status,Application Date\n"
EXPECTED_PATH = "reports/weekly_report_2024-01-15_recruiter_1.csv"


async def _read(store, path):
    return (await store.download(path)).read_all()


@pytest.mark.asyncio
async def test_writes_header_only_report_when_no_applications(report_job, artifact_store):
    artifact = await report_job.execute(1)

    assert artifact.path == EXPECTED_PATH
    assert await artifact_store.list_by_prefix("reports/") == [EXPECTED_PATH]
    assert await _read(artifact_store, EXPECTED_PATH) == HEADER


@pytest.mark.asyncio
async def test_only_in_window_applications_are_reported(
    report_job, application_repository, artifact_store
):
    application_repository.add(
        1, make_record(FIXED_NOW - timedelta(days=2), candidate_name="Recent")
    )
    application_repository.add(
        1, make_record(FIXED_NOW - timedelta(days=7), candidate_name="Boundary")
    )
    application_repository.add(
        1, make_record(FIXED_NOW - timedelta(days=7, seconds=1), candidate_name="Too Old")
    )
    application_repository.add(2, make_record(FIXED_NOW, candidate_name="Other Recruiter"))

    artifact = await report_job.execute(1)
    content = (await _read(artifact_store, EXPECTED_PATH)).decode()

    assert '"Recent"' in content
    assert '"Boundary"' in content
    assert "Too Old" not in content
    assert "Other Recruiter" not in content
    assert artifact.size_bytes == len(content.encode())


@pytest.mark.asyncio
async def test_window_is_seven_days_ending_at_execution_time(
    report_job, application_repository, clock
):
    later = FIXED_NOW + timedelta(days=3)
    clock.state["now"] = later

    await report_job.execute(1)

    recruiter_id, window_start, window_end = application_repository.calls[-1]
    assert recruiter_id == 1
    assert window_end == later
    assert window_end - window_start == timedelta(days=7)


@pytest.mark.asyncio
async def test_path_uses_execution_date(report_job, clock):
    clock.state["now"] = datetime(2024, 2, 29, 23, 59, tzinfo=UTC)

    artifact = await report_job.execute(1)

    assert artifact.path == "reports/weekly_report_2024-02-29_recruiter_1.csv"


@pytest.mark.asyncio
async def test_admin_receives_report(report_job, artifact_store):
    artifact = await report_job.execute(2)

    assert artifact.path == "reports/weekly_report_2024-01-15_recruiter_2.csv"


@pytest.mark.asyncio
async def test_same_day_rerun_keeps_one_artifact_with_latest_content(
    report_job, application_repository, artifact_store, clock
):
    await report_job.execute(1)

    application_repository.add(1, make_record(FIXED_NOW, candidate_name="Late Applicant"))
    clock.state["now"] = FIXED_NOW + timedelta(hours=2)
    await report_job.execute(1)

    assert await artifact_store.list_by_prefix("reports/") == [EXPECTED_PATH]
    assert b"Late Applicant" in await _read(artifact_store, EXPECTED_PATH)


@pytest.mark.asyncio
@pytest.mark.parametrize("recruiter_id", [3, 999])
async def test_candidate_or_unknown_user_is_a_silent_noop(
    report_job, application_repository, artifact_store, recruiter_id
):
    result = await report_job.execute(recruiter_id)

    assert result is None
    assert application_repository.calls == []
    assert await artifact_store.list_by_prefix("") == []


@pytest.mark.asyncio
async def test_aggregation_failure_fails_job_without_artifact(
    report_job, application_repository, artifact_store
):
    application_repository.fail_with = AggregationError("db down", operation="fetch_window")

    with pytest.raises(AggregationError):
        await report_job.execute(1)

    assert await artifact_store.list_by_prefix("reports/") == []


class _FailingStore:
    def __init__(self):
        self.attempts = 0

    async def put(self, path, data):
        self.attempts += 1
        raise StoreError("disk full", operation="put")


@pytest.mark.asyncio
async def test_store_failure_propagates(user_repository, application_repository):
    store = _FailingStore()
    job = WeeklyReportJob(
        user_repository,
        application_repository,
        ReportRenderer(),
        store,
        clock=lambda: FIXED_NOW,
    )

    with pytest.raises(StoreError):
        await job.execute(1)

    assert store.attempts == 1


class _RecordingLogger:
    def __init__(self):
        self.events = []

    def info(self, event, **fields):
        self.events.append((event, fields))

    def debug(self, event, **fields):
        self.events.append((event, fields))


@pytest.mark.asyncio
async def test_completion_is_logged_instead_of_emailed(report_job, monkeypatch):
    recorder = _RecordingLogger()
    monkeypatch.setattr("app.jobs.weekly_report_job.logger", recorder)

    await report_job.execute(1)

    email_events = [fields for event, fields in recorder.events if "email" in event.lower()]
    assert email_events == [
        {
            "recruiter_id": 1,
            "recipient": "user1@example.com",
            "report_path": EXPECTED_PATH,
            "application_count": 0,
        }
    ]


@pytest.mark.asyncio
async def test_returned_artifact_matches_what_the_locator_sees(report_job, artifact_store):
    from app.services.reports.locator import ReportLocator

    artifact = await report_job.execute(1)
    located = await ReportLocator(artifact_store).latest_for(1)

    assert artifact.last_modified == await artifact_store.last_modified(EXPECTED_PATH)
    assert located.last_modified == artifact.last_modified
