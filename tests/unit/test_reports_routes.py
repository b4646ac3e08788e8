"""
Tests for the report and export endpoints.
"""

import asyncio
import os
from datetime import UTC, datetime, timedelta

import jwt
import pytest

from app.services.reports.errors import AggregationError
from tests.fakes import FIXED_NOW, make_record

LATEST_URL = "/export/weekly-report/latest"
EXPORT_URL = "/export/applications/csv"
DISPATCH_URL = "/reports/weekly/dispatch"


def _store_report(store, path: str, content: bytes, modified: datetime) -> None:
    target = store.root.joinpath(*path.split("/"))
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)
    stamp = modified.timestamp()
    os.utime(target, (stamp, stamp))


@pytest.mark.parametrize("url", [LATEST_URL, EXPORT_URL])
def test_missing_token_is_401(client, jwt_secret, url):
    response = client.get(url)

    assert response.status_code == 401


def test_invalid_token_is_401(client, jwt_secret):
    token = jwt.encode({"sub": "1"}, "some-other-secret", algorithm="HS256")

    response = client.get(LATEST_URL, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


def test_expired_token_is_401(client, jwt_secret):
    expired = datetime.now(UTC) - timedelta(minutes=5)
    token = jwt.encode({"sub": "1", "exp": expired}, jwt_secret, algorithm="HS256")

    response = client.get(LATEST_URL, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.parametrize("user_id", [3, 999])
@pytest.mark.parametrize("url", [LATEST_URL, EXPORT_URL])
def test_candidate_or_unknown_user_is_403(client, auth_headers, user_id, url):
    response = client.get(url, headers=auth_headers(user_id))

    assert response.status_code == 403
    assert response.json()["detail"].startswith("Unauthorized. Only recruiters")


def test_no_report_is_404(client, auth_headers):
    response = client.get(LATEST_URL, headers=auth_headers(1))

    assert response.status_code == 404
    assert response.json()["detail"] == "No weekly reports found"


def test_latest_report_is_streamed_as_attachment(client, auth_headers, artifact_store):
    _store_report(
        artifact_store,
        "reports/weekly_report_2024-01-01_recruiter_1.csv",
        b"older",
        datetime(2024, 1, 1, 8, tzinfo=UTC),
    )
    _store_report(
        artifact_store,
        "reports/weekly_report_2024-01-08_recruiter_1.csv",
        b"newest report\n",
        datetime(2024, 1, 8, 8, tzinfo=UTC),
    )

    response = client.get(LATEST_URL, headers=auth_headers(1))

    assert response.status_code == 200
    assert response.content == b"newest report\n"
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == (
        'attachment; filename="weekly_report_2024-01-08_recruiter_1.csv"'
    )
    assert response.headers["content-length"] == str(len(b"newest report\n"))


def test_recruiter_never_receives_another_recruiters_report(client, auth_headers, artifact_store):
    _store_report(
        artifact_store,
        "reports/weekly_report_2024-01-08_recruiter_11.csv",
        b"eleven",
        datetime(2024, 1, 8, tzinfo=UTC),
    )

    response = client.get(LATEST_URL, headers=auth_headers(1))

    assert response.status_code == 404


def test_report_written_by_job_is_downloadable(client, auth_headers, report_job):
    asyncio.run(report_job.execute(2))

    response = client.get(LATEST_URL, headers=auth_headers(2))

    assert response.status_code == 200
    assert response.content.startswith(b"Candidate Name,Email,Job Title,Status,Application Date\n")


def test_export_lists_all_applications_newest_first(
    client, auth_headers, application_repository
):
    application_repository.add(
        1, make_record(FIXED_NOW - timedelta(days=30), candidate_name="Old Applicant")
    )
    application_repository.add(
        1,
        make_record(FIXED_NOW, candidate_name="New Applicant", candidate_phone="0600000000"),
    )
    application_repository.add(11, make_record(FIXED_NOW, candidate_name="Someone Else"))

    response = client.get(EXPORT_URL, headers=auth_headers(1))

    assert response.status_code == 200
    assert response.headers["content-disposition"] == 'attachment; filename="applications.csv"'
    lines = response.text.split("\n")
    assert lines[0] == "Candidate Name,Email,Phone,Job Title,Status,Application Date"
    assert lines[1].startswith("New Applicant,jane@x.com,0600000000,")
    assert lines[2].startswith("Old Applicant,jane@x.com,N/A,")
    assert "Someone Else" not in response.text


def test_dispatch_queues_one_task_per_recruiter(client, auth_headers, task_queue):
    response = client.post(DISPATCH_URL, headers=auth_headers(2))

    assert response.status_code == 202
    data = response.json()
    assert data["status"] == "queued"
    assert data["queued_jobs"] == 3
    assert "scheduled_at" in data


def test_dispatch_requires_recruiter(client, auth_headers):
    response = client.post(DISPATCH_URL, headers=auth_headers(3))

    assert response.status_code == 403


def test_aggregation_failure_is_503(client, auth_headers, application_repository):
    async def failing_fetch_all(recruiter_id):
        raise AggregationError("db down", operation="fetch_all")

    application_repository.fetch_all = failing_fetch_all

    response = client.get(EXPORT_URL, headers=auth_headers(1))

    assert response.status_code == 503
