from types import SimpleNamespace

import jwt
import pytest

from app.config import settings
from app.jobs.task_queue import InMemoryTaskQueue
from app.jobs.weekly_dispatch_job import WeeklyReportDispatcher
from app.jobs.weekly_report_job import WeeklyReportJob
from app.models.domain.recruitment_domain import UserRole
from app.services.reports.locator import ReportLocator
from app.services.reports.renderer import ReportRenderer
from app.services.storage.artifact_store import LocalArtifactStore
from tests.fakes import (
    FIXED_NOW,
    FakeApplicationRepository,
    FakePool,
    FakeUserRepository,
    make_user,
)


@pytest.fixture
def fake_pool():
    return FakePool()


@pytest.fixture
def user_repository():
    return FakeUserRepository(
        [
            make_user(1, UserRole.RECRUITER),
            make_user(2, UserRole.ADMIN),
            make_user(3, UserRole.CANDIDATE),
            make_user(11, UserRole.RECRUITER),
        ]
    )


@pytest.fixture
def application_repository():
    return FakeApplicationRepository()


@pytest.fixture
def artifact_store(tmp_path):
    return LocalArtifactStore(tmp_path / "storage")


@pytest.fixture
def task_queue():
    return InMemoryTaskQueue()


@pytest.fixture
def clock():
    state = {"now": FIXED_NOW}

    def _now():
        return state["now"]

    _now.state = state
    return _now


@pytest.fixture
def report_job(user_repository, application_repository, artifact_store, clock):
    return WeeklyReportJob(
        user_repository,
        application_repository,
        ReportRenderer("UTC"),
        artifact_store,
        window_days=7,
        timezone="UTC",
        clock=clock,
    )


TEST_JWT_SECRET = "test-secret-key-for-reports"


@pytest.fixture
def jwt_secret(monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET", TEST_JWT_SECRET)
    monkeypatch.setattr(settings, "JWT_ALGORITHM", "HS256")
    return TEST_JWT_SECRET


@pytest.fixture
def auth_headers(jwt_secret):
    """Build a Bearer header for the given user id."""

    def _headers(user_id) -> dict[str, str]:
        token = jwt.encode({"sub": str(user_id)}, jwt_secret, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def reporting_container(
    fake_pool, user_repository, application_repository, artifact_store, task_queue, report_job
):
    return SimpleNamespace(
        db=fake_pool,
        users=user_repository,
        applications=application_repository,
        renderer=ReportRenderer("UTC"),
        store=artifact_store,
        queue=task_queue,
        report_job=report_job,
        dispatcher=WeeklyReportDispatcher(user_repository, task_queue),
        locator=ReportLocator(artifact_store),
    )


@pytest.fixture
def client(reporting_container):
    """TestClient without lifespan, wired to the in-memory container."""
    from fastapi.testclient import TestClient

    from app.main import app

    app.state.reporting = reporting_container
    yield TestClient(app)
    del app.state.reporting
