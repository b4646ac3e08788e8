"""
Weekly Report Job - builds one recruiter's application digest.

Runs inside a report worker for a single ReportTask:
1. Resolve the recruiter (unknown users and candidates are skipped silently)
2. Aggregate applications created in the last REPORT_WINDOW_DAYS days
3. Render them to CSV
4. Write reports/weekly_report_<date>_recruiter_<id>.csv (same-day re-runs overwrite)
5. Log the digest email that would be sent (no delivery happens)

Failures in steps 2-4 propagate and fail the job as a unit. Rendering
finishes before the single atomic write, so a failed job leaves no partial
artifact. There are no retries here.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from zoneinfo import ZoneInfo

from app.infrastructure.observability.logging import get_logger
from app.models.domain.recruitment_domain import ReportArtifact
from app.repositories.application_repository import ApplicationRepository
from app.repositories.user_repository import UserRepository
from app.services.reports.naming import download_filename, weekly_report_path
from app.services.reports.renderer import ReportRenderer
from app.services.storage.artifact_store import ArtifactStore

logger = get_logger(__name__)

Clock = Callable[[], datetime]

DEFAULT_WINDOW_DAYS = 7


def utc_now() -> datetime:
    return datetime.now(UTC)


class WeeklyReportJob:
    def __init__(
        self,
        users: UserRepository,
        applications: ApplicationRepository,
        renderer: ReportRenderer,
        store: ArtifactStore,
        *,
        window_days: int = DEFAULT_WINDOW_DAYS,
        timezone: str = "UTC",
        clock: Clock = utc_now,
    ):
        self.users = users
        self.applications = applications
        self.renderer = renderer
        self.store = store
        self.window = timedelta(days=window_days)
        self.timezone = ZoneInfo(timezone)
        self.clock = clock

    async def execute(self, recruiter_id: int) -> ReportArtifact | None:
        """
        Generate the weekly report for `recruiter_id`.

        Returns the written artifact, or None when the id does not belong to
        a recruiter or admin.
        """
        recruiter = await self.users.get_user(recruiter_id)
        if recruiter is None or not recruiter.is_recruiter:
            logger.debug(
                "Skipping weekly report for non-recruiter",
                recruiter_id=recruiter_id,
                found=recruiter is not None,
            )
            return None

        # Window is anchored at execution time, not enqueue time.
        now = self.clock().astimezone(self.timezone)
        window_start = now - self.window

        records = await self.applications.fetch(recruiter_id, window_start, now)
        content = self.renderer.render(records)

        path = weekly_report_path(recruiter_id, now.date())
        await self.store.put(path, content)

        logger.info(
            "Weekly report generated",
            recruiter_id=recruiter_id,
            path=path,
            application_count=len(records),
            window_start=window_start.isoformat(),
            window_end=now.isoformat(),
        )
        self._log_digest_email(recruiter.email, recruiter_id, path, len(records))

        return ReportArtifact(
            path=path,
            filename=download_filename(path),
            last_modified=await self.store.last_modified(path),
            size_bytes=len(content),
        )

    @staticmethod
    def _log_digest_email(email: str, recruiter_id: int, path: str, count: int) -> None:
        # No mail transport is wired; record what would have gone out.
        logger.info(
            "Weekly report email would be sent",
            recruiter_id=recruiter_id,
            recipient=email,
            report_path=path,
            application_count=count,
        )
