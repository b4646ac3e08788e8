"""
Report locator: find a recruiter's most recent weekly report.

Read-only. It may race with an in-flight report write for the same recruiter;
the store's atomic put means it returns either the previous artifact or the
new one, never a partial file.
"""

from app.infrastructure.observability.logging import get_logger
from app.models.domain.recruitment_domain import ReportArtifact
from app.services.reports.naming import REPORTS_PREFIX, download_filename, is_weekly_report_for
from app.services.storage.artifact_store import ArtifactDownload, ArtifactStore

logger = get_logger(__name__)


class ReportLocator:
    def __init__(self, store: ArtifactStore):
        self.store = store

    async def latest_for(self, recruiter_id: int) -> ReportArtifact | None:
        """
        Newest weekly report for `recruiter_id`, or None when there is none.

        Candidates are compared by last-modified time; on a tie the first one
        in listing order wins. Store failures propagate as StoreError.
        """
        paths = await self.store.list_by_prefix(REPORTS_PREFIX)
        matching = [path for path in paths if is_weekly_report_for(path, recruiter_id)]

        if not matching:
            logger.info("No weekly reports found", recruiter_id=recruiter_id)
            return None

        latest_path = None
        latest_modified = None
        for path in matching:
            modified = await self.store.last_modified(path)
            if latest_modified is None or modified > latest_modified:
                latest_path, latest_modified = path, modified

        logger.debug(
            "Located latest weekly report",
            recruiter_id=recruiter_id,
            path=latest_path,
            candidates=len(matching),
        )
        return ReportArtifact(
            path=latest_path,
            filename=download_filename(latest_path),
            last_modified=latest_modified,
        )

    async def open_latest_for(self, recruiter_id: int) -> ArtifactDownload | None:
        artifact = await self.latest_for(recruiter_id)
        if artifact is None:
            return None
        return await self.store.download(artifact.path, filename=artifact.filename)
