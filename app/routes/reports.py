"""
Reports API Router - weekly digests and application exports.

Provides endpoints for:
- Triggering the weekly report fan-out
- Downloading the caller's latest weekly report
- Exporting all of the caller's applications as CSV

All endpoints require a recruiter or admin token and operate on the caller's
own data only.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from fastapi.responses import StreamingResponse

from app.container import ReportingContainer
from app.infrastructure.observability.logging import get_logger
from app.models.domain.recruitment_domain import User
from app.routes.dependencies import get_reporting_container, require_recruiter

logger = get_logger(__name__)

router = APIRouter(tags=["Reports"])

CSV_MEDIA_TYPE = "text/csv"
EXPORT_FILENAME = "applications.csv"


def _attachment_headers(filename: str, size: int | None = None) -> dict[str, str]:
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    if size is not None:
        headers["Content-Length"] = str(size)
    return headers


@router.post(
    "/reports/weekly/dispatch",
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue weekly reports for every recruiter",
)
async def trigger_weekly_dispatch(
    user: User = Depends(require_recruiter),
    container: ReportingContainer = Depends(get_reporting_container),
):
    """
    Enqueue one weekly report job per recruiter and admin.

    Returns as soon as the tasks are queued; reports are produced by the
    report workers.
    """
    queued = await container.dispatcher.run_weekly_dispatch()

    logger.info("Weekly dispatch triggered via API", triggered_by=user.id, queued_jobs=queued)

    return {
        "status": "queued",
        "queued_jobs": queued,
        "scheduled_at": datetime.now(UTC).isoformat(),
    }


@router.get(
    "/export/weekly-report/latest",
    summary="Download my latest weekly report",
    responses={404: {"description": "No weekly reports found"}},
)
async def download_latest_weekly_report(
    user: User = Depends(require_recruiter),
    container: ReportingContainer = Depends(get_reporting_container),
):
    download = await container.locator.open_latest_for(user.id)
    if download is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No weekly reports found",
        )

    logger.info("Weekly report downloaded", recruiter_id=user.id, path=download.path)

    return StreamingResponse(
        download.iter_chunks(),
        media_type=CSV_MEDIA_TYPE,
        headers=_attachment_headers(download.filename, download.size_bytes),
    )


@router.get(
    "/export/applications/csv",
    summary="Export all my applications as CSV",
)
async def export_applications_csv(
    user: User = Depends(require_recruiter),
    container: ReportingContainer = Depends(get_reporting_container),
):
    """On-demand export of every application on the caller's job offers, newest first."""
    records = await container.applications.fetch_all(user.id)
    content = container.renderer.render_export(records)

    logger.info("Applications exported", recruiter_id=user.id, application_count=len(records))

    return Response(
        content=content,
        media_type=CSV_MEDIA_TYPE,
        headers=_attachment_headers(EXPORT_FILENAME),
    )
