"""
Repository helpers for application aggregation.

Joins applications with their candidate and job offer for a recruiter. Job
offer status is not filtered, so applications on closed offers still count.
"""

from datetime import datetime
from typing import Any

import psycopg

from app.db.helpers import DatabaseError, fetch_all
from app.db.pool import DatabasePoolManager
from app.infrastructure.observability.logging import get_logger
from app.models.domain.recruitment_domain import ApplicationRecord
from app.services.reports.errors import AggregationError

logger = get_logger(__name__)

_BASE_QUERY = """
    SELECT
        a.id AS application_id,
        u.name AS candidate_name,
        u.email AS candidate_email,
        u.phone_number AS candidate_phone,
        jo.title AS job_title,
        a.status,
        a.created_at
    FROM applications a
    JOIN job_offers jo ON jo.id = a.job_offer_id
    JOIN users u ON u.id = a.user_id
    WHERE jo.recruiter_id = %s
"""


def _row_to_record(row: dict[str, Any]) -> ApplicationRecord:
    return ApplicationRecord(
        candidate_name=row["candidate_name"],
        candidate_email=row["candidate_email"],
        candidate_phone=row.get("candidate_phone"),
        job_title=row["job_title"],
        status=row["status"],
        created_at=row["created_at"],
    )


class ApplicationRepository:
    """Raw SQL helpers for application reporting."""

    def __init__(self, pool: DatabasePoolManager):
        self.pool = pool

    async def fetch(
        self, recruiter_id: int, window_start: datetime, window_end: datetime
    ) -> list[ApplicationRecord]:
        """
        Applications on the recruiter's job offers created inside the window.

        Both window bounds are inclusive. Rows come back in application id
        order, which is stable across runs.
        """
        query = (
            _BASE_QUERY
            + """
              AND a.created_at BETWEEN %s AND %s
            ORDER BY a.id ASC
        """
        )
        rows = await self._run(query, (recruiter_id, window_start, window_end), "fetch_window")
        logger.debug(
            "Aggregated applications for window",
            recruiter_id=recruiter_id,
            window_start=window_start.isoformat(),
            window_end=window_end.isoformat(),
            count=len(rows),
        )
        return [_row_to_record(row) for row in rows]

    async def fetch_all(self, recruiter_id: int) -> list[ApplicationRecord]:
        """Every application for the recruiter, newest first (on-demand export)."""
        query = _BASE_QUERY + "ORDER BY a.created_at DESC, a.id DESC"
        rows = await self._run(query, (recruiter_id,), "fetch_all")
        return [_row_to_record(row) for row in rows]

    async def _run(self, query: str, params: tuple, operation: str) -> list[dict[str, Any]]:
        try:
            async with self.pool.connection() as conn:
                return await fetch_all(query, params, connection=conn)
        except (DatabaseError, psycopg.Error) as e:
            logger.error(
                "Application aggregation failed",
                recruiter_id=params[0],
                operation=operation,
                error=str(e),
            )
            raise AggregationError(
                f"Failed to aggregate applications: {e}", operation=operation
            ) from e
