"""
Weekly Dispatch Job - fans out one report task per recruiter.

The dispatch enumerates recruiters and admins once, then enqueues a
ReportTask for each. It never waits for the reports themselves and does not
check for tasks already in flight, so two dispatches in a row queue two
tasks per recruiter (same-day reports overwrite each other, so the end state
is still one artifact per recruiter per day).

Schedule:
- `start_weekly_report_scheduler` sleeps until the configured weekday/hour
  (default Monday 08:00 REPORT_TIMEZONE) and dispatches, forever.
- `POST /reports/weekly/dispatch` and the `weekly_dispatch` worker command
  trigger a single dispatch on demand.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from app.config import settings
from app.infrastructure.observability.logging import get_logger
from app.jobs.task_queue import ReportTask, TaskQueue
from app.jobs.weekly_report_job import Clock, utc_now
from app.repositories.user_repository import UserRepository

if TYPE_CHECKING:
    from app.container import ReportingContainer

logger = get_logger(__name__)


class WeeklyReportDispatcher:
    def __init__(self, users: UserRepository, queue: TaskQueue):
        self.users = users
        self.queue = queue

    async def run_weekly_dispatch(self) -> int:
        """
        Enqueue one report task per recruiter/admin and return the count.

        If the directory query fails nothing is enqueued. An enqueue failure
        part-way through propagates; tasks already queued stay queued.
        """
        recruiters = await self.users.list_recruiters()
        logger.info("Starting weekly report dispatch", recruiter_count=len(recruiters))

        enqueued = 0
        for recruiter in recruiters:
            await self.queue.enqueue(ReportTask(recruiter_id=recruiter.id))
            enqueued += 1
            logger.debug(
                "Report task enqueued",
                recruiter_id=recruiter.id,
                recipient=recruiter.email,
            )

        logger.info("Weekly report dispatch completed", enqueued=enqueued)
        return enqueued


def next_weekly_run(now: datetime, weekday: int, hour: int) -> datetime:
    """
    Next occurrence of `weekday` at `hour`:00 strictly after `now`.

    `now` must be timezone aware; the result is in the same timezone.
    """
    candidate = now.replace(hour=hour, minute=0, second=0, microsecond=0)
    candidate += timedelta(days=(weekday - now.weekday()) % 7)
    if candidate <= now:
        candidate += timedelta(days=7)
    return candidate


# ==========================================================================
# SCHEDULER
# ==========================================================================


async def run_dispatch_loop(
    dispatcher: WeeklyReportDispatcher,
    schedule: dict,
    *,
    clock: Clock = utc_now,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """
    Sleep until each scheduled slot and dispatch. Runs until cancelled.

    Slots are picked on the local wall clock of the schedule timezone; the
    delay is measured in UTC so a DST change does not shift it by an hour.
    """
    tz = ZoneInfo(schedule["timezone"])

    logger.info(
        "Weekly report scheduler STARTED",
        weekday=schedule["weekday"],
        hour=schedule["hour"],
        timezone=schedule["timezone"],
    )

    while True:
        try:
            now = clock().astimezone(tz)
            next_run = next_weekly_run(now, schedule["weekday"], schedule["hour"])
            sleep_seconds = (next_run.astimezone(UTC) - now.astimezone(UTC)).total_seconds()

            logger.info(
                "Weekly report dispatch scheduled",
                next_run=next_run.isoformat(),
                sleep_seconds=sleep_seconds,
            )
            await sleep(sleep_seconds)

            count = await dispatcher.run_weekly_dispatch()
            logger.info("Scheduled weekly dispatch completed", enqueued=count)

        except asyncio.CancelledError:
            logger.info("Weekly report scheduler cancelled")
            break
        except Exception as e:
            logger.error("Error in weekly report scheduler, will retry", error=str(e))
            await sleep(schedule["retry_seconds"])


async def start_weekly_report_scheduler(container: "ReportingContainer | None" = None) -> None:
    """Worker entrypoint for the periodic weekly dispatch."""
    from app.container import build_reporting_container

    schedule = settings.get_weekly_schedule_config()
    if not schedule["enabled"]:
        logger.info("Weekly report scheduler DISABLED", environment=settings.environment)
        return

    container = container or build_reporting_container()
    await container.startup()
    try:
        await run_dispatch_loop(container.dispatcher, schedule)
    finally:
        await container.shutdown()


async def run_weekly_dispatch_once(container: "ReportingContainer | None" = None) -> int:
    """Worker entrypoint for a single dispatch (the `reports:weekly` command)."""
    from app.container import build_reporting_container

    container = container or build_reporting_container()
    await container.startup()
    try:
        return await container.dispatcher.run_weekly_dispatch()
    finally:
        await container.shutdown()
