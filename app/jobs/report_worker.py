"""
Report worker pool.

Pulls ReportTasks off the task queue and runs WeeklyReportJob for each. Every
consumer is independent; a failing job is logged and dropped (fire-and-forget,
no retries), and the consumer moves on to the next task.
"""

import asyncio
import time
from typing import TYPE_CHECKING

from app.infrastructure.observability.logging import get_logger, report_task_context
from app.jobs.task_queue import TaskQueue
from app.jobs.weekly_report_job import WeeklyReportJob
from app.services.reports.errors import TaskQueueError

if TYPE_CHECKING:
    from app.container import ReportingContainer

logger = get_logger(__name__)

QUEUE_ERROR_BACKOFF_SECONDS = 5


class ReportWorkerMetrics:
    """Counters for one worker pool lifetime."""

    def __init__(self):
        self.succeeded = 0
        self.skipped = 0
        self.failed = 0

    def to_dict(self) -> dict:
        return {"succeeded": self.succeeded, "skipped": self.skipped, "failed": self.failed}


class ReportWorkerPool:
    def __init__(
        self,
        queue: TaskQueue,
        job: WeeklyReportJob,
        *,
        concurrency: int = 1,
        poll_seconds: float = 5,
    ):
        self.queue = queue
        self.job = job
        self.concurrency = max(1, concurrency)
        self.poll_seconds = poll_seconds
        self.metrics = ReportWorkerMetrics()

    async def process_next(self, timeout: float | None = None) -> bool:
        """
        Take one task and run it.

        Returns False when no task arrived within the timeout. Job failures
        are recorded and swallowed here so one bad recruiter cannot stop the
        pool; queue transport errors propagate.
        """
        task = await self.queue.dequeue(self.poll_seconds if timeout is None else timeout)
        if task is None:
            return False

        start = time.time()
        try:
            with report_task_context(task.recruiter_id, task.enqueued_at):
                artifact = await self.job.execute(task.recruiter_id)
        except Exception as e:
            self.metrics.failed += 1
            logger.error(
                "Weekly report job failed",
                recruiter_id=task.recruiter_id,
                enqueued_at=task.enqueued_at,
                error=str(e),
                error_type=type(e).__name__,
            )
            return True

        if artifact is None:
            self.metrics.skipped += 1
        else:
            self.metrics.succeeded += 1
            logger.debug(
                "Weekly report job finished",
                recruiter_id=task.recruiter_id,
                duration_ms=round((time.time() - start) * 1000, 2),
            )
        return True

    async def _consume(self, worker_index: int) -> None:
        logger.info("Report consumer started", worker=worker_index)
        while True:
            try:
                await self.process_next()
            except TaskQueueError as e:
                logger.error("Task queue error, backing off", worker=worker_index, error=str(e))
                await asyncio.sleep(QUEUE_ERROR_BACKOFF_SECONDS)

    async def run(self) -> None:
        """Run `concurrency` consumers until cancelled."""
        consumers = [
            asyncio.create_task(self._consume(index)) for index in range(self.concurrency)
        ]
        try:
            await asyncio.gather(*consumers)
        finally:
            for consumer in consumers:
                consumer.cancel()
            await asyncio.gather(*consumers, return_exceptions=True)
            logger.info("Report worker pool stopped", metrics=self.metrics.to_dict())


async def start_report_worker(container: "ReportingContainer | None" = None) -> None:
    """Worker entrypoint: consume report tasks forever."""
    from app.container import build_reporting_container

    container = container or build_reporting_container()
    await container.startup()
    try:
        await container.worker_pool.run()
    finally:
        await container.shutdown()
