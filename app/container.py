"""
Explicit wiring for the reporting pipeline.

Every collaborator is built once here and handed to the components that need
it; nothing in the pipeline looks up storage, queues or the database through
module globals. The API stores its container on `app.state.reporting`; each
worker process builds its own.
"""

from dataclasses import dataclass, field

from app.config import Settings, settings
from app.db.pool import DatabasePoolManager
from app.infrastructure.observability.logging import get_logger
from app.jobs.report_worker import ReportWorkerPool
from app.jobs.task_queue import InMemoryTaskQueue, RedisTaskQueue, TaskQueue
from app.jobs.weekly_dispatch_job import WeeklyReportDispatcher
from app.jobs.weekly_report_job import WeeklyReportJob
from app.repositories.application_repository import ApplicationRepository
from app.repositories.user_repository import UserRepository
from app.services.infrastructure.redis_client import RedisClient
from app.services.reports.locator import ReportLocator
from app.services.reports.renderer import ReportRenderer
from app.services.storage.artifact_store import ArtifactStore, LocalArtifactStore

logger = get_logger(__name__)


@dataclass
class ReportingContainer:
    db: DatabasePoolManager
    users: UserRepository
    applications: ApplicationRepository
    renderer: ReportRenderer
    store: ArtifactStore
    queue: TaskQueue
    report_job: WeeklyReportJob
    dispatcher: WeeklyReportDispatcher
    locator: ReportLocator
    worker_pool: ReportWorkerPool
    redis: RedisClient | None = None
    _started: list[str] = field(default_factory=list)

    async def startup(self) -> None:
        """Open the database pool and queue transport, cleaning up on failure."""
        try:
            await self.db.initialize()
            self._started.append("database_pool")

            if self.redis is not None:
                await self.redis.initialize()
                self._started.append("redis")

            logger.info("Reporting services initialized", services=list(self._started))
        except Exception as e:
            logger.error(
                "Failed to initialize reporting services",
                error=str(e),
                completed_tasks=list(self._started),
            )
            await self.shutdown()
            raise

    async def shutdown(self) -> None:
        """Close whatever startup opened, in reverse order."""
        shutdown_errors = []

        if "redis" in self._started:
            try:
                await self.redis.close()
            except Exception as e:
                logger.error("Error closing Redis", error=str(e))
                shutdown_errors.append(f"Redis: {e}")

        if "database_pool" in self._started:
            try:
                await self.db.close()
            except Exception as e:
                logger.error("Error closing database pool", error=str(e))
                shutdown_errors.append(f"Database: {e}")

        self._started.clear()

        if shutdown_errors:
            logger.warning("Some services had shutdown errors", errors=shutdown_errors)


def build_task_queue(config: Settings) -> tuple[TaskQueue, RedisClient | None]:
    worker_config = config.get_worker_config()
    backend = worker_config["backend"]

    if backend == "memory":
        logger.warning("Using in-memory task queue; tasks do not leave this process")
        return InMemoryTaskQueue(), None

    if backend == "redis":
        client = RedisClient(config.REDIS_URL)
        return RedisTaskQueue(client, worker_config["queue_name"]), client

    raise ValueError(f"Unknown TASK_QUEUE_BACKEND '{backend}'. Expected 'redis' or 'memory'.")


def build_reporting_container(config: Settings = settings) -> ReportingContainer:
    db = DatabasePoolManager(config.DATABASE_URL)
    users = UserRepository(db)
    applications = ApplicationRepository(db)
    renderer = ReportRenderer(config.REPORT_TIMEZONE)
    store = LocalArtifactStore(config.REPORTS_STORAGE_ROOT)
    queue, redis_client = build_task_queue(config)

    report_job = WeeklyReportJob(
        users,
        applications,
        renderer,
        store,
        window_days=config.REPORT_WINDOW_DAYS,
        timezone=config.REPORT_TIMEZONE,
    )
    worker_config = config.get_worker_config()

    return ReportingContainer(
        db=db,
        users=users,
        applications=applications,
        renderer=renderer,
        store=store,
        queue=queue,
        report_job=report_job,
        dispatcher=WeeklyReportDispatcher(users, queue),
        locator=ReportLocator(store),
        worker_pool=ReportWorkerPool(
            queue,
            report_job,
            concurrency=worker_config["concurrency"],
            poll_seconds=worker_config["poll_seconds"],
        ),
        redis=redis_client,
    )
