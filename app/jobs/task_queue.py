"""
Task queue between the weekly dispatch and the report workers.

A task is a small JSON descriptor (just the recruiter id plus when it was
enqueued); nothing in-process is shared between producer and consumer.

Backends:
- RedisTaskQueue: LPUSH / BRPOP on a Redis list, used by the API and the
  worker processes.
- InMemoryTaskQueue: asyncio.Queue, for development and tests where the
  dispatcher and the worker pool share one event loop.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime

import redis.asyncio as redis

from app.infrastructure.observability.logging import get_logger
from app.services.infrastructure.redis_client import RedisClient
from app.services.reports.errors import TaskQueueError

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReportTask:
    recruiter_id: int
    enqueued_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, payload: str) -> "ReportTask":
        try:
            data = json.loads(payload)
            return cls(recruiter_id=int(data["recruiter_id"]), enqueued_at=data["enqueued_at"])
        except (ValueError, KeyError, TypeError) as e:
            raise TaskQueueError(
                f"Malformed report task payload: {payload[:100]!r}",
                operation="decode",
                recoverable=False,
            ) from e


class TaskQueue(ABC):
    @abstractmethod
    async def enqueue(self, task: ReportTask) -> None: ...

    @abstractmethod
    async def dequeue(self, timeout: float) -> ReportTask | None:
        """Next task, or None if nothing arrived within `timeout` seconds."""

    @abstractmethod
    async def size(self) -> int: ...

    async def health_check(self) -> dict:
        return {"healthy": True, "service": type(self).__name__}


class InMemoryTaskQueue(TaskQueue):
    def __init__(self) -> None:
        self.queue: asyncio.Queue[str] = asyncio.Queue()

    async def enqueue(self, task: ReportTask) -> None:
        # Serialize even in memory so both backends carry the same descriptor.
        await self.queue.put(task.to_json())

    async def dequeue(self, timeout: float) -> ReportTask | None:
        try:
            payload = await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except TimeoutError:
            return None
        self.queue.task_done()
        return ReportTask.from_json(payload)

    async def size(self) -> int:
        return self.queue.qsize()


class RedisTaskQueue(TaskQueue):
    def __init__(self, client: RedisClient, queue_name: str):
        self.client = client
        self.queue_name = queue_name

    async def enqueue(self, task: ReportTask) -> None:
        try:
            await self.client.lpush(self.queue_name, task.to_json())
        except (redis.RedisError, RuntimeError) as e:
            logger.error(
                "Failed to enqueue report task",
                queue=self.queue_name,
                recruiter_id=task.recruiter_id,
                error=str(e),
            )
            raise TaskQueueError(f"Enqueue failed: {e}", operation="enqueue") from e

    async def dequeue(self, timeout: float) -> ReportTask | None:
        try:
            payload = await self.client.brpop(self.queue_name, timeout=timeout)
        except (redis.RedisError, RuntimeError) as e:
            raise TaskQueueError(f"Dequeue failed: {e}", operation="dequeue") from e
        if payload is None:
            return None
        return ReportTask.from_json(payload)

    async def size(self) -> int:
        try:
            return await self.client.llen(self.queue_name)
        except (redis.RedisError, RuntimeError) as e:
            raise TaskQueueError(f"Queue length failed: {e}", operation="size") from e

    async def health_check(self) -> dict:
        healthy = await self.client.ping()
        return {"healthy": healthy, "service": "redis_task_queue", "queue": self.queue_name}
