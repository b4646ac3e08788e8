"""
Exception taxonomy for the weekly reporting pipeline.

A missing report is not an error: the locator returns None and the route
answers 404. Everything below is a real failure that propagates to the caller.
"""


class ReportingError(Exception):
    """Base exception for reporting pipeline operations."""

    def __init__(self, message: str, operation: str | None = None, recoverable: bool = True):
        super().__init__(message)
        self.operation = operation
        self.recoverable = recoverable


class NotARecruiterError(ReportingError):
    """The caller or target identity lacks the recruiter/admin role."""

    def __init__(self, user_id: int | None = None):
        super().__init__(
            f"User {user_id} is not a recruiter", operation="authorize", recoverable=False
        )
        self.user_id = user_id


class AggregationError(ReportingError):
    """Application data could not be read from the database."""


class StoreError(ReportingError):
    """Read or write failure against the artifact store."""


class ArtifactNotFoundError(StoreError):
    """A path that was expected to exist is not in the artifact store."""

    def __init__(self, path: str, operation: str | None = None):
        super().__init__(f"Artifact not found: {path}", operation=operation, recoverable=False)
        self.path = path


class TaskQueueError(ReportingError):
    """The task queue transport rejected an enqueue or dequeue."""
