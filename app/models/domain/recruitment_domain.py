from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class UserRole(StrEnum):
    CANDIDATE = "candidate"
    RECRUITER = "recruiter"
    ADMIN = "admin"


RECRUITER_ROLES = frozenset({UserRole.RECRUITER, UserRole.ADMIN})


class JobOfferStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ApplicationStatus(StrEnum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class User(BaseModel):
    """Read-only view of a row in the users table."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    role: UserRole
    phone_number: str | None = None

    @property
    def is_recruiter(self) -> bool:
        """Recruiters and admins may own job offers and receive reports."""
        return self.role in RECRUITER_ROLES

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class ApplicationRecord(BaseModel):
    """One application joined with its candidate and job offer."""

    model_config = ConfigDict(frozen=True)

    candidate_name: str
    candidate_email: str
    job_title: str
    status: str
    created_at: datetime
    candidate_phone: str | None = None


class ReportArtifact(BaseModel):
    """A rendered weekly report persisted in the artifact store."""

    path: str
    filename: str
    last_modified: datetime
    size_bytes: int | None = None
