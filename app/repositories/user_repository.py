"""
Read-only access to the users table.

Serves both the recruiter directory used by the weekly dispatch and the
identity lookups done by the report job and the HTTP auth dependency.
"""

from typing import Any

from app.db.helpers import fetch_all, fetch_one
from app.db.pool import DatabasePoolManager
from app.infrastructure.observability.logging import get_logger
from app.models.domain.recruitment_domain import RECRUITER_ROLES, User

logger = get_logger(__name__)

_USER_COLUMNS = "id, name, email, phone_number, role"


def _row_to_user(row: dict[str, Any]) -> User:
    return User(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        phone_number=row.get("phone_number"),
        role=row["role"],
    )


class UserRepository:
    """Raw SQL helpers over the users table."""

    def __init__(self, pool: DatabasePoolManager):
        self.pool = pool

    async def get_user(self, user_id: int) -> User | None:
        async with self.pool.connection() as conn:
            row = await fetch_one(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s",
                (user_id,),
                connection=conn,
            )
        return _row_to_user(row) if row else None

    async def list_recruiters(self) -> list[User]:
        """Every user allowed to own job offers (role recruiter or admin)."""
        async with self.pool.connection() as conn:
            rows = await fetch_all(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users
                WHERE role = ANY(%s)
                ORDER BY id ASC
                """,
                ([role.value for role in sorted(RECRUITER_ROLES)],),
                connection=conn,
            )
        recruiters = [_row_to_user(row) for row in rows]
        logger.debug("Loaded recruiter directory", count=len(recruiters))
        return recruiters
