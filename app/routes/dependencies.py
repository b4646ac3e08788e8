"""
Shared FastAPI dependencies for the report routes.
"""

from fastapi import Depends, HTTPException, Request, status

from app.auth.verify import auth_dependency
from app.container import ReportingContainer
from app.infrastructure.observability.logging import get_logger
from app.models.domain.recruitment_domain import User
from app.services.reports.errors import NotARecruiterError

logger = get_logger(__name__)


def get_reporting_container(request: Request) -> ReportingContainer:
    container = getattr(request.app.state, "reporting", None)
    if container is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Reporting services are not initialized",
        )
    return container


def _user_id_from_claims(claims: dict) -> int:
    try:
        return int(claims.get("sub"))
    except (TypeError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User ID not found in claims",
        ) from e


async def require_recruiter(
    claims: dict = Depends(auth_dependency),
    container: ReportingContainer = Depends(get_reporting_container),
) -> User:
    """
    Resolve the caller and insist on the recruiter or admin role.

    Raises NotARecruiterError, which the app maps to 403 (never 404).
    """
    user_id = _user_id_from_claims(claims)
    user = await container.users.get_user(user_id)

    if user is None or not user.is_recruiter:
        logger.warning("Report access denied", user_id=user_id, found=user is not None)
        raise NotARecruiterError(user_id)

    return user
