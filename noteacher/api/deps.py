"""
FastAPI dependencies for authentication, database sessions and services.
"""

from typing import Annotated, Optional, TypeVar

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from noteacher.config import get_settings
from noteacher.database import get_db
from noteacher.engines.comments.service import CommentService
from noteacher.engines.courses.service import CourseService
from noteacher.engines.progress.service import ProgressService
from noteacher.engines.progress.store import ProgressStore, SqlAlchemyProgressStore
from noteacher.engines.results import ErrorKind, ServiceResult
from noteacher.kernel.identity.jwt import AuthenticatedUser, verify_access_token

T = TypeVar("T")

# Security scheme
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Optional[AuthenticatedUser]:
    """Acting user if a valid provider token was sent, None otherwise."""
    if not credentials:
        return None
    payload = verify_access_token(credentials.credentials)
    if not payload:
        return None
    return AuthenticatedUser(id=payload.sub, email=payload.email, role=payload.role)


async def get_current_user(
    user: Annotated[Optional[AuthenticatedUser], Depends(get_current_user_optional)],
) -> AuthenticatedUser:
    """Acting user or 401."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


CurrentUser = Annotated[AuthenticatedUser, Depends(get_current_user)]
OptionalUser = Annotated[Optional[AuthenticatedUser], Depends(get_current_user_optional)]


async def require_admin(user: CurrentUser) -> AuthenticatedUser:
    """Require the current user to be an admin."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


AdminUser = Annotated[AuthenticatedUser, Depends(require_admin)]


def get_progress_store(db: DbSession) -> ProgressStore:
    return SqlAlchemyProgressStore(db)


def get_progress_service(
    store: Annotated[ProgressStore, Depends(get_progress_store)],
) -> ProgressService:
    settings = get_settings()
    return ProgressService(
        store,
        xp_per_node=settings.xp_per_node,
        minutes_per_node=settings.minutes_per_node,
    )


def get_course_service(db: DbSession) -> CourseService:
    return CourseService(db)


def get_comment_service(db: DbSession) -> CommentService:
    return CommentService(db)


Progress = Annotated[ProgressService, Depends(get_progress_service)]
Courses = Annotated[CourseService, Depends(get_course_service)]
Comments = Annotated[CommentService, Depends(get_comment_service)]

_ERROR_STATUS = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.STORE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorKind.INVALID_CONTENT: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def unwrap(result: ServiceResult[T]) -> T:
    """Return the data of a successful result or raise the matching HTTPException."""
    if result.ok:
        return result.data
    error = result.error
    detail = {"message": error.message, "errors": error.details} if error.details else error.message
    headers = None
    if error.kind == ErrorKind.UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    elif error.kind == ErrorKind.STORE_UNAVAILABLE:
        headers = {"Retry-After": "5"}
    raise HTTPException(status_code=_ERROR_STATUS[error.kind], detail=detail, headers=headers)
