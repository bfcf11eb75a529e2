"""API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from mediahub.core.cache import CacheService
from mediahub.core.clock import MonotonicClock
from mediahub.core.database import get_db
from mediahub.core.security import decode_access_token
from mediahub.models import User, UserStatus
from mediahub.services.activity_service import ActivityTrackingService
from mediahub.services.chart_service import DashboardChartsService

# Security scheme for JWT bearer token
security = HTTPBearer()

ADMIN_ROLE = "ADMIN"


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Get current authenticated user from JWT token.

    Args:
        credentials: HTTP bearer token credentials
        db: Database session

    Returns:
        Current authenticated user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    payload = decode_access_token(credentials.credentials)
    user_id: str | None = payload.get("sub") if payload else None

    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Reject inactive or suspended accounts with 403."""
    if current_user.status != UserStatus.ACTIVE.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is not active",
        )
    return current_user


def get_current_admin_user(
    current_user: Annotated[User, Depends(get_current_active_user)],
) -> User:
    """Restrict admin dashboard data to accounts with the ADMIN role."""
    if current_user.role != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def get_cache(request: Request) -> CacheService:
    """Shared cache built in the application lifespan."""
    return request.app.state.cache


def get_clock(request: Request) -> MonotonicClock:
    return request.app.state.clock


def get_activity_service(
    db: Annotated[Session, Depends(get_db)],
    cache: Annotated[CacheService, Depends(get_cache)],
    clock: Annotated[MonotonicClock, Depends(get_clock)],
) -> ActivityTrackingService:
    return ActivityTrackingService(db, cache=cache, clock=clock)


def get_charts_service(
    db: Annotated[Session, Depends(get_db)],
    cache: Annotated[CacheService, Depends(get_cache)],
    clock: Annotated[MonotonicClock, Depends(get_clock)],
) -> DashboardChartsService:
    return DashboardChartsService(db, cache=cache, clock=clock)
