"""FastAPI dependencies."""

from collections.abc import Awaitable, Callable
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ezhealth.core.exceptions import ForbiddenException, UnauthorizedException
from ezhealth.core.payment_gateway import PaymentGateway
from ezhealth.core.redis_client import CacheManager
from ezhealth.core.security import decode_access_token
from ezhealth.database import get_db
from ezhealth.schemas.auth import Principal, Role
from ezhealth.services.notification_service import NotificationService

# Security
security = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Principal:
    """
    Decode the bearer token into the caller's principal.

    Args:
        credentials: Bearer token credentials

    Returns:
        Principal with id and role

    Raises:
        UnauthorizedException: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise UnauthorizedException("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedException("Could not validate credentials")

    subject = payload.get("sub")
    role = payload.get("role")
    if not isinstance(subject, str) or not isinstance(role, str):
        raise UnauthorizedException("Could not validate credentials")

    try:
        return Principal(id=UUID(subject), role=Role(role))
    except ValueError:
        raise UnauthorizedException("Could not validate credentials") from None


def require_role(*roles: Role) -> Callable[..., Awaitable[Principal]]:
    """Build a dependency that admits only principals with one of ``roles``."""
    allowed = frozenset(roles)

    async def checker(
        principal: Annotated[Principal, Depends(get_current_principal)],
    ) -> Principal:
        if principal.role not in allowed:
            names = " or ".join(sorted(role.value for role in allowed))
            raise ForbiddenException(f"{names} access required")
        return principal

    return checker


def get_payment_gateway(request: Request) -> PaymentGateway:
    """Gateway client opened by the application lifespan."""
    return request.app.state.payment_gateway


def get_notification_service(request: Request) -> NotificationService:
    """E-mail notifier created by the application lifespan."""
    return request.app.state.notification_service


def get_cache_manager(request: Request) -> CacheManager | None:
    """Cache manager, or None when Redis is not configured for this process."""
    redis_client = getattr(request.app.state, "redis", None)
    if redis_client is None:
        return None
    return CacheManager(redis_client)


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
PatientPrincipal = Annotated[Principal, Depends(require_role(Role.PATIENT))]
DoctorPrincipal = Annotated[Principal, Depends(require_role(Role.DOCTOR))]
AdminPrincipal = Annotated[Principal, Depends(require_role(Role.ADMIN))]
PaymentGatewayDep = Annotated[PaymentGateway, Depends(get_payment_gateway)]
NotifierDep = Annotated[NotificationService, Depends(get_notification_service)]
CacheManagerDep = Annotated[CacheManager | None, Depends(get_cache_manager)]
