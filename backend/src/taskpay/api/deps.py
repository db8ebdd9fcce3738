"""Authentication dependencies for FastAPI."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskpay.accounts.models import UserAccount
from taskpay.accounts.service import account_service
from taskpay.logging_config import bind_user, get_logger

logger = get_logger(__name__)

# Security scheme
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> UserAccount | None:
    """Get current authenticated user from a bearer JWT.

    Returns:
        User account or None if not authenticated
    """
    if not credentials:
        return None

    user = account_service.get_user_from_token(credentials.credentials)
    if user:
        request.state.user = user
        bind_user(user.id, bool(user.is_admin))
    return user


def require_auth(user: UserAccount | None = Depends(get_current_user)) -> UserAccount:
    """Require authentication - raises 401 if not authenticated."""
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_admin(user: UserAccount = Depends(require_auth)) -> UserAccount:
    """Require admin privileges - raises 403 for regular users."""
    if not user.is_admin:
        logger.warning("admin_access_denied", user_id=user.id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user
