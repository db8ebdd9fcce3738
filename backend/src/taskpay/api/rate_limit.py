"""Rate limiting for the taskpay API.

Authenticated endpoints are limited per account, anonymous endpoints
(register, login) per client address.
"""

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from taskpay.settings import settings


def user_or_address(request: Request) -> str:
    user = getattr(request.state, "user", None)
    if user is not None:
        return f"user:{user.id}"
    return get_remote_address(request)


# Shared limiter instance, only enforced in production
limiter = Limiter(
    key_func=user_or_address,
    default_limits=["200/minute"],
    storage_uri="memory://",
    enabled=settings.env == "production",
)
