"""Authentication API v1 endpoints."""

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, EmailStr, Field

from taskpay.accounts.models import UserAccount
from taskpay.accounts.service import account_service
from taskpay.api.deps import require_auth
from taskpay.api.rate_limit import limiter
from taskpay.errors import InvalidCredentials
from taskpay.logging_config import get_logger
from taskpay.settings import settings

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ==================== MODELS ====================


class RegisterRequest(BaseModel):
    """User registration request."""
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    referral_code: str | None = Field(default=None, max_length=20)


class LoginRequest(BaseModel):
    """User login request."""
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    referral_code: str | None
    balance: int
    bonus: int
    is_admin: bool = False


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut


def _token_response(user: UserAccount) -> TokenResponse:
    return TokenResponse(
        access_token=account_service.create_access_token(user),
        expires_in=settings.jwt_expire_hours * 3600,
        user=UserOut(
            id=user.id,
            username=user.username,
            email=user.email,
            referral_code=user.referral_code,
            balance=user.balance,
            bonus=user.bonus,
            is_admin=bool(user.is_admin),
        ),
    )


# ==================== ENDPOINTS ====================


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def register(request: Request, body: RegisterRequest):
    """Register a new account.

    If ``referral_code`` is given, the referrer's bonus wallet is credited once.
    """
    user = account_service.register(
        username=body.username,
        email=body.email,
        password=body.password,
        referral_code=body.referral_code,
    )
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
@limiter.limit("25/minute")
async def login(request: Request, body: LoginRequest):
    """Log in with email and password."""
    user = account_service.authenticate(body.email, body.password)
    if not user:
        logger.info("login_failed", email=body.email)
        raise InvalidCredentials()
    return _token_response(user)


@router.get("/me", response_model=UserOut)
async def me(user: UserAccount = Depends(require_auth)):
    return UserOut(
        id=user.id,
        username=user.username,
        email=user.email,
        referral_code=user.referral_code,
        balance=user.balance,
        bonus=user.bonus,
        is_admin=bool(user.is_admin),
    )
