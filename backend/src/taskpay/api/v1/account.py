"""Account API v1 endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from taskpay.accounts.models import UserAccount
from taskpay.accounts.service import account_service
from taskpay.api.deps import require_auth

router = APIRouter(prefix="/account", tags=["account"])


# ==================== MODELS ====================


class AccountResponse(BaseModel):
    id: int
    username: str
    email: str
    full_name: str
    phone: str
    payment_number: str
    referral_code: str | None
    balance: int
    bonus: int
    activation_status: str
    activation_fee: int


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, max_length=120)
    phone: str | None = Field(default=None, max_length=40)
    payment_number: str | None = Field(default=None, max_length=40)


class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=100)


# ==================== ENDPOINTS ====================


@router.get("", response_model=AccountResponse)
async def get_account(user: UserAccount = Depends(require_auth)):
    """Profile, wallets and activation status."""
    return AccountResponse(**account_service.get_status(user.id))


@router.put("", response_model=AccountResponse)
async def update_account(body: ProfileUpdate, user: UserAccount = Depends(require_auth)):
    status = account_service.update_profile(
        user.id,
        full_name=body.full_name,
        phone=body.phone,
        payment_number=body.payment_number,
    )
    return AccountResponse(**status)


@router.post("/password")
async def change_password(body: PasswordChange, user: UserAccount = Depends(require_auth)):
    account_service.change_password(user.id, body.current_password, body.new_password)
    return {"ok": True}


@router.delete("")
async def delete_account(user: UserAccount = Depends(require_auth)):
    """Delete the account with its tasks, completions and withdrawals."""
    account_service.delete_account(user.id)
    return {"ok": True}
