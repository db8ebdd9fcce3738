"""Withdrawal API v1 endpoints."""

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from taskpay.accounts.models import UserAccount
from taskpay.api.deps import require_auth
from taskpay.api.rate_limit import limiter
from taskpay.withdrawals.service import withdrawal_service

router = APIRouter(prefix="/withdrawals", tags=["withdrawals"])


# ==================== MODELS ====================


class WithdrawalRequest(BaseModel):
    amount: int = Field(..., gt=0)
    phone_number: str = Field(..., min_length=5, max_length=40)
    method: str = Field(default="mpesa", min_length=2, max_length=20)


# ==================== ENDPOINTS ====================


@router.get("")
async def list_withdrawals(user: UserAccount = Depends(require_auth)):
    return {"withdrawals": withdrawal_service.list_withdrawals(user.id)}


@router.post("", status_code=status.HTTP_201_CREATED)
@limiter.limit("5/minute")
async def request_withdrawal(
    request: Request,
    body: WithdrawalRequest,
    user: UserAccount = Depends(require_auth),
):
    """Debit the balance and queue a payout for review."""
    return withdrawal_service.request_withdrawal(
        user.id,
        amount=body.amount,
        phone_number=body.phone_number,
        method=body.method,
    )
