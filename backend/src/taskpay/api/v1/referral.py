"""Referral API v1 endpoints."""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from taskpay.accounts.models import UserAccount
from taskpay.api.deps import require_auth
from taskpay.api.rate_limit import limiter
from taskpay.errors import UserNotFound
from taskpay.ledger.redemption import redemption_ledger
from taskpay.referral.service import referral_service

router = APIRouter(prefix="/referral", tags=["referral"])


# ==================== MODELS ====================


class ReferralStatsResponse(BaseModel):
    referral_code: str | None
    referrals_count: int
    bonus: int
    redeemable: int
    redeem_threshold: int
    balance: int


class RedeemResponse(BaseModel):
    ok: bool = True
    redeemed_amount: int
    balance: int
    bonus: int


# ==================== ENDPOINTS ====================


@router.get("/stats", response_model=ReferralStatsResponse)
async def referral_stats(user: UserAccount = Depends(require_auth)):
    stats = referral_service.get_referral_stats(user.id)
    if stats is None:
        raise UserNotFound()
    return ReferralStatsResponse(**stats)


@router.get("/list")
async def referral_list(user: UserAccount = Depends(require_auth)):
    return {"referrals": referral_service.list_referrals(user.id)}


@router.post("/redeem", response_model=RedeemResponse)
@limiter.limit("10/minute")
async def redeem_bonus(request: Request, user: UserAccount = Depends(require_auth)):
    """Move one fixed transfer from the bonus wallet into the balance."""
    result = redemption_ledger.redeem(user.id)
    return RedeemResponse(
        redeemed_amount=result.redeemed_amount,
        balance=result.balance,
        bonus=result.bonus,
    )
