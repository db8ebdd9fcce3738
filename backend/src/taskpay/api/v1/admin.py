"""Admin API v1 endpoints.

All routes require an admin account; every mutation is audited by the
service layer.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from taskpay.accounts.models import UserAccount
from taskpay.admin.service import admin_service
from taskpay.api.deps import require_admin

router = APIRouter(prefix="/admin", tags=["admin"])


# ==================== MODELS ====================


class AmountUpdate(BaseModel):
    amount: int = Field(..., ge=0)


class ActivationUpdate(BaseModel):
    status: Literal["unpaid", "paid"]


class WithdrawalStatusUpdate(BaseModel):
    status: Literal["pending", "paid", "rejected"]


class SettingsUpdate(BaseModel):
    tasks_per_day: int | None = Field(default=None, ge=0)
    referral_bonus_ksh: int | None = Field(default=None, ge=0)
    referral_redeem_threshold_ksh: int | None = Field(default=None, ge=0)
    referral_redeem_transfer_ksh: int | None = Field(default=None, ge=0)
    min_withdraw_ksh: int | None = Field(default=None, ge=0)
    activation_fee_ksh: int | None = Field(default=None, ge=0)


# ==================== ENDPOINTS ====================


@router.get("/dashboard")
async def dashboard(admin: UserAccount = Depends(require_admin)):
    return admin_service.dashboard_stats()


@router.get("/users")
async def list_users(
    q: str = "",
    limit: int = Query(default=50, ge=1, le=200),
    admin: UserAccount = Depends(require_admin),
):
    return {"users": admin_service.list_users(q, limit=limit)}


@router.get("/users/{user_id}")
async def user_detail(user_id: int, admin: UserAccount = Depends(require_admin)):
    return admin_service.get_user_detail(user_id)


@router.put("/users/{user_id}/balance")
async def set_balance(user_id: int, body: AmountUpdate, admin: UserAccount = Depends(require_admin)):
    return admin_service.set_balance(admin.id, user_id, body.amount)


@router.put("/users/{user_id}/bonus")
async def set_bonus(user_id: int, body: AmountUpdate, admin: UserAccount = Depends(require_admin)):
    return admin_service.set_bonus(admin.id, user_id, body.amount)


@router.put("/users/{user_id}/activation")
async def set_activation(
    user_id: int,
    body: ActivationUpdate,
    admin: UserAccount = Depends(require_admin),
):
    return admin_service.set_activation(admin.id, user_id, body.status)


@router.get("/withdrawals")
async def list_withdrawals(
    status: Literal["", "pending", "paid", "rejected"] = "",
    limit: int = Query(default=50, ge=1, le=200),
    admin: UserAccount = Depends(require_admin),
):
    return {"withdrawals": admin_service.list_withdrawals(status, limit=limit)}


@router.put("/withdrawals/{withdrawal_id}")
async def set_withdrawal_status(
    withdrawal_id: int,
    body: WithdrawalStatusUpdate,
    admin: UserAccount = Depends(require_admin),
):
    return admin_service.set_withdrawal_status(admin.id, withdrawal_id, body.status)


@router.get("/settings")
async def get_settings(admin: UserAccount = Depends(require_admin)):
    return {"settings": admin_service.settings.all()}


@router.put("/settings")
async def update_settings(body: SettingsUpdate, admin: UserAccount = Depends(require_admin)):
    values = body.model_dump(exclude_none=True)
    return {"settings": admin_service.update_settings(admin.id, values)}


@router.get("/audit")
async def audit_log(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    admin: UserAccount = Depends(require_admin),
):
    return {"entries": admin_service.list_audit(limit=limit, offset=offset)}
