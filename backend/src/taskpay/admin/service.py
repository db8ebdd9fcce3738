"""Admin console operations.

Overrides here bypass the allocation and redemption rules on purpose;
every change is written to the audit trail in the same transaction.
"""

import json
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from taskpay.accounts.models import ActivationFee, ActivationStatus, UserAccount
from taskpay.admin.models import AdminAudit
from taskpay.errors import InvalidSetting, UserNotFound, WithdrawalNotFound
from taskpay.logging_config import get_logger
from taskpay.platform_settings import PlatformSettings, platform_settings
from taskpay.storage.db import Database, db
from taskpay.storage.models import utcnow
from taskpay.tasks.daykey import day_key
from taskpay.tasks.models import CompletionRecord
from taskpay.withdrawals.models import Withdrawal, WithdrawalStatus

logger = get_logger(__name__)


def _user_row(user: UserAccount) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "balance": user.balance,
        "bonus": user.bonus,
        "referral_code": user.referral_code,
        "is_admin": bool(user.is_admin),
        "created_at": user.created_at,
    }


class AdminService:
    """Privileged user, withdrawal and settings management."""

    def __init__(
        self,
        database: Database | None = None,
        settings_store: PlatformSettings | None = None,
    ):
        self.db = database or db
        self.settings = settings_store or platform_settings

    def _audit(
        self,
        session: Session,
        admin_id: int,
        action: str,
        entity: str,
        entity_id: Any = None,
        meta: dict[str, Any] | None = None,
    ) -> None:
        session.add(AdminAudit(
            admin_id=admin_id,
            action=action,
            entity=entity,
            entity_id=str(entity_id) if entity_id is not None else None,
            meta_json=json.dumps(meta) if meta else None,
        ))
        logger.info("admin_action", admin_id=admin_id, action=action, entity=entity, entity_id=entity_id)

    def _get_user(self, session: Session, user_id: int) -> UserAccount:
        user = session.get(UserAccount, user_id)
        if not user:
            raise UserNotFound()
        return user

    # ==================== USER OVERRIDES ====================

    def set_balance(self, admin_id: int, user_id: int, balance: int) -> dict[str, Any]:
        """Overwrite a user's spendable balance."""
        if balance < 0:
            raise ValueError("Balance must be non-negative")
        with self.db.session() as session:
            user = self._get_user(session, user_id)
            user.balance = balance
            self._audit(session, admin_id, "set_balance", "user", user_id, {"balance": balance})
            return _user_row(user)

    def set_bonus(self, admin_id: int, user_id: int, bonus: int) -> dict[str, Any]:
        """Overwrite a user's bonus wallet."""
        if bonus < 0:
            raise ValueError("Bonus must be non-negative")
        with self.db.session() as session:
            user = self._get_user(session, user_id)
            user.bonus = bonus
            self._audit(session, admin_id, "set_bonus", "user", user_id, {"bonus": bonus})
            return _user_row(user)

    def set_activation(self, admin_id: int, user_id: int, status: str) -> dict[str, Any]:
        """Mark a user's activation fee paid or unpaid."""
        if status not in ActivationStatus.ALL:
            raise ValueError(f"Invalid activation status: {status}")

        with self.db.session() as session:
            self._get_user(session, user_id)
            activation = session.get(ActivationFee, user_id)
            if activation is None:
                activation = ActivationFee(
                    user_id=user_id,
                    fee=self.settings.get_int("activation_fee_ksh", session=session),
                )
                session.add(activation)

            if status == ActivationStatus.PAID:
                activation.paid = activation.fee
                activation.status = ActivationStatus.PAID
                activation.paid_at = utcnow()
            else:
                activation.paid = 0
                activation.status = ActivationStatus.UNPAID
                activation.paid_at = None

            self._audit(session, admin_id, "set_activation", "user", user_id, {"status": status})
            return {
                "user_id": user_id,
                "fee": activation.fee,
                "paid": activation.paid,
                "status": activation.status,
                "paid_at": activation.paid_at,
            }

    def list_users(self, query: str = "", limit: int = 50) -> list[dict[str, Any]]:
        limit = min(200, max(10, limit))
        with self.db.session() as session:
            stmt = select(UserAccount).order_by(UserAccount.id.desc()).limit(limit)
            if query.strip():
                pattern = f"%{query.strip()}%"
                stmt = stmt.where(or_(
                    UserAccount.username.ilike(pattern),
                    UserAccount.email.ilike(pattern),
                ))
            return [_user_row(user) for user in session.scalars(stmt)]

    def get_user_detail(self, user_id: int) -> dict[str, Any]:
        """User row plus activation, recent withdrawals and completion totals."""
        with self.db.session() as session:
            user = self._get_user(session, user_id)
            activation = session.get(ActivationFee, user_id)
            withdrawals = session.scalars(
                select(Withdrawal)
                .where(Withdrawal.user_id == user_id)
                .order_by(Withdrawal.id.desc())
                .limit(15)
            ).all()
            count, total = session.execute(
                select(func.count(CompletionRecord.id), func.coalesce(func.sum(CompletionRecord.reward), 0))
                .where(CompletionRecord.user_id == user_id)
            ).one()

            return {
                "user": {
                    **_user_row(user),
                    "full_name": user.full_name,
                    "phone": user.phone,
                    "payment_number": user.payment_number,
                    "referred_by_id": user.referred_by_id,
                },
                "activation": {
                    "fee": activation.fee,
                    "paid": activation.paid,
                    "status": activation.status,
                    "paid_at": activation.paid_at,
                } if activation else None,
                "withdrawals": [
                    {"id": w.id, "amount": w.amount, "status": w.status, "created_at": w.created_at}
                    for w in withdrawals
                ],
                "completions": {"count": count, "total_reward": total},
            }

    # ==================== WITHDRAWALS ====================

    def list_withdrawals(self, status: str = "", limit: int = 50) -> list[dict[str, Any]]:
        limit = min(200, max(10, limit))
        with self.db.session() as session:
            stmt = (
                select(Withdrawal, UserAccount.username)
                .join(UserAccount, UserAccount.id == Withdrawal.user_id)
                .order_by(Withdrawal.id.desc())
                .limit(limit)
            )
            if status:
                stmt = stmt.where(Withdrawal.status == status)
            return [
                {
                    "id": w.id,
                    "user_id": w.user_id,
                    "username": username,
                    "amount": w.amount,
                    "phone_number": w.phone_number,
                    "method": w.method,
                    "status": w.status,
                    "created_at": w.created_at,
                }
                for w, username in session.execute(stmt).all()
            ]

    def set_withdrawal_status(self, admin_id: int, withdrawal_id: int, status: str) -> dict[str, Any]:
        if status not in WithdrawalStatus.ALL:
            raise ValueError(f"Invalid withdrawal status: {status}")
        with self.db.session() as session:
            withdrawal = session.get(Withdrawal, withdrawal_id)
            if not withdrawal:
                raise WithdrawalNotFound()
            withdrawal.status = status
            self._audit(session, admin_id, "set_status", "withdrawal", withdrawal_id, {"status": status})
            return {"id": withdrawal.id, "user_id": withdrawal.user_id, "amount": withdrawal.amount, "status": status}

    # ==================== SETTINGS & AUDIT ====================

    def update_settings(self, admin_id: int, values: dict[str, int]) -> dict[str, int]:
        if not values:
            raise InvalidSetting("No settings given")
        with self.db.session() as session:
            self.settings.update(values, session=session)
            self._audit(session, admin_id, "update", "app_settings", None, values)
        return self.settings.all()

    def list_audit(self, limit: int = 50, offset: int = 0) -> list[dict[str, Any]]:
        limit = min(200, max(1, limit))
        with self.db.session() as session:
            rows = session.execute(
                select(AdminAudit, UserAccount.username)
                .outerjoin(UserAccount, UserAccount.id == AdminAudit.admin_id)
                .order_by(AdminAudit.id.desc())
                .offset(offset)
                .limit(limit)
            ).all()
            return [
                {
                    "id": entry.id,
                    "admin_id": entry.admin_id,
                    "admin_username": username,
                    "action": entry.action,
                    "entity": entry.entity,
                    "entity_id": entry.entity_id,
                    "meta": entry.meta,
                    "created_at": entry.created_at,
                }
                for entry, username in rows
            ]

    def dashboard_stats(self) -> dict[str, Any]:
        with self.db.session() as session:
            users, total_balance, total_bonus = session.execute(
                select(
                    func.count(UserAccount.id),
                    func.coalesce(func.sum(UserAccount.balance), 0),
                    func.coalesce(func.sum(UserAccount.bonus), 0),
                )
            ).one()
            pending_count, pending_amount = session.execute(
                select(func.count(Withdrawal.id), func.coalesce(func.sum(Withdrawal.amount), 0))
                .where(Withdrawal.status == WithdrawalStatus.PENDING)
            ).one()
            completions_today = session.scalar(
                select(func.count(CompletionRecord.id)).where(CompletionRecord.day_key == day_key())
            ) or 0
            activated = session.scalar(
                select(func.count(ActivationFee.user_id)).where(ActivationFee.status == ActivationStatus.PAID)
            ) or 0

            return {
                "users": users,
                "activated_users": activated,
                "total_balance": total_balance,
                "total_bonus": total_bonus,
                "pending_withdrawals": pending_count,
                "pending_withdrawal_amount": pending_amount,
                "completions_today": completions_today,
            }

    def grant_admin(self, email: str) -> UserAccount:
        """Give an existing account admin rights (CLI bootstrap)."""
        with self.db.session() as session:
            user = session.scalar(select(UserAccount).where(UserAccount.email == email.strip().lower()))
            if not user:
                raise UserNotFound()
            user.is_admin = True
        logger.info("admin_granted", user_id=user.id)
        return user


# Singleton instance
admin_service = AdminService()
