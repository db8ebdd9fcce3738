"""Withdrawal requests against the spendable balance."""

from typing import Any

import phonenumbers
from phonenumbers import NumberParseException
from sqlalchemy import select, update

from taskpay.accounts.models import ActivationFee, ActivationStatus, UserAccount
from taskpay.errors import (
    ActivationRequired,
    BelowMinimumWithdrawal,
    InsufficientBalance,
    InvalidPhoneNumber,
    UserNotFound,
)
from taskpay.logging_config import get_logger
from taskpay.platform_settings import PlatformSettings, platform_settings
from taskpay.settings import settings
from taskpay.storage.db import Database, db
from taskpay.withdrawals.models import Withdrawal, WithdrawalStatus

logger = get_logger(__name__)


def normalize_phone(phone: str, region: str | None = None) -> str:
    """Normalize a mobile money number to E.164.

    Args:
        phone: Raw phone number (``0712 345 678``, ``+254712345678``)
        region: Default region for numbers without a country code

    Returns:
        E.164 formatted number

    Raises:
        InvalidPhoneNumber: If the number cannot be parsed or is not valid
    """
    region = region or settings.phone_region
    try:
        parsed = phonenumbers.parse(phone, region)
    except NumberParseException as exc:
        raise InvalidPhoneNumber() from exc

    if not phonenumbers.is_valid_number(parsed):
        raise InvalidPhoneNumber()

    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


class WithdrawalService:
    """Creates and lists withdrawal requests."""

    def __init__(
        self,
        database: Database | None = None,
        settings_store: PlatformSettings | None = None,
    ):
        self.db = database or db
        self.settings = settings_store or platform_settings

    def request_withdrawal(
        self,
        user_id: int,
        amount: int,
        phone_number: str,
        method: str,
    ) -> dict[str, Any]:
        """Debit the balance and queue a payout for admin review.

        Args:
            user_id: User ID
            amount: Amount in KSH
            phone_number: Mobile money number
            method: Payout method (e.g. ``mpesa``)

        Returns:
            The withdrawal and the new balance

        Raises:
            ActivationRequired: Activation fee not paid
            BelowMinimumWithdrawal: Amount under the configured minimum
            InvalidPhoneNumber: Number not valid for the region
            InsufficientBalance: Balance does not cover the amount
        """
        with self.db.session() as session:
            user_balance = session.scalar(select(UserAccount.balance).where(UserAccount.id == user_id))
            if user_balance is None:
                raise UserNotFound()

            activation = session.get(ActivationFee, user_id)
            if not activation or activation.status != ActivationStatus.PAID:
                raise ActivationRequired()

            minimum = self.settings.get_int("min_withdraw_ksh", session=session)
            if amount < minimum:
                raise BelowMinimumWithdrawal(minimum)

            phone = normalize_phone(phone_number)

            debited = session.execute(
                update(UserAccount)
                .where(UserAccount.id == user_id, UserAccount.balance >= amount)
                .values(balance=UserAccount.balance - amount)
                .execution_options(synchronize_session=False)
            )
            if debited.rowcount != 1:
                raise InsufficientBalance(required=amount, available=user_balance)

            withdrawal = Withdrawal(
                user_id=user_id,
                amount=amount,
                phone_number=phone,
                method=method.strip().lower(),
                status=WithdrawalStatus.PENDING,
            )
            session.add(withdrawal)
            session.flush()

            balance = session.scalar(select(UserAccount.balance).where(UserAccount.id == user_id))
            result = {"withdrawal": _as_dict(withdrawal), "balance": balance}

        logger.info(
            "withdrawal_requested",
            user_id=user_id,
            withdrawal_id=result["withdrawal"]["id"],
            amount=amount,
            new_balance=balance,
        )
        return result

    def list_withdrawals(self, user_id: int, limit: int = 50) -> list[dict[str, Any]]:
        with self.db.session() as session:
            rows = session.scalars(
                select(Withdrawal)
                .where(Withdrawal.user_id == user_id)
                .order_by(Withdrawal.id.desc())
                .limit(limit)
            )
            return [_as_dict(w) for w in rows]


def _as_dict(withdrawal: Withdrawal) -> dict[str, Any]:
    return {
        "id": withdrawal.id,
        "user_id": withdrawal.user_id,
        "amount": withdrawal.amount,
        "phone_number": withdrawal.phone_number,
        "method": withdrawal.method,
        "status": withdrawal.status,
        "created_at": withdrawal.created_at,
    }


# Singleton instance
withdrawal_service = WithdrawalService()
