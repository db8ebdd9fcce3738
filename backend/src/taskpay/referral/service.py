"""Referral service: codes, signup crediting and referral statistics."""

import re
import secrets
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from taskpay.accounts.models import UserAccount
from taskpay.logging_config import get_logger
from taskpay.platform_settings import PlatformSettings, platform_settings
from taskpay.referral.models import Referral
from taskpay.storage.db import Database, db, insert_ignore

logger = get_logger(__name__)

CODE_ATTEMPTS = 10


def _generate_code(username: str) -> str:
    """Readable referral code: up to 6 letters of the username plus 4 digits.

    Format: JOHNDO4821
    """
    base = re.sub(r"[^A-Za-z0-9]", "", username)[:6].upper() or "USER"
    return f"{base}{secrets.randbelow(9000) + 1000}"


class ReferralService:
    """Service for referral codes and referral bonus crediting."""

    def __init__(
        self,
        database: Database | None = None,
        settings_store: PlatformSettings | None = None,
    ):
        self.db = database or db
        self.settings = settings_store or platform_settings
        self.logger = get_logger(__name__)

    def generate_unique_code(self, session: Session, username: str) -> str:
        """Generate a referral code not yet used by another account.

        Args:
            session: Active session
            username: Username the code is derived from

        Returns:
            Referral code
        """
        code = _generate_code(username)
        attempts = 0
        while attempts < CODE_ATTEMPTS:
            taken = session.scalar(
                select(UserAccount.id).where(UserAccount.referral_code == code)
            )
            if not taken:
                break
            code = _generate_code(username)
            attempts += 1
        return code

    def find_referrer(self, session: Session, code: str | None) -> UserAccount | None:
        """Look up the owner of a referral code.

        Args:
            session: Active session
            code: Referral code as typed by the user

        Returns:
            Referrer account, or None if the code is empty or unknown
        """
        if not code or not code.strip():
            return None
        return session.scalar(
            select(UserAccount).where(UserAccount.referral_code == code.strip().upper())
        )

    def credit_referral(self, session: Session, referrer_id: int, referred_id: int) -> bool:
        """Record a referral and credit the referrer's bonus wallet.

        The unique ``referred_id`` makes this idempotent: a retried signup
        finds the row already present and credits nothing.

        Args:
            session: Session of the enclosing registration transaction
            referrer_id: Referrer user ID
            referred_id: Newly registered user ID

        Returns:
            True if the referrer was credited by this call
        """
        bonus = self.settings.get_int("referral_bonus_ksh", session=session)

        inserted = insert_ignore(
            session,
            Referral,
            {"referrer_id": referrer_id, "referred_id": referred_id, "bonus_amount": bonus},
            ["referred_id"],
        )
        if not inserted:
            self.logger.info("referral_already_credited", referrer_id=referrer_id, referred_id=referred_id)
            return False

        if bonus > 0:
            session.execute(
                update(UserAccount)
                .where(UserAccount.id == referrer_id)
                .values(bonus=UserAccount.bonus + bonus)
                .execution_options(synchronize_session=False)
            )

        self.logger.info(
            "referral_credited",
            referrer_id=referrer_id,
            referred_id=referred_id,
            bonus_credited=bonus,
        )
        return True

    def get_referral_stats(self, user_id: int) -> dict[str, Any] | None:
        """Get referral statistics for a user.

        Args:
            user_id: User ID

        Returns:
            Dict with referral stats, or None if the user does not exist
        """
        with self.db.session() as session:
            user = session.get(UserAccount, user_id)
            if not user:
                return None

            referrals_count = session.scalar(
                select(func.count(Referral.id)).where(Referral.referrer_id == user_id)
            ) or 0
            threshold = self.settings.get_int("referral_redeem_threshold_ksh", session=session)
            transfer = self.settings.get_int("referral_redeem_transfer_ksh", session=session)

            redeemable = transfer if user.bonus >= max(threshold, transfer) else 0

            return {
                "referral_code": user.referral_code,
                "referrals_count": referrals_count,
                "bonus": user.bonus,
                "redeemable": redeemable,
                "redeem_threshold": threshold,
                "balance": user.balance,
            }

    def list_referrals(self, user_id: int, limit: int = 200) -> list[dict[str, Any]]:
        """List users referred by ``user_id``, newest first."""
        with self.db.session() as session:
            rows = session.execute(
                select(Referral, UserAccount.username)
                .join(UserAccount, UserAccount.id == Referral.referred_id)
                .where(Referral.referrer_id == user_id)
                .order_by(Referral.id.desc())
                .limit(limit)
            ).all()

            return [
                {
                    "id": referral.id,
                    "referred_username": username,
                    "bonus_amount": referral.bonus_amount,
                    "created_at": referral.created_at,
                }
                for referral, username in rows
            ]


# Singleton instance
referral_service = ReferralService()
