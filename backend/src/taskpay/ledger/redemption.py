"""Bonus redemption ledger.

Referral bonus converts into spendable balance only in fixed chunks once
a threshold is reached. The threshold check and both wallet deltas are a
single conditional UPDATE, so two concurrent redeems cannot both pass the
check and the bonus can never go negative.
"""

from dataclasses import dataclass

from sqlalchemy import select, update

from taskpay.accounts.models import UserAccount
from taskpay.errors import ThresholdNotMet, UserNotFound
from taskpay.logging_config import get_logger
from taskpay.platform_settings import PlatformSettings, platform_settings
from taskpay.referral.models import BonusRedemption
from taskpay.storage.db import Database, db

logger = get_logger(__name__)


@dataclass
class RedemptionResult:
    redeemed_amount: int
    balance: int
    bonus: int


class RedemptionLedger:
    """Moves bonus into balance in fixed-size transfers."""

    def __init__(
        self,
        database: Database | None = None,
        settings_store: PlatformSettings | None = None,
    ):
        self.db = database or db
        self.settings = settings_store or platform_settings

    def redeem(self, user_id: int) -> RedemptionResult:
        """Redeem one chunk of bonus.

        Args:
            user_id: User ID

        Returns:
            Amount moved and the resulting wallets

        Raises:
            UserNotFound: Unknown user
            ThresholdNotMet: Bonus below the threshold (or below the transfer amount)
        """
        with self.db.session() as session:
            threshold = self.settings.get_int("referral_redeem_threshold_ksh", session=session)
            transfer = self.settings.get_int("referral_redeem_transfer_ksh", session=session)

            moved = session.execute(
                update(UserAccount)
                .where(
                    UserAccount.id == user_id,
                    UserAccount.bonus >= threshold,
                    UserAccount.bonus >= transfer,
                )
                .values(
                    bonus=UserAccount.bonus - transfer,
                    balance=UserAccount.balance + transfer,
                )
                .execution_options(synchronize_session=False)
            )

            if moved.rowcount != 1:
                available = session.scalar(select(UserAccount.bonus).where(UserAccount.id == user_id))
                if available is None:
                    raise UserNotFound()
                logger.info(
                    "bonus_redeem_rejected",
                    user_id=user_id,
                    bonus=available,
                    threshold=threshold,
                )
                raise ThresholdNotMet(required=max(threshold, transfer), available=available)

            session.add(BonusRedemption(user_id=user_id, amount=transfer))

            balance, bonus = session.execute(
                select(UserAccount.balance, UserAccount.bonus).where(UserAccount.id == user_id)
            ).one()

        logger.info(
            "bonus_redeemed",
            user_id=user_id,
            amount=transfer,
            new_balance=balance,
            new_bonus=bonus,
        )
        return RedemptionResult(redeemed_amount=transfer, balance=balance, bonus=bonus)


# Singleton instance
redemption_ledger = RedemptionLedger()
