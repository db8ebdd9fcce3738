"""Account models: users and their activation fee."""

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from taskpay.storage.db import Base
from taskpay.storage.models import utcnow


class ActivationStatus:
    """Activation fee states."""
    UNPAID = "unpaid"
    PAID = "paid"

    ALL = (UNPAID, PAID)


class UserAccount(Base):
    """Platform user.

    Carries two integer KSH counters: ``balance`` (spendable, credited by
    task rewards and bonus redemptions) and ``bonus`` (referral-earned,
    redeemable in fixed chunks only). Both are mutated by relative deltas.
    """
    __tablename__ = "user_accounts"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_user_accounts_balance_non_negative"),
        CheckConstraint("bonus >= 0", name="ck_user_accounts_bonus_non_negative"),
    )

    id = Column(Integer, primary_key=True)

    # Identity
    username = Column(String(50), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    # Referrals
    referral_code = Column(String(20), unique=True, nullable=True, index=True)
    referred_by_id = Column(Integer, ForeignKey("user_accounts.id", ondelete="SET NULL"), nullable=True)

    # Wallets (KSH)
    balance = Column(Integer, nullable=False, default=0)
    bonus = Column(Integer, nullable=False, default=0)

    # Profile
    full_name = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    payment_number = Column(String(32), nullable=True)

    # Status
    is_active = Column(Boolean, default=True)
    is_admin = Column(Boolean, default=False)

    # Timestamps
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    last_login_at = Column(DateTime, nullable=True)

    # Relationships
    activation = relationship(
        "ActivationFee", back_populates="user", uselist=False, passive_deletes=True
    )

    def __repr__(self):
        return f"<UserAccount(id={self.id}, username={self.username}, balance={self.balance}, bonus={self.bonus})>"


class ActivationFee(Base):
    """One-time activation fee gating withdrawals.

    Payment collection happens at an external gateway; this row only
    records the outcome.
    """
    __tablename__ = "activation_fees"

    user_id = Column(Integer, ForeignKey("user_accounts.id", ondelete="CASCADE"), primary_key=True)
    fee = Column(Integer, nullable=False, default=100)
    paid = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default=ActivationStatus.UNPAID)
    paid_at = Column(DateTime, nullable=True)

    user = relationship("UserAccount", back_populates="activation")

    def __repr__(self):
        return f"<ActivationFee(user_id={self.user_id}, status={self.status})>"
