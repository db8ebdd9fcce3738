"""Referral and bonus redemption models."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer
from sqlalchemy.orm import relationship

from taskpay.storage.db import Base
from taskpay.storage.models import utcnow


class Referral(Base):
    """Referrer/referred relationship, created once at the referred user's signup.

    ``referred_id`` is unique: a user has at most one referrer and is
    credited to it exactly once.
    """
    __tablename__ = "referrals"

    id = Column(Integer, primary_key=True)
    referrer_id = Column(Integer, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    referred_id = Column(Integer, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False, unique=True)
    bonus_amount = Column(Integer, nullable=False, default=0)  # KSH credited to the referrer

    created_at = Column(DateTime, default=utcnow)

    referrer = relationship("UserAccount", foreign_keys=[referrer_id])
    referred = relationship("UserAccount", foreign_keys=[referred_id])

    def __repr__(self):
        return f"<Referral(referrer={self.referrer_id}, referred={self.referred_id})>"


class BonusRedemption(Base):
    """Audit row for a bonus-to-balance conversion."""
    __tablename__ = "bonus_redemptions"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self):
        return f"<BonusRedemption(user={self.user_id}, amount={self.amount})>"
