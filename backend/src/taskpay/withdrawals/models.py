"""Withdrawal request model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from taskpay.storage.db import Base
from taskpay.storage.models import utcnow


class WithdrawalStatus:
    """Withdrawal review states."""
    PENDING = "pending"
    PAID = "paid"
    REJECTED = "rejected"

    ALL = (PENDING, PAID, REJECTED)


class Withdrawal(Base):
    """Mobile money payout request, reviewed by an admin."""
    __tablename__ = "withdrawals"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    phone_number = Column(String(32), nullable=False)  # E.164
    method = Column(String(32), nullable=False)
    status = Column(String(20), nullable=False, default=WithdrawalStatus.PENDING, index=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("UserAccount")

    def __repr__(self):
        return f"<Withdrawal(id={self.id}, user={self.user_id}, amount={self.amount}, status={self.status})>"
