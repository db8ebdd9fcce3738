"""Admin audit trail model."""

import json
from typing import Any

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from taskpay.storage.db import Base
from taskpay.storage.models import utcnow


class AdminAudit(Base):
    """Record of a privileged change made from the admin console."""
    __tablename__ = "admin_audit"

    id = Column(Integer, primary_key=True)
    admin_id = Column(Integer, ForeignKey("user_accounts.id", ondelete="SET NULL"), nullable=True, index=True)
    action = Column(String(50), nullable=False)  # set_balance, set_bonus, set_activation, ...
    entity = Column(String(50), nullable=False)  # user, withdrawal, app_settings
    entity_id = Column(String(50), nullable=True)
    meta_json = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)

    admin = relationship("UserAccount")

    def __repr__(self):
        return f"<AdminAudit(admin={self.admin_id}, action={self.action}, entity={self.entity})>"

    @property
    def meta(self) -> dict[str, Any]:
        """Get parsed metadata."""
        if self.meta_json:
            return json.loads(self.meta_json)
        return {}
