"""Admin console: overrides, withdrawal review, settings and audit trail."""

from taskpay.admin.models import AdminAudit
from taskpay.admin.service import AdminService, admin_service

__all__ = ["AdminAudit", "AdminService", "admin_service"]
