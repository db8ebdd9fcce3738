from taskpay.withdrawals.models import Withdrawal, WithdrawalStatus
from taskpay.withdrawals.service import WithdrawalService, normalize_phone, withdrawal_service

__all__ = ["Withdrawal", "WithdrawalStatus", "WithdrawalService", "normalize_phone", "withdrawal_service"]
