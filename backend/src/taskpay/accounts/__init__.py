"""User accounts, activation fee and authentication."""

from taskpay.accounts.models import ActivationFee, ActivationStatus, UserAccount
from taskpay.accounts.service import AccountService, account_service

__all__ = [
    "ActivationFee",
    "ActivationStatus",
    "UserAccount",
    "AccountService",
    "account_service",
]
