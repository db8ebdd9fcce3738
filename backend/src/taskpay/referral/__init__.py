"""Referral system.

Simple signup bonus:
- Referrer's bonus wallet gets ``referral_bonus_ksh`` when someone signs up with their code
- Each new user can be credited to a referrer at most once
"""

from taskpay.referral.models import BonusRedemption, Referral
from taskpay.referral.service import ReferralService, referral_service

__all__ = ["BonusRedemption", "Referral", "ReferralService", "referral_service"]
