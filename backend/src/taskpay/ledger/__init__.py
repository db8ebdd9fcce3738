from taskpay.ledger.redemption import RedemptionLedger, RedemptionResult, redemption_ledger

__all__ = ["RedemptionLedger", "RedemptionResult", "redemption_ledger"]
