"""Domain errors raised by taskpay services.

Every error carries a stable ``code`` so the HTTP layer can render
specific guidance instead of a generic failure.
"""


class TaskpayError(Exception):
    """Base class for expected, recoverable domain failures."""

    code = "error"
    message = "Request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


# ==================== TASKS ====================


class NotAssigned(TaskpayError):
    """Task is not in today's assignment set for this user."""

    code = "not_assigned"
    message = "Task not assigned for today"


class AlreadyCompleted(TaskpayError):
    """Assignment already closed."""

    code = "already_completed"
    message = "Task already completed"


class TaskInactive(TaskpayError):
    """Referenced task is disabled or missing."""

    code = "task_inactive"
    message = "Task not found or no longer available"


class InvalidAnswer(TaskpayError):
    """Answer is too short or does not match the reference text."""

    code = "invalid_answer"
    message = "Answer is required"


# ==================== LEDGER ====================


class ThresholdNotMet(TaskpayError):
    """Bonus is below the redemption threshold."""

    code = "threshold_not_met"

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__(f"Bonus must reach KSH {required} to redeem")


class InsufficientBalance(TaskpayError):
    """Spendable balance does not cover the requested debit."""

    code = "insufficient_balance"

    def __init__(self, required: int, available: int):
        self.required = required
        self.available = available
        super().__init__("Insufficient balance")


# ==================== ACCOUNTS ====================


class UserNotFound(TaskpayError):
    code = "user_not_found"
    message = "User not found"


class EmailTaken(TaskpayError):
    code = "email_taken"
    message = "Email already registered"


class UsernameTaken(TaskpayError):
    code = "username_taken"
    message = "Username already taken"


class InvalidReferralCode(TaskpayError):
    code = "invalid_referral_code"
    message = "Invalid referral code"


class InvalidCredentials(TaskpayError):
    code = "invalid_credentials"
    message = "Invalid credentials"


class WrongPassword(InvalidCredentials):
    """Current password did not match on a password change."""

    code = "wrong_password"
    message = "Current password is wrong"


# ==================== WITHDRAWALS ====================


class ActivationRequired(TaskpayError):
    code = "activation_required"
    message = "Activation fee required before withdrawals."


class BelowMinimumWithdrawal(TaskpayError):
    code = "below_minimum_withdrawal"

    def __init__(self, minimum: int):
        self.minimum = minimum
        super().__init__(f"Minimum withdrawal is KSH {minimum}")


class InvalidPhoneNumber(TaskpayError):
    code = "invalid_phone_number"
    message = "Invalid mobile money number"


class WithdrawalNotFound(TaskpayError):
    code = "withdrawal_not_found"
    message = "Withdrawal not found"


# ==================== ADMIN ====================


class InvalidSetting(TaskpayError):
    code = "invalid_setting"
    message = "Unknown or invalid setting"
