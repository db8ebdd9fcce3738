"""Account service: registration, authentication and profile."""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from taskpay.accounts.models import ActivationFee, ActivationStatus, UserAccount
from taskpay.errors import EmailTaken, InvalidReferralCode, UsernameTaken, UserNotFound, WrongPassword
from taskpay.logging_config import get_logger
from taskpay.platform_settings import PlatformSettings, platform_settings
from taskpay.referral.service import ReferralService, referral_service
from taskpay.settings import settings
from taskpay.storage.db import Database, db
from taskpay.storage.models import utcnow

logger = get_logger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT settings
JWT_ALGORITHM = "HS256"

MIN_PASSWORD_LENGTH = 6


class AccountService:
    """Local (username/email/password) accounts."""

    def __init__(
        self,
        database: Database | None = None,
        settings_store: PlatformSettings | None = None,
        referrals: ReferralService | None = None,
    ):
        self.db = database or db
        self.settings = settings_store or platform_settings
        self.referrals = referrals or referral_service
        self.logger = get_logger(__name__)

    # ==================== PASSWORD ====================

    def _truncate_password(self, password: str) -> str:
        """Truncate password to 72 bytes (bcrypt limit)."""
        return password.encode("utf-8")[:72].decode("utf-8", errors="ignore")

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(self._truncate_password(password))

    def verify_password(self, password: str, hashed: str) -> bool:
        return pwd_context.verify(self._truncate_password(password), hashed)

    # ==================== REGISTRATION ====================

    def register(
        self,
        username: str,
        email: str,
        password: str,
        referral_code: str | None = None,
    ) -> UserAccount:
        """Create an account, its activation fee row and the referral credit.

        Everything commits in one transaction. Email and username uniqueness
        stop a retried registration from creating a second user, and so a
        second referral credit.

        Args:
            username: Public username
            email: Email address
            password: Plain password
            referral_code: Optional referral code of the referrer

        Returns:
            Created user account

        Raises:
            EmailTaken: Email already registered
            UsernameTaken: Username already taken
            InvalidReferralCode: Referral code given but unknown
        """
        email = email.strip().lower()
        username = username.strip()
        password_hash = self.hash_password(password)

        with self.db.session() as session:
            if session.scalar(select(UserAccount.id).where(UserAccount.email == email)):
                raise EmailTaken()
            if session.scalar(select(UserAccount.id).where(UserAccount.username == username)):
                raise UsernameTaken()

            referrer = None
            if referral_code and referral_code.strip():
                referrer = self.referrals.find_referrer(session, referral_code)
                if referrer is None:
                    raise InvalidReferralCode()

            user = UserAccount(
                username=username,
                email=email,
                password_hash=password_hash,
                referral_code=self.referrals.generate_unique_code(session, username),
                referred_by_id=referrer.id if referrer else None,
                balance=0,
                bonus=0,
            )
            session.add(user)
            try:
                session.flush()
            except IntegrityError as exc:
                # Lost a race against a concurrent registration
                raise EmailTaken() from exc

            session.add(ActivationFee(
                user_id=user.id,
                fee=self.settings.get_int("activation_fee_ksh", session=session),
                paid=0,
                status=ActivationStatus.UNPAID,
            ))

            if referrer is not None:
                self.referrals.credit_referral(session, referrer.id, user.id)

        self.logger.info(
            "user_registered",
            user_id=user.id,
            username=username,
            referred_by=user.referred_by_id,
        )
        return user

    # ==================== AUTHENTICATION ====================

    def authenticate(self, email: str, password: str) -> UserAccount | None:
        """Authenticate a user.

        Args:
            email: User email
            password: Plain password

        Returns:
            User account if valid, None otherwise
        """
        with self.db.session() as session:
            user = session.scalar(
                select(UserAccount).where(
                    UserAccount.email == email.strip().lower(),
                    UserAccount.is_active.is_(True),
                )
            )
            if not user or not self.verify_password(password, user.password_hash):
                return None

            user.last_login_at = utcnow()

        self.logger.info("user_authenticated", user_id=user.id)
        return user

    def create_access_token(self, user: UserAccount, expires_delta: timedelta | None = None) -> str:
        """Create JWT access token."""
        if expires_delta is None:
            expires_delta = timedelta(hours=settings.jwt_expire_hours)

        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "admin": bool(user.is_admin),
            "exp": now + expires_delta,
            "iat": now,
        }
        return jwt.encode(payload, settings.jwt_secret_key, algorithm=JWT_ALGORITHM)

    def verify_token(self, token: str) -> dict[str, Any] | None:
        try:
            return jwt.decode(token, settings.jwt_secret_key, algorithms=[JWT_ALGORITHM])
        except JWTError as e:
            self.logger.debug("token_verification_failed", error=str(e))
            return None

    def get_user_from_token(self, token: str) -> UserAccount | None:
        payload = self.verify_token(token)
        if not payload or not payload.get("sub"):
            return None
        return self.get_user_by_id(int(payload["sub"]))

    # ==================== PROFILE ====================

    def get_user_by_id(self, user_id: int) -> UserAccount | None:
        with self.db.session() as session:
            return session.scalar(
                select(UserAccount).where(
                    UserAccount.id == user_id,
                    UserAccount.is_active.is_(True),
                )
            )

    def get_status(self, user_id: int) -> dict[str, Any]:
        """Account overview: profile, wallets and activation.

        Raises:
            UserNotFound: Unknown user
        """
        with self.db.session() as session:
            user = session.get(UserAccount, user_id)
            if not user:
                raise UserNotFound()
            activation = session.get(ActivationFee, user_id)

            return {
                "id": user.id,
                "username": user.username,
                "email": user.email,
                "full_name": user.full_name or "",
                "phone": user.phone or "",
                "payment_number": user.payment_number or "",
                "referral_code": user.referral_code,
                "balance": user.balance,
                "bonus": user.bonus,
                "activation_status": activation.status if activation else ActivationStatus.UNPAID,
                "activation_fee": activation.fee if activation else self.settings.get_int(
                    "activation_fee_ksh", session=session
                ),
            }

    def update_profile(
        self,
        user_id: int,
        full_name: str | None = None,
        phone: str | None = None,
        payment_number: str | None = None,
    ) -> dict[str, Any]:
        """Update profile fields; None leaves a field unchanged."""
        with self.db.session() as session:
            user = session.get(UserAccount, user_id)
            if not user:
                raise UserNotFound()

            if full_name is not None:
                user.full_name = full_name.strip()
            if phone is not None:
                user.phone = phone.strip()
            if payment_number is not None:
                user.payment_number = payment_number.strip()

        self.logger.info("profile_updated", user_id=user_id)
        return self.get_status(user_id)

    def change_password(self, user_id: int, current_password: str, new_password: str) -> None:
        """Replace the password after checking the current one.

        Raises:
            UserNotFound: Unknown user
            WrongPassword: Current password does not match
            ValueError: New password shorter than the minimum
        """
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters")

        with self.db.session() as session:
            user = session.get(UserAccount, user_id)
            if not user:
                raise UserNotFound()
            if not self.verify_password(current_password, user.password_hash):
                raise WrongPassword()

            user.password_hash = self.hash_password(new_password)

        self.logger.info("password_changed", user_id=user_id)

    def delete_account(self, user_id: int) -> None:
        """Delete a user and everything that hangs off it.

        Assignments, completions, withdrawals, referral rows and the
        activation fee go with the user through ON DELETE CASCADE.
        Referred users keep their accounts with ``referred_by_id`` cleared.

        Raises:
            UserNotFound: Unknown user
        """
        with self.db.session() as session:
            deleted = session.execute(
                delete(UserAccount)
                .where(UserAccount.id == user_id)
                .execution_options(synchronize_session=False)
            )
            if deleted.rowcount != 1:
                raise UserNotFound()

        self.logger.info("account_deleted", user_id=user_id)

    def is_activated(self, user_id: int) -> bool:
        with self.db.session() as session:
            activation = session.get(ActivationFee, user_id)
            return bool(activation and activation.status == ActivationStatus.PAID)


# Singleton instance
account_service = AccountService()
