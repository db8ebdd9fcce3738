"""Application settings and configuration."""

import sys

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_JWT_DEFAULTS = {"change-me-in-production", "secret", "dev_secret_change_me"}


class Settings(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "taskpay"
    env: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"  # console | json
    allowed_origins: str = "http://localhost:5173"

    # JWT
    jwt_secret_key: str = "change-me-in-production"
    jwt_expire_hours: int = 24 * 7

    # Database
    database_url: str = "sqlite:///./taskpay.db"
    database_echo: bool = False

    # Daily reset happens at midnight in the platform's home region (Nairobi, no DST)
    home_utc_offset_hours: int = 3
    phone_region: str = "KE"

    # Platform defaults (seeded into app_settings, editable by admins at runtime)
    tasks_per_day: int = Field(default=10, ge=0)
    referral_bonus_ksh: int = Field(default=100, ge=0)
    referral_redeem_threshold_ksh: int = Field(default=1000, ge=0)
    referral_redeem_transfer_ksh: int = Field(default=1000, ge=0)
    min_withdraw_ksh: int = Field(default=200, ge=0)
    activation_fee_ksh: int = Field(default=100, ge=0)

    def platform_defaults(self) -> dict[str, int]:
        """Defaults for the runtime-editable platform settings."""
        return {
            "tasks_per_day": self.tasks_per_day,
            "referral_bonus_ksh": self.referral_bonus_ksh,
            "referral_redeem_threshold_ksh": self.referral_redeem_threshold_ksh,
            "referral_redeem_transfer_ksh": self.referral_redeem_transfer_ksh,
            "min_withdraw_ksh": self.min_withdraw_ksh,
            "activation_fee_ksh": self.activation_fee_ksh,
        }


# Global settings instance
settings = Settings()

# ── Security validation ──────────────────────────────────────────────
if settings.env == "production":
    if settings.jwt_secret_key in _INSECURE_JWT_DEFAULTS or len(settings.jwt_secret_key) < 32:
        print(
            "\nFATAL: JWT_SECRET_KEY is insecure or too short (min 32 chars).\n"
            "   Set a strong random value:  openssl rand -hex 32\n",
            file=sys.stderr,
        )
        sys.exit(1)
