"""Runtime-editable platform settings backed by the ``app_settings`` table.

Values are read fresh on every call so that an admin change takes effect
on the next request, across every process sharing the database.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from taskpay.errors import InvalidSetting
from taskpay.logging_config import get_logger
from taskpay.settings import settings
from taskpay.storage.db import Database, db, insert_ignore
from taskpay.storage.models import AppSetting, utcnow

logger = get_logger(__name__)


class PlatformSettings:
    """Integer platform settings with defaults from ``Settings``."""

    def __init__(self, database: Database | None = None):
        self.db = database or db

    @property
    def defaults(self) -> dict[str, int]:
        return settings.platform_defaults()

    def seed_defaults(self) -> None:
        """Insert missing default rows without touching existing values."""
        with self.db.session() as session:
            for key, value in self.defaults.items():
                insert_ignore(session, AppSetting, {"key": key, "value": str(value)}, ["key"])
        logger.info("platform_settings_seeded")

    def get_int(self, key: str, session: Session | None = None) -> int:
        """Read an integer setting.

        Args:
            key: Setting key
            session: Optional session to read within an open transaction

        Returns:
            Stored value, or the configured default when missing or malformed
        """
        if key not in self.defaults:
            raise InvalidSetting(f"Unknown setting: {key}")

        if session is not None:
            raw = session.scalar(select(AppSetting.value).where(AppSetting.key == key))
        else:
            with self.db.session() as own_session:
                raw = own_session.scalar(select(AppSetting.value).where(AppSetting.key == key))

        try:
            return int(str(raw).strip())
        except (TypeError, ValueError):
            return self.defaults[key]

    def all(self) -> dict[str, int]:
        """Current value of every known setting."""
        with self.db.session() as session:
            return {key: self.get_int(key, session=session) for key in self.defaults}

    def update(self, values: dict[str, int], session: Session | None = None) -> dict[str, int]:
        """Upsert setting values.

        Args:
            values: Mapping of setting key to non-negative integer
            session: Optional session to write within an open transaction

        Returns:
            The values written

        Raises:
            InvalidSetting: On unknown keys or negative values
        """
        for key, value in values.items():
            if key not in self.defaults:
                raise InvalidSetting(f"Unknown setting: {key}")
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise InvalidSetting(f"Setting {key} must be a non-negative integer")

        if session is None:
            with self.db.session() as own_session:
                self._write(own_session, values)
        else:
            self._write(session, values)

        logger.info("platform_settings_updated", **values)
        return dict(values)

    def _write(self, session: Session, values: dict[str, int]) -> None:
        for key, value in values.items():
            row = session.get(AppSetting, key)
            if row is None:
                session.add(AppSetting(key=key, value=str(value)))
            else:
                row.value = str(value)
                row.updated_at = utcnow()
        session.flush()


# Singleton instance
platform_settings = PlatformSettings()
