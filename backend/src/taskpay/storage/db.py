"""Database connection and session management."""

from contextlib import contextmanager
from typing import Any, Generator, Sequence

from sqlalchemy import create_engine, event, insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from taskpay.logging_config import get_logger
from taskpay.settings import settings
from taskpay.storage.models import Base

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Database connection manager."""

    def __init__(self, database_url: str | None = None):
        """Initialize database connection.

        Args:
            database_url: Database URL (defaults to settings)
        """
        self.database_url = database_url or settings.database_url
        self.engine = create_engine(
            self.database_url,
            echo=settings.database_echo,
            pool_pre_ping=True,
        )
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )
        logger.info("database_initialized", url=self.engine.url.render_as_string(hide_password=True))

    def create_tables(self) -> None:
        """Create all tables in the database."""
        # Feature models register themselves on Base.metadata when imported
        import taskpay.accounts.models  # noqa: F401
        import taskpay.admin.models  # noqa: F401
        import taskpay.referral.models  # noqa: F401
        import taskpay.tasks.models  # noqa: F401
        import taskpay.withdrawals.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("tables_created")

    def drop_tables(self) -> None:
        """Drop all tables from the database."""
        Base.metadata.drop_all(bind=self.engine)
        logger.warning("tables_dropped")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a transactional scope for database operations.

        Yields:
            Database session
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


def insert_ignore(
    session: Session,
    model: type[Base],
    values: dict[str, Any],
    conflict_columns: Sequence[str],
) -> bool:
    """Insert a row unless it collides with a unique constraint.

    Used where the unique constraint itself is the concurrency guard:
    a concurrent duplicate insert is ignored instead of failing the
    transaction.

    Args:
        session: Active session
        model: Mapped class to insert into
        values: Column values
        conflict_columns: Columns of the unique constraint guarding the insert

    Returns:
        True if a row was inserted, False if it already existed
    """
    table = model.__table__
    dialect = session.get_bind().dialect.name

    if dialect in ("sqlite", "postgresql"):
        dialect_insert = sqlite.insert if dialect == "sqlite" else postgresql.insert
        stmt = dialect_insert(table).values(**values).on_conflict_do_nothing(
            index_elements=list(conflict_columns)
        )
        result = session.execute(stmt)
        return result.rowcount == 1

    # Other backends: isolate the insert in a savepoint
    try:
        with session.begin_nested():
            session.execute(insert(table).values(**values))
        return True
    except IntegrityError:
        return False


# Global database instance
db = Database()
