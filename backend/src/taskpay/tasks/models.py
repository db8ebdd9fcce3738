"""Task catalog, daily assignment and completion ledger models."""

from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskpay.storage.models import Base


class Task(Base):
    """Catalog entry.

    ``type`` is the fine-grained kind (``audio_transcription``), ``category``
    the coarse grouping (``Transcription``). Tasks with a ``reference_text``
    are graded by normalized exact match.
    """

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    media_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    reference_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    reward: Mapped[int] = mapped_column(Integer, nullable=False)
    complexity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, type='{self.type}', reward={self.reward})>"


class DailyAssignment(Base):
    """Binding of a task to a user for one day key."""

    __tablename__ = "daily_assignments"
    __table_args__ = (
        UniqueConstraint("user_id", "day_key", "task_id", name="uq_daily_assignment"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_key: Mapped[str] = mapped_column(String(10), nullable=False, index=True)
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )

    assigned_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    answer_text: Mapped[str | None] = mapped_column(Text, nullable=True)

    task: Mapped["Task"] = relationship("Task")

    def __repr__(self) -> str:
        return f"<DailyAssignment(user={self.user_id}, day='{self.day_key}', task={self.task_id})>"


class CompletionRecord(Base):
    """Append-only reward ledger row, one per successful submission."""

    __tablename__ = "task_completions"
    __table_args__ = (
        UniqueConstraint("user_id", "task_id", "day_key", name="uq_task_completion_per_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    task_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False
    )
    day_key: Mapped[str] = mapped_column(String(10), nullable=False)
    reward: Mapped[int] = mapped_column(Integer, nullable=False)
    answer_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    task: Mapped["Task"] = relationship("Task")

    def __repr__(self) -> str:
        return f"<CompletionRecord(user={self.user_id}, task={self.task_id}, reward={self.reward})>"
