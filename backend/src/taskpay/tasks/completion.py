"""Task completion: answer validation and reward crediting."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskpay.accounts.models import UserAccount
from taskpay.errors import AlreadyCompleted, InvalidAnswer, NotAssigned, TaskInactive
from taskpay.logging_config import get_logger
from taskpay.storage.db import Database, db
from taskpay.storage.models import utcnow
from taskpay.tasks.daykey import day_key as current_day_key
from taskpay.tasks.models import CompletionRecord, DailyAssignment, Task
from taskpay.tasks.normalize import answer_matches, is_substantive

logger = get_logger(__name__)


@dataclass
class CompletionResult:
    """Outcome of a successful submission."""
    day_key: str
    reward: int
    balance: int
    remaining: int


class CompletionService:
    """Records task submissions.

    The assignment stamp, the ledger row and the balance credit commit in
    one transaction. The stamp is a conditional update on
    ``completed_at IS NULL``, so of two concurrent submissions for the same
    assignment exactly one succeeds.
    """

    def __init__(self, database: Database | None = None):
        self.db = database or db

    def complete_task(
        self,
        user_id: int,
        task_id: int,
        answer: str,
        now: datetime | None = None,
    ) -> CompletionResult:
        """Submit an answer for one of today's tasks.

        Args:
            user_id: User ID
            task_id: Task ID
            answer: Submitted answer text
            now: Override of the current time (for the day key)

        Returns:
            Reward credited, new balance and tasks still open today

        Raises:
            NotAssigned: Task is not in today's set
            AlreadyCompleted: Assignment already closed
            TaskInactive: Task disabled or deleted
            InvalidAnswer: Answer too short or not matching the reference
        """
        key = current_day_key(now)

        with self.db.session() as session:
            assignment = self._load_assignment(session, user_id, key, task_id)
            if assignment is None:
                raise NotAssigned()
            if assignment.completed_at is not None:
                raise AlreadyCompleted()

            task = session.get(Task, task_id)
            if task is None or not task.active:
                raise TaskInactive()

            if not is_substantive(answer):
                raise InvalidAnswer()
            if task.reference_text and not answer_matches(answer, task.reference_text):
                raise InvalidAnswer("Answer does not match. Please try again carefully.")

            answer_text = answer.strip()
            reward = task.reward

            stamped = session.execute(
                update(DailyAssignment)
                .where(
                    DailyAssignment.id == assignment.id,
                    DailyAssignment.completed_at.is_(None),
                )
                .values(completed_at=utcnow(), answer_text=answer_text)
                .execution_options(synchronize_session=False)
            )
            if stamped.rowcount != 1:
                raise AlreadyCompleted()

            session.add(CompletionRecord(
                user_id=user_id,
                task_id=task_id,
                day_key=key,
                reward=reward,
                answer_text=answer_text,
            ))
            try:
                session.flush()
            except IntegrityError as exc:
                raise AlreadyCompleted() from exc

            session.execute(
                update(UserAccount)
                .where(UserAccount.id == user_id)
                .values(balance=UserAccount.balance + reward)
                .execution_options(synchronize_session=False)
            )

            balance = session.scalar(select(UserAccount.balance).where(UserAccount.id == user_id)) or 0
            remaining = session.scalar(
                select(func.count(DailyAssignment.id)).where(
                    DailyAssignment.user_id == user_id,
                    DailyAssignment.day_key == key,
                    DailyAssignment.completed_at.is_(None),
                )
            ) or 0

        logger.info(
            "task_completed",
            user_id=user_id,
            task_id=task_id,
            day_key=key,
            reward=reward,
            new_balance=balance,
            remaining=remaining,
        )
        return CompletionResult(day_key=key, reward=reward, balance=balance, remaining=remaining)

    def _load_assignment(
        self, session: Session, user_id: int, day_key: str, task_id: int
    ) -> DailyAssignment | None:
        return session.scalar(
            select(DailyAssignment).where(
                DailyAssignment.user_id == user_id,
                DailyAssignment.day_key == day_key,
                DailyAssignment.task_id == task_id,
            )
        )

    def get_history(self, user_id: int, limit: int = 50) -> list[dict[str, Any]]:
        """Most recent completions for a user.

        Args:
            user_id: User ID
            limit: Max records

        Returns:
            List of completion dicts, newest first
        """
        with self.db.session() as session:
            rows = session.execute(
                select(CompletionRecord, Task.title, Task.type)
                .join(Task, Task.id == CompletionRecord.task_id)
                .where(CompletionRecord.user_id == user_id)
                .order_by(CompletionRecord.id.desc())
                .limit(limit)
            ).all()

            return [
                {
                    "id": record.id,
                    "task_id": record.task_id,
                    "title": title,
                    "type": task_type,
                    "reward": record.reward,
                    "day_key": record.day_key,
                    "created_at": record.created_at,
                }
                for record, title, task_type in rows
            ]


# Singleton instance
completion_service = CompletionService()
