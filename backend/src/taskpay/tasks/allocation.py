"""Daily task allocation.

Each user gets a bounded, type-diverse set of tasks per home-timezone day.
Assignments are created on first read of the day and stay stable until
the next day key, so no scheduler is needed.
"""

import random
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from taskpay.accounts.models import UserAccount
from taskpay.logging_config import get_logger
from taskpay.platform_settings import PlatformSettings, platform_settings
from taskpay.storage.db import Database, db, insert_ignore
from taskpay.tasks.catalog import TaskCatalog
from taskpay.tasks.daykey import day_key as current_day_key
from taskpay.tasks.models import DailyAssignment, Task

logger = get_logger(__name__)


@dataclass
class AssignedTask:
    """A task as presented in the user's daily list."""
    id: int
    type: str
    category: str
    title: str
    prompt: str
    media_url: str | None
    reward: int
    complexity: int
    completed: bool
    answer_text: str | None = None


@dataclass
class TodayTasks:
    """The user's task set for one day key."""
    day_key: str
    tasks: list[AssignedTask] = field(default_factory=list)
    remaining: int = 0

    @property
    def completed_count(self) -> int:
        return len(self.tasks) - self.remaining


@dataclass
class _DayState:
    """What the user already holds for the day, updated as picks are made."""
    assigned_ids: set[int]
    used_types: set[str]
    used_categories: set[str]


class AllocationEngine:
    """Assigns daily tasks to users.

    Selection runs in three passes: one task per unused category (random
    category order), then one task per unused type, then a relaxation pass
    that accepts duplicate types once distinct ones are exhausted.
    """

    def __init__(
        self,
        database: Database | None = None,
        settings_store: PlatformSettings | None = None,
        rng: random.Random | None = None,
    ):
        self.db = database or db
        self.settings = settings_store or platform_settings
        self.rng = rng or random.Random()

    def ensure_daily_assignments(self, user_id: int, day_key: str) -> int:
        """Make sure the user has their full task set for ``day_key``.

        Idempotent: once the daily limit is reached nothing is written.
        An empty catalog assigns nothing and is not an error.

        Args:
            user_id: User ID
            day_key: Home-timezone day key

        Returns:
            Number of assignment rows created by this call
        """
        with self.db.session() as session:
            self._sweep_orphans(session)

            # Serialize allocation per user (no-op on SQLite, which locks on write)
            user = session.query(UserAccount).filter(
                UserAccount.id == user_id
            ).with_for_update().first()
            if not user:
                return 0

            limit = self.settings.get_int("tasks_per_day", session=session)
            state = self._load_day_state(session, user_id, day_key)
            existing = len(state.assigned_ids)
            if existing >= limit:
                return 0

            catalog = TaskCatalog(session)
            picks = self._select(catalog, limit - existing, state)
            if not picks:
                active = catalog.count_active()
                logger.warning(
                    "allocation_empty_catalog" if active == 0 else "allocation_catalog_exhausted",
                    user_id=user_id,
                    day_key=day_key,
                    active_tasks=active,
                    assigned=existing,
                )
                return 0

            created = 0
            for task_id in picks:
                if insert_ignore(
                    session,
                    DailyAssignment,
                    {"user_id": user_id, "day_key": day_key, "task_id": task_id},
                    ["user_id", "day_key", "task_id"],
                ):
                    created += 1

            logger.info(
                "daily_tasks_assigned",
                user_id=user_id,
                day_key=day_key,
                existing=existing,
                created=created,
                limit=limit,
            )
            return created

    def get_today_tasks(self, user_id: int, now: datetime | None = None) -> TodayTasks:
        """Today's tasks for a user, allocating them first if needed.

        Args:
            user_id: User ID
            now: Override of the current time (for the day key)

        Returns:
            Day key, tasks in assignment order, and count still open
        """
        key = current_day_key(now)
        self.ensure_daily_assignments(user_id, key)

        with self.db.session() as session:
            rows = session.execute(
                select(DailyAssignment, Task)
                .join(Task, Task.id == DailyAssignment.task_id)
                .where(DailyAssignment.user_id == user_id, DailyAssignment.day_key == key)
                .order_by(DailyAssignment.id.asc())
            ).all()

            tasks = [
                AssignedTask(
                    id=task.id,
                    type=task.type,
                    category=task.category,
                    title=task.title,
                    prompt=task.prompt,
                    media_url=task.media_url,
                    reward=task.reward,
                    complexity=task.complexity,
                    completed=assignment.completed_at is not None,
                    answer_text=assignment.answer_text,
                )
                for assignment, task in rows
            ]

        remaining = sum(1 for task in tasks if not task.completed)
        return TodayTasks(day_key=key, tasks=tasks, remaining=remaining)

    # ==================== INTERNALS ====================

    def _sweep_orphans(self, session: Session) -> None:
        """Drop assignments whose user or task was deleted out of band."""
        session.execute(
            delete(DailyAssignment)
            .where(DailyAssignment.user_id.not_in(select(UserAccount.id)))
            .execution_options(synchronize_session=False)
        )
        session.execute(
            delete(DailyAssignment)
            .where(DailyAssignment.task_id.not_in(select(Task.id)))
            .execution_options(synchronize_session=False)
        )

    def _load_day_state(self, session: Session, user_id: int, day_key: str) -> _DayState:
        rows = session.execute(
            select(DailyAssignment.task_id, Task.type, Task.category)
            .join(Task, Task.id == DailyAssignment.task_id)
            .where(DailyAssignment.user_id == user_id, DailyAssignment.day_key == day_key)
        ).all()
        return _DayState(
            assigned_ids={task_id for task_id, _, _ in rows},
            used_types={task_type for _, task_type, _ in rows},
            used_categories={category for _, _, category in rows},
        )

    def _select(self, catalog: TaskCatalog, need: int, state: _DayState) -> list[int]:
        picks: list[int] = []

        def take(task: Task) -> None:
            picks.append(task.id)
            state.assigned_ids.add(task.id)
            state.used_types.add(task.type)
            state.used_categories.add(task.category)

        # Pass 1: category diversity, random category order per user/day
        categories = catalog.active_categories()
        self.rng.shuffle(categories)
        for category in categories:
            if len(picks) >= need:
                break
            if category in state.used_categories:
                continue
            task = catalog.random_task(
                category=category,
                exclude_types=state.used_types,
                exclude_ids=state.assigned_ids,
            )
            if task:
                take(task)

        # Pass 2: one task per remaining type
        for task_type in catalog.active_types():
            if len(picks) >= need:
                break
            if task_type in state.used_types:
                continue
            task = catalog.random_task(task_type=task_type, exclude_ids=state.assigned_ids)
            if task:
                take(task)

        # Pass 3: fill from the remaining catalog; every iteration either
        # assigns a new task or stops, so it terminates on any catalog size
        while len(picks) < need:
            task = catalog.random_task(
                exclude_types=state.used_types,
                exclude_ids=state.assigned_ids,
            )
            if task is None:
                # Distinct types exhausted: allow duplicates
                state.used_types.clear()
                task = catalog.random_task(exclude_ids=state.assigned_ids)
            if task is None:
                break
            take(task)

        return picks

    def count_assignments(self, user_id: int, day_key: str) -> int:
        with self.db.session() as session:
            return session.scalar(
                select(func.count(DailyAssignment.id)).where(
                    DailyAssignment.user_id == user_id,
                    DailyAssignment.day_key == day_key,
                )
            ) or 0


# Singleton instance
allocation_engine = AllocationEngine()
