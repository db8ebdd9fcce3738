"""Task catalog queries.

The allocation engine asks the catalog which categories and types exist
at call time, so adding a task kind is a data change, not a code change.
"""

from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from taskpay.tasks.models import Task


class TaskCatalog:
    """Read-only view over the active task catalog."""

    def __init__(self, session: Session):
        self.session = session

    def active_categories(self) -> list[str]:
        """Distinct categories with at least one active task."""
        rows = self.session.scalars(
            select(Task.category).where(Task.active.is_(True)).distinct().order_by(Task.category)
        )
        return [category for category in rows if category]

    def active_types(self) -> list[str]:
        """Distinct types with at least one active task, sorted."""
        rows = self.session.scalars(
            select(Task.type).where(Task.active.is_(True)).distinct().order_by(Task.type)
        )
        return [task_type for task_type in rows if task_type]

    def random_task(
        self,
        category: str | None = None,
        task_type: str | None = None,
        exclude_types: Iterable[str] = (),
        exclude_ids: Iterable[int] = (),
    ) -> Task | None:
        """Pick one active task uniformly at random.

        Args:
            category: Restrict to this category
            task_type: Restrict to this type
            exclude_types: Types to skip
            exclude_ids: Task IDs to skip

        Returns:
            A matching task, or None when nothing qualifies
        """
        stmt = select(Task).where(Task.active.is_(True))
        if category is not None:
            stmt = stmt.where(Task.category == category)
        if task_type is not None:
            stmt = stmt.where(Task.type == task_type)

        exclude_types = list(exclude_types)
        if exclude_types:
            stmt = stmt.where(Task.type.not_in(exclude_types))
        exclude_ids = list(exclude_ids)
        if exclude_ids:
            stmt = stmt.where(Task.id.not_in(exclude_ids))

        return self.session.scalar(stmt.order_by(func.random()).limit(1))

    def count_active(self) -> int:
        return self.session.scalar(
            select(func.count(Task.id)).where(Task.active.is_(True))
        ) or 0
