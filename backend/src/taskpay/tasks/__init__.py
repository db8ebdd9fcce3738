"""Daily task allocation and completion.

- Each user gets up to ``tasks_per_day`` tasks per home-timezone day
- Allocation prefers one task per category, then one per type
- Completing a task credits its reward to the spendable balance
"""

from taskpay.tasks.allocation import AllocationEngine, TodayTasks, allocation_engine
from taskpay.tasks.completion import CompletionResult, CompletionService, completion_service
from taskpay.tasks.daykey import day_key
from taskpay.tasks.normalize import normalize_answer

__all__ = [
    "AllocationEngine",
    "TodayTasks",
    "allocation_engine",
    "CompletionResult",
    "CompletionService",
    "completion_service",
    "day_key",
    "normalize_answer",
]
