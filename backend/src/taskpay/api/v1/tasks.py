"""Daily tasks API v1 endpoints."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from taskpay.accounts.models import UserAccount
from taskpay.api.deps import require_auth
from taskpay.api.rate_limit import limiter
from taskpay.tasks.allocation import allocation_engine
from taskpay.tasks.completion import completion_service

router = APIRouter(prefix="/tasks", tags=["tasks"])


# ==================== MODELS ====================


class TaskOut(BaseModel):
    id: int
    type: str
    category: str
    title: str
    prompt: str
    media_url: str | None = None
    reward: int
    complexity: int
    completed: bool
    answer_text: str | None = None


class TodayTasksResponse(BaseModel):
    day_key: str
    tasks: list[TaskOut]
    remaining: int
    completed: int


class CompleteRequest(BaseModel):
    answer: str = Field(default="", max_length=5000)


class CompleteResponse(BaseModel):
    ok: bool = True
    day_key: str
    reward: int
    balance: int
    remaining: int


# ==================== ENDPOINTS ====================


@router.get("", response_model=TodayTasksResponse)
async def today_tasks(user: UserAccount = Depends(require_auth)):
    """Today's task set, allocated on first request of the day."""
    today = allocation_engine.get_today_tasks(user.id)
    return TodayTasksResponse(
        day_key=today.day_key,
        tasks=[TaskOut(**asdict(task)) for task in today.tasks],
        remaining=today.remaining,
        completed=today.completed_count,
    )


@router.post("/{task_id}/complete", response_model=CompleteResponse)
@limiter.limit("60/minute")
async def complete_task(
    request: Request,
    task_id: int,
    body: CompleteRequest,
    user: UserAccount = Depends(require_auth),
):
    """Submit an answer and credit the task reward."""
    result = completion_service.complete_task(user.id, task_id, body.answer)
    return CompleteResponse(
        day_key=result.day_key,
        reward=result.reward,
        balance=result.balance,
        remaining=result.remaining,
    )


@router.get("/history")
async def task_history(
    limit: int = Query(default=50, ge=1, le=200),
    user: UserAccount = Depends(require_auth),
):
    return {"history": completion_service.get_history(user.id, limit=limit)}
