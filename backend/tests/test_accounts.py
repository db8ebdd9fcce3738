import random
from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select

from taskpay.accounts.models import ActivationFee, UserAccount
from taskpay.accounts.service import AccountService
from taskpay.errors import UserNotFound, WrongPassword
from taskpay.referral.models import Referral
from taskpay.storage.db import db
from taskpay.tasks.allocation import AllocationEngine
from taskpay.tasks.completion import CompletionService
from taskpay.tasks.daykey import day_key
from taskpay.tasks.models import CompletionRecord, DailyAssignment, Task
from taskpay.withdrawals.models import Withdrawal
from taskpay.withdrawals.service import WithdrawalService

NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def accounts():
    return AccountService()


def _count(model, **filters):
    with db.session() as session:
        stmt = select(func.count()).select_from(model)
        for column, value in filters.items():
            stmt = stmt.where(getattr(model, column) == value)
        return session.scalar(stmt)


def test_change_password(accounts):
    user = accounts.register("alice", "alice@example.com", "secret123")

    accounts.change_password(user.id, "secret123", "better-secret")

    assert accounts.authenticate("alice@example.com", "secret123") is None
    assert accounts.authenticate("alice@example.com", "better-secret").id == user.id


def test_change_password_checks_the_current_one(accounts):
    user = accounts.register("alice", "alice@example.com", "secret123")

    with pytest.raises(WrongPassword):
        accounts.change_password(user.id, "not-it", "better-secret")
    with pytest.raises(ValueError):
        accounts.change_password(user.id, "secret123", "12345")

    assert accounts.authenticate("alice@example.com", "secret123").id == user.id


def test_change_password_unknown_user(accounts):
    with pytest.raises(UserNotFound):
        accounts.change_password(424242, "secret123", "better-secret")


def test_delete_account_removes_assignments_and_completions(accounts, make_user, wide_catalog):
    user = make_user(balance=1000, activated=True)
    other = make_user()
    engine = AllocationEngine(rng=random.Random(3))
    engine.ensure_daily_assignments(user.id, day_key(NOW))
    engine.ensure_daily_assignments(other.id, day_key(NOW))
    task_id = engine.get_today_tasks(user.id, now=NOW).tasks[0].id
    CompletionService().complete_task(user.id, task_id, "done and dusted", now=NOW)
    WithdrawalService().request_withdrawal(user.id, 300, "0712345678", "mpesa")
    tasks_before = _count(Task)

    accounts.delete_account(user.id)

    assert _count(UserAccount, id=user.id) == 0
    assert _count(DailyAssignment, user_id=user.id) == 0
    assert _count(CompletionRecord, user_id=user.id) == 0
    assert _count(Withdrawal, user_id=user.id) == 0
    assert _count(ActivationFee, user_id=user.id) == 0
    # Other users and the catalog are untouched
    assert _count(DailyAssignment, user_id=other.id) == 10
    assert _count(Task) == tasks_before


def test_deleting_a_referrer_keeps_the_referred_account(accounts):
    alice = accounts.register("alice", "alice@example.com", "secret123")
    bob = accounts.register("bob", "bob@example.com", "secret123", referral_code=alice.referral_code)

    accounts.delete_account(alice.id)

    with db.session() as session:
        assert session.get(UserAccount, bob.id).referred_by_id is None
    assert _count(Referral) == 0


def test_delete_unknown_account(accounts):
    with pytest.raises(UserNotFound):
        accounts.delete_account(424242)
