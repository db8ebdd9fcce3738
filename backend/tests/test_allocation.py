import random
from collections import Counter
from datetime import datetime, timezone
from types import SimpleNamespace

from sqlalchemy import select

from taskpay.platform_settings import platform_settings
from taskpay.storage.db import db
from taskpay.tasks import allocation
from taskpay.tasks.allocation import AllocationEngine
from taskpay.tasks.catalog import TaskCatalog
from taskpay.tasks.daykey import day_key
from taskpay.tasks.models import DailyAssignment, Task

NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)
DAY = day_key(NOW)


def _engine():
    return AllocationEngine(rng=random.Random(42))


def _assigned(user_id, key=DAY):
    with db.session() as session:
        return session.execute(
            select(DailyAssignment.task_id, Task.type, Task.category)
            .join(Task, Task.id == DailyAssignment.task_id)
            .where(DailyAssignment.user_id == user_id, DailyAssignment.day_key == key)
            .order_by(DailyAssignment.id)
        ).all()


def test_full_set_has_distinct_types_and_covers_categories(make_user, wide_catalog):
    user = make_user()

    created = _engine().ensure_daily_assignments(user.id, DAY)

    rows = _assigned(user.id)
    assert created == 10
    assert len(rows) == 10
    assert len({task_type for _, task_type, _ in rows}) == 10
    assert {category for _, _, category in rows} == set(wide_catalog)


def test_allocation_is_idempotent(make_user, wide_catalog):
    user = make_user()
    engine = _engine()

    engine.ensure_daily_assignments(user.id, DAY)
    first = _assigned(user.id)

    assert engine.ensure_daily_assignments(user.id, DAY) == 0
    assert _assigned(user.id) == first


def test_few_types_still_fill_the_limit(make_user, make_tasks):
    make_tasks("image_caption", "Visual Tasks", count=12)
    make_tasks("data_entry", "Data & Research", count=12)
    make_tasks("survey_micro", "Surveys", count=12)
    user = make_user()

    created = _engine().ensure_daily_assignments(user.id, DAY)

    rows = _assigned(user.id)
    assert created == 10
    assert len({task_id for task_id, _, _ in rows}) == 10
    assert {task_type for _, task_type, _ in rows} == {"image_caption", "data_entry", "survey_micro"}
    assert max(Counter(task_type for _, task_type, _ in rows).values()) >= 3


def test_small_catalog_assigns_everything_available(make_user, make_tasks):
    make_tasks("image_caption", "Visual Tasks", count=2)
    make_tasks("data_entry", "Data & Research", count=2)
    user = make_user()

    assert _engine().ensure_daily_assignments(user.id, DAY) == 4
    assert len(_assigned(user.id)) == 4


def test_empty_catalog_assigns_nothing(make_user):
    user = make_user()

    assert _engine().ensure_daily_assignments(user.id, DAY) == 0
    today = _engine().get_today_tasks(user.id, now=NOW)
    assert today.tasks == []
    assert today.remaining == 0


def test_exhausted_and_empty_catalogs_are_told_apart(make_user, make_tasks, monkeypatch):
    warnings = []
    monkeypatch.setattr(allocation, "logger", SimpleNamespace(
        warning=lambda event, **kw: warnings.append((event, kw["active_tasks"])),
        info=lambda event, **kw: None,
    ))
    user = make_user()

    _engine().ensure_daily_assignments(user.id, DAY)
    make_tasks("image_caption", "Visual Tasks", count=2)
    _engine().ensure_daily_assignments(user.id, DAY)
    _engine().ensure_daily_assignments(user.id, DAY)

    assert warnings == [("allocation_empty_catalog", 0), ("allocation_catalog_exhausted", 2)]


def test_catalog_counts_only_active_tasks(make_tasks):
    make_tasks("image_caption", "Visual Tasks", count=3)
    make_tasks("data_entry", "Data & Research", count=4, active=False)

    with db.session() as session:
        assert TaskCatalog(session).count_active() == 3


def test_inactive_tasks_are_never_assigned(make_user, make_tasks):
    active = set(make_tasks("image_caption", "Visual Tasks", count=3))
    make_tasks("data_entry", "Data & Research", count=20, active=False)
    user = make_user()

    _engine().ensure_daily_assignments(user.id, DAY)

    assert {task_id for task_id, _, _ in _assigned(user.id)} == active


def test_raised_limit_tops_up_without_touching_existing(make_user, wide_catalog):
    user = make_user()
    engine = _engine()
    platform_settings.update({"tasks_per_day": 5})

    assert engine.ensure_daily_assignments(user.id, DAY) == 5
    before = {task_id for task_id, _, _ in _assigned(user.id)}

    platform_settings.update({"tasks_per_day": 8})
    assert engine.ensure_daily_assignments(user.id, DAY) == 3

    after = {task_id for task_id, _, _ in _assigned(user.id)}
    assert before < after
    assert len(after) == 8


def test_lowered_limit_keeps_existing_assignments(make_user, wide_catalog):
    user = make_user()
    engine = _engine()
    engine.ensure_daily_assignments(user.id, DAY)

    platform_settings.update({"tasks_per_day": 5})

    assert engine.ensure_daily_assignments(user.id, DAY) == 0
    assert len(_assigned(user.id)) == 10


def test_deleted_task_is_replaced_on_next_call(make_user, wide_catalog):
    user = make_user()
    engine = _engine()
    engine.ensure_daily_assignments(user.id, DAY)
    removed_id = _assigned(user.id)[0][0]

    with db.session() as session:
        session.delete(session.get(Task, removed_id))

    assert engine.ensure_daily_assignments(user.id, DAY) == 1
    ids = {task_id for task_id, _, _ in _assigned(user.id)}
    assert removed_id not in ids
    assert len(ids) == 10


def test_each_day_gets_its_own_set(make_user, wide_catalog):
    user = make_user()
    engine = _engine()

    engine.ensure_daily_assignments(user.id, "2025-03-10")
    engine.ensure_daily_assignments(user.id, "2025-03-11")

    assert len(_assigned(user.id, "2025-03-10")) == 10
    assert len(_assigned(user.id, "2025-03-11")) == 10


def test_unknown_user_gets_nothing(wide_catalog):
    assert _engine().ensure_daily_assignments(999_999, DAY) == 0


def test_today_tasks_keep_a_stable_order(make_user, wide_catalog):
    user = make_user()
    engine = _engine()

    first = engine.get_today_tasks(user.id, now=NOW)
    second = engine.get_today_tasks(user.id, now=NOW)

    assert first.day_key == DAY
    assert [t.id for t in first.tasks] == [t.id for t in second.tasks]
    assert first.remaining == 10
    assert first.completed_count == 0
    assert engine.count_assignments(user.id, DAY) == 10


def test_users_are_allocated_independently(make_user, wide_catalog):
    alice = make_user()
    bob = make_user()
    engine = _engine()

    engine.ensure_daily_assignments(alice.id, DAY)
    engine.ensure_daily_assignments(bob.id, DAY)

    assert len(_assigned(alice.id)) == 10
    assert len(_assigned(bob.id)) == 10
