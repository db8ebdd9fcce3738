import os
import tempfile
from pathlib import Path

# Settings and the engine are built at import time, so point them at a
# throwaway database before anything from taskpay is imported.
_TMP_DIR = Path(tempfile.mkdtemp(prefix="taskpay-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["ENV"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-long-enough-0123456789"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402

from taskpay.accounts.models import ActivationFee, ActivationStatus, UserAccount  # noqa: E402
from taskpay.platform_settings import platform_settings  # noqa: E402
from taskpay.storage.db import db  # noqa: E402
from taskpay.storage.models import utcnow  # noqa: E402
from taskpay.tasks.models import Task  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_db():
    db.create_tables()
    db.drop_tables()
    db.create_tables()
    platform_settings.seed_defaults()
    yield db


@pytest.fixture()
def make_user():
    """Insert a user row directly (no password hashing)."""
    counter = {"n": 0}

    def _make(balance=0, bonus=0, is_admin=False, activated=False, username=None):
        counter["n"] += 1
        name = username or f"user{counter['n']}"
        with db.session() as session:
            user = UserAccount(
                username=name,
                email=f"{name}@example.com",
                password_hash="not-a-real-hash",
                referral_code=f"{name.upper()[:6]}{1000 + counter['n']}",
                balance=balance,
                bonus=bonus,
                is_admin=is_admin,
            )
            session.add(user)
            session.flush()
            session.add(ActivationFee(
                user_id=user.id,
                fee=100,
                paid=100 if activated else 0,
                status=ActivationStatus.PAID if activated else ActivationStatus.UNPAID,
                paid_at=utcnow() if activated else None,
            ))
        return user

    return _make


@pytest.fixture()
def make_tasks():
    """Insert ``count`` active tasks of a type/category; returns their IDs."""

    def _make(task_type, category, count=1, reward=10, reference_text=None, active=True):
        ids = []
        with db.session() as session:
            for i in range(count):
                task = Task(
                    type=task_type,
                    category=category,
                    title=f"{task_type} #{i}",
                    description="",
                    prompt=f"Do {task_type} number {i}",
                    reference_text=reference_text,
                    reward=reward,
                    complexity=1,
                    active=active,
                )
                session.add(task)
                session.flush()
                ids.append(task.id)
        return ids

    return _make


@pytest.fixture()
def wide_catalog(make_tasks):
    """18 types spread over 5 categories, 20 tasks each."""
    layout = {
        "Transcription": ["audio_transcription", "video_transcription", "text_transcription", "subtitle_sync"],
        "Visual Tasks": ["image_caption", "image_tagging", "content_moderation", "bounding_box"],
        "Content & Writing": ["text_cleanup", "document_check", "knowledge_base"],
        "Data & Research": ["data_entry", "price_audit", "lead_enrichment", "web_research"],
        "Surveys": ["survey_micro", "survey_longform", "survey_validation"],
    }
    for category, types in layout.items():
        for task_type in types:
            make_tasks(task_type, category, count=20, reward=15)
    return layout
