"""Starter task catalog.

Seeds a realistic mix of task kinds so a fresh install has something to
allocate. Categories and types are plain data: the allocation engine
discovers them from the table.
"""

import random
from dataclasses import dataclass

from sqlalchemy import func, select

from taskpay.logging_config import get_logger
from taskpay.storage.db import Database, db
from taskpay.tasks.models import Task

logger = get_logger(__name__)

MIN_REWARD = 10
MAX_REWARD = 30

MEDIA = {
    "audio": [
        "https://upload.wikimedia.org/wikipedia/commons/4/4f/En-us-hello.ogg",
        "https://upload.wikimedia.org/wikipedia/commons/7/7e/En-us-thank_you.ogg",
        "https://upload.wikimedia.org/wikipedia/commons/9/9e/En-us-yes.ogg",
        "https://upload.wikimedia.org/wikipedia/commons/1/12/En-us-no.ogg",
    ],
    "video": [
        "https://upload.wikimedia.org/wikipedia/commons/transcoded/8/86/Big_Buck_Bunny_Trailer_400p.ogv/Big_Buck_Bunny_Trailer_400p.ogv.480p.vp9.webm",
        "https://upload.wikimedia.org/wikipedia/commons/transcoded/3/3d/Walking_in_Tokyo.webm/Walking_in_Tokyo.webm.480p.vp9.webm",
    ],
    "image": [
        "https://upload.wikimedia.org/wikipedia/commons/thumb/3/3a/Cat03.jpg/640px-Cat03.jpg",
        "https://upload.wikimedia.org/wikipedia/commons/thumb/4/47/New_york_times_square-terabass.jpg/640px-New_york_times_square-terabass.jpg",
    ],
}


@dataclass(frozen=True)
class TaskKind:
    type: str
    category: str
    title: str
    prompt: str
    media: str | None
    base: int
    max: int
    complexity: int = 1


TASK_KINDS = [
    # Transcription
    TaskKind("audio_transcription", "Transcription", "Audio Transcription",
             "Listen and transcribe exactly what is spoken. Use punctuation. If unclear, write [inaudible].",
             "audio", 10, 18),
    TaskKind("video_transcription", "Transcription", "Video Transcription",
             "Watch the clip and transcribe any spoken words. If no speech, describe visible on-screen text briefly.",
             "video", 18, 30, complexity=3),
    TaskKind("text_transcription", "Transcription", "Text Transcription",
             "Type the line below exactly as shown.",
             None, 10, 16),
    # Visual
    TaskKind("image_caption", "Visual Tasks", "Image Caption",
             "Write a clear 1-2 sentence caption describing what is visible (subjects and setting).",
             "image", 12, 22, complexity=2),
    TaskKind("image_tagging", "Visual Tasks", "Image Tagging",
             "Provide 8-12 comma-separated tags describing objects, place and action.",
             "image", 10, 18),
    TaskKind("content_moderation", "Visual Tasks", "Content Moderation",
             "Classify the content as safe or unsafe and explain in 1-2 sentences.",
             "image", 12, 22),
    # Writing
    TaskKind("text_cleanup", "Content & Writing", "Text Cleanup",
             "Rewrite the text to be clear and correct (fix grammar and spelling) without changing meaning.",
             None, 10, 16),
    TaskKind("document_check", "Content & Writing", "Document Check",
             "Check a short document snippet for missing details and suggest corrections. Return: issues=..., fixes=...",
             None, 10, 18),
    TaskKind("knowledge_base", "Content & Writing", "Knowledge Base",
             "Write a short FAQ entry (question and answer) for a product feature.",
             None, 12, 20),
    # Data
    TaskKind("data_entry", "Data & Research", "Data Entry",
             "Extract key fields from a short paragraph. Return as: name=, date=, amount=, location=.",
             None, 9, 16),
    TaskKind("price_audit", "Data & Research", "Price Audit",
             "Review a pricing line and flag mismatches. Return: risk_level=low|medium|high and notes.",
             None, 10, 18),
    TaskKind("lead_enrichment", "Data & Research", "Lead Enrichment",
             "Given a brief lead description, propose industry, company_size and likely_need with short justifications.",
             None, 12, 20),
    # Surveys
    TaskKind("survey_micro", "Surveys", "Micro Survey",
             "Answer the survey in 3-5 bullet points. Be honest, specific and concise.",
             None, 9, 16),
    TaskKind("survey_longform", "Surveys", "Long Survey",
             "Write a detailed survey response (120-200 words) with one real-life example and one recommendation.",
             None, 14, 24),
    TaskKind("survey_validation", "Surveys", "Survey Validation",
             "Check a short survey response for completeness. If information is missing, list 3 follow-up questions.",
             None, 10, 18),
    # QA
    TaskKind("ui_testing", "Quality Assurance", "UI Testing",
             "Review the screenshot and list 3 UI improvements (clarity, spacing, accessibility).",
             "image", 12, 22, complexity=2),
    TaskKind("bug_report", "Quality Assurance", "Bug Report",
             "Write a clear bug report with: summary, steps, expected, actual, environment.",
             None, 12, 20, complexity=2),
    # Support
    TaskKind("customer_chat", "Customer Support", "Customer Chat",
             "Reply to a customer query professionally: confirm the issue, propose a next step, ask one clarifying question.",
             None, 10, 18),
    TaskKind("email_triage", "Customer Support", "Email Triage",
             "Summarize an email in 2 lines and propose the next action. Tag it as: billing|support|sales|other.",
             None, 10, 18),
]

_SPEAKERS = ["Agent", "Customer", "Support", "Moderator"]
_METHODS = ["M-Pesa", "Airtel Money", "Bank", "Paybill"]
_AMOUNTS = [50, 100, 150, 200, 250, 500, 750, 1000]


def _transcription_line(i: int) -> str:
    speaker = _SPEAKERS[i % len(_SPEAKERS)]
    method = _METHODS[(i * 3) % len(_METHODS)]
    amount = _AMOUNTS[(i * 5) % len(_AMOUNTS)]
    return f"{speaker}: Please confirm withdrawal of KSH {amount} to {method} (ref TXN-{1000 + i})."


def build_task(kind: TaskKind, i: int, rng: random.Random) -> Task:
    """Create (unsaved) task number ``i`` of the given kind."""
    reward = max(MIN_REWARD, min(MAX_REWARD, rng.randint(kind.base, kind.max)))
    media_url = MEDIA[kind.media][i % len(MEDIA[kind.media])] if kind.media else None

    prompt = kind.prompt
    reference_text = None
    if kind.type == "text_transcription":
        reference_text = _transcription_line(i)
        prompt = f"{kind.prompt}\n\n{reference_text}"

    return Task(
        type=kind.type,
        category=kind.category,
        title=f"{kind.title} #{i}",
        description=kind.prompt,
        prompt=prompt,
        media_url=media_url,
        reference_text=reference_text,
        reward=reward,
        complexity=kind.complexity,
        active=True,
    )


def seed_catalog(count: int = 2500, database: Database | None = None, seed: int | None = None) -> int:
    """Populate an empty catalog.

    Args:
        count: Number of tasks to create (cycled over the task kinds)
        database: Database to seed (defaults to the global one)
        seed: Optional RNG seed for reproducible rewards

    Returns:
        Number of tasks created (0 when the catalog already has tasks)
    """
    database = database or db
    rng = random.Random(seed)

    with database.session() as session:
        existing = session.scalar(select(func.count(Task.id))) or 0
        if existing > 0:
            logger.info("catalog_seed_skipped", existing=existing)
            return 0

        for i in range(1, count + 1):
            session.add(build_task(TASK_KINDS[i % len(TASK_KINDS)], i, rng))

    logger.info("catalog_seeded", count=count, kinds=len(TASK_KINDS))
    return count
