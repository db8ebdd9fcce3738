"""Answer normalization for reference-matched tasks."""

import re

MIN_ANSWER_LENGTH = 2

_CURLY_DOUBLE = re.compile(r"[“”„‟″]")
_CURLY_SINGLE = re.compile(r"[‘’‚‛′]")
_WHITESPACE = re.compile(r"\s+")


def normalize_answer(text: str | None) -> str:
    """Normalize free text for exact comparison.

    Drops carriage returns, straightens curly quotes, collapses whitespace
    runs to a single space, trims and lowercases. Normalizing an already
    normalized string returns it unchanged.
    """
    value = str(text or "").replace("\r", "")
    value = _CURLY_DOUBLE.sub('"', value)
    value = _CURLY_SINGLE.sub("'", value)
    value = _WHITESPACE.sub(" ", value)
    return value.strip().lower()


def answer_matches(answer: str, reference: str) -> bool:
    """Exact equality after normalization, no fuzzy matching."""
    return normalize_answer(answer) == normalize_answer(reference)


def is_substantive(answer: str | None) -> bool:
    """True when the trimmed answer meets the minimum length."""
    return len((answer or "").strip()) >= MIN_ANSWER_LENGTH
