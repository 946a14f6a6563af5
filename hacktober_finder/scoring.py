from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable

from .config import (
    BUG_LABEL,
    EASY_LABEL_WORDS,
    FEATURE_LABEL,
    HARD_LABEL_WORDS,
    HELP_WANTED_LABEL,
)
from .models import Issue, Repository

RECENT_ACTIVITY_WINDOW = timedelta(days=30)

MIN_DIFFICULTY = 10
MAX_DIFFICULTY = 100


def score_repository(
    repo: Repository,
    preferred_languages: Iterable[str],
    *,
    now: datetime | None = None,
) -> int:
    """
    Relevance heuristic for ranking repositories:
    - popularity: one point per 10 stars, capped at 100
    - +20 when updated within the last 30 days
    - +50 when the primary language is one of the preferred ones (counted once)
    The total is not capped.
    """
    now = now or datetime.now(timezone.utc)
    score = min(100, max(repo.stars, 0) // 10)

    if repo.updated_at is not None and repo.updated_at > now - RECENT_ACTIVITY_WINDOW:
        score += 20

    if repo.language:
        language = repo.language.lower()
        if any(language == preferred.lower() for preferred in preferred_languages):
            score += 50

    return score


def _apply_label(score: int, label: str) -> int:
    name = label.lower()
    if any(word in name for word in EASY_LABEL_WORDS):
        return 20
    if HELP_WANTED_LABEL in name:
        return min(score, 40)
    if any(word in name for word in HARD_LABEL_WORDS):
        return 80
    if BUG_LABEL in name:
        return score + 10
    if FEATURE_LABEL in name:
        return score + 5
    return score


def score_issue(issue: Issue) -> int:
    """
    Difficulty heuristic in [10, 100], starting from 50 (intermediate).

    Labels are applied in the issue's label order and only the first matching
    rule fires per label. Overwrite rules therefore depend on that order:
    ("easy", "hard") ends at 80, ("hard", "easy") ends at 20.
    Busy discussions (>10 comments) add 15, quiet ones (<3) subtract 10.
    """
    score = 50
    for label in issue.labels:
        score = _apply_label(score, label)

    if issue.comments > 10:
        score += 15
    elif issue.comments < 3:
        score -= 10

    return max(MIN_DIFFICULTY, min(MAX_DIFFICULTY, score))


def difficulty_label(score: int) -> str:
    if score <= 30:
        return "Easy"
    if score <= 60:
        return "Medium"
    if score <= 80:
        return "Hard"
    return "Expert"
