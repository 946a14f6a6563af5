from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Mapping


def parse_timestamp(raw: str | None) -> datetime | None:
    if not raw:
        return None
    # GitHub returns ISO 8601 with a trailing Z
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


def _unique(names) -> tuple[str, ...]:
    seen: set[str] = set()
    out: list[str] = []
    for name in names:
        if name and name not in seen:
            seen.add(name)
            out.append(name)
    return tuple(out)


@dataclass(frozen=True)
class RepoKey:
    owner: str
    name: str

    @classmethod
    def of(cls, owner: str, name: str) -> "RepoKey":
        return cls(owner=owner.lower(), name=name.lower())

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class RateLimitInfo:
    limit: int | None = None
    remaining: int | None = None
    reset_at: datetime | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitInfo":
        def _int(key: str) -> int | None:
            value = headers.get(key)
            try:
                return int(value) if value is not None else None
            except ValueError:
                return None

        reset = _int("X-RateLimit-Reset")
        return cls(
            limit=_int("X-RateLimit-Limit"),
            remaining=_int("X-RateLimit-Remaining"),
            reset_at=datetime.fromtimestamp(reset, tz=timezone.utc) if reset is not None else None,
        )


@dataclass(frozen=True)
class Repository:
    owner: str
    name: str
    stars: int
    language: str | None = None
    updated_at: datetime | None = None
    archived: bool = False
    description: str | None = None
    html_url: str = ""
    relevance_score: int | None = None

    @property
    def key(self) -> RepoKey:
        return RepoKey.of(self.owner, self.name)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    def with_score(self, score: int) -> "Repository":
        if self.relevance_score is not None:
            raise ValueError(f"Relevance score of {self.full_name} is already set")
        return replace(self, relevance_score=score)

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Repository":
        owner = (payload.get("owner") or {}).get("login", "")
        name = payload.get("name", "")
        return cls(
            owner=owner,
            name=name,
            stars=int(payload.get("stargazers_count") or 0),
            language=payload.get("language"),
            updated_at=parse_timestamp(payload.get("updated_at")),
            archived=bool(payload.get("archived", False)),
            description=payload.get("description"),
            html_url=payload.get("html_url") or f"https://github.com/{owner}/{name}",
        )


@dataclass(frozen=True)
class Issue:
    repository: RepoKey
    number: int
    title: str
    author: str = ""
    created_at: datetime | None = None
    comments: int = 0
    labels: tuple[str, ...] = ()
    body: str = ""
    html_url: str = ""
    difficulty_score: int | None = None

    def __post_init__(self):
        object.__setattr__(self, "labels", _unique(self.labels))

    @property
    def key(self) -> tuple[RepoKey, int]:
        return (self.repository, self.number)

    def with_difficulty(self, score: int) -> "Issue":
        if self.difficulty_score is not None:
            raise ValueError(f"Difficulty of #{self.number} is already set")
        return replace(self, difficulty_score=score)

    @staticmethod
    def is_pull_request(payload: Mapping[str, Any]) -> bool:
        return payload.get("pull_request") is not None

    @classmethod
    def from_api(cls, repository: RepoKey, payload: Mapping[str, Any]) -> "Issue":
        return cls(
            repository=repository,
            number=int(payload.get("number", 0)),
            title=(payload.get("title") or "").strip(),
            author=(payload.get("user") or {}).get("login", ""),
            created_at=parse_timestamp(payload.get("created_at")),
            comments=int(payload.get("comments") or 0),
            labels=tuple((label or {}).get("name", "") for label in payload.get("labels") or []),
            body=payload.get("body") or "",
            html_url=payload.get("html_url", ""),
        )


@dataclass(frozen=True)
class IssueCollection:
    """All issues fetched for one repository, rebuilt on every fetch."""

    repository: Repository
    issues: tuple[Issue, ...] = ()
    label_counts: dict[str, int] = field(default_factory=dict)

    @classmethod
    def build(cls, repository: Repository, issues) -> "IssueCollection":
        issues = tuple(issues)
        counts: Counter[str] = Counter()
        for issue in issues:
            counts.update(label.lower() for label in issue.labels)
        return cls(repository=repository, issues=issues, label_counts=dict(counts))

    def top_labels(self, limit: int) -> list[tuple[str, int]]:
        # sorted() is stable, so equal counts stay in first-seen order
        return sorted(self.label_counts.items(), key=lambda item: item[1], reverse=True)[:limit]

    def __len__(self) -> int:
        return len(self.issues)


@dataclass(frozen=True)
class PageState:
    page_number: int
    page_size: int
    has_more_pages: bool
    total_available_estimate: int
