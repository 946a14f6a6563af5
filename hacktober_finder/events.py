"""Messages exchanged between the input reader, the state machine and the fetch workers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .models import IssueCollection, Repository
from .paging import Direction


class Key(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    CONFIRM = "confirm"
    BACK = "back"
    REFRESH = "refresh"
    QUIT = "quit"
    FILTER = "filter"
    ERASE = "erase"


@dataclass(frozen=True)
class Typed:
    """A printable character, plus the key it stands for outside filter input."""

    char: str
    key: Key | None = None


class FetchKind(Enum):
    REPOS = "repos"
    ISSUES = "issues"


# ── Commands (state machine -> runner) ───────────────────────────


@dataclass(frozen=True)
class FetchRepos:
    request_id: int
    page: int
    direction: Direction = Direction.FORWARD

    kind = FetchKind.REPOS


@dataclass(frozen=True)
class FetchIssues:
    request_id: int
    repository: Repository

    kind = FetchKind.ISSUES


Command = Union[FetchRepos, FetchIssues]


# ── Completion events (runner -> state machine) ──────────────────


@dataclass(frozen=True)
class ReposLoaded:
    request_id: int
    repositories: tuple[Repository, ...]
    total_estimate: int
    page: int
    direction: Direction = Direction.FORWARD


@dataclass(frozen=True)
class IssuesLoaded:
    request_id: int
    collection: IssueCollection

    @property
    def repository(self) -> Repository:
        return self.collection.repository


@dataclass(frozen=True)
class FetchFailed:
    request_id: int
    kind: FetchKind
    error: Exception = field(compare=False)
    repository: Repository | None = None


CompletionEvent = Union[ReposLoaded, IssuesLoaded, FetchFailed]
