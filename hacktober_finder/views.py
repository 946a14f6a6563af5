"""Plain view-models handed to the display layer, one variant per screen."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from .config import DESCRIPTION_PREVIEW_CHARS, TOP_LABELS_SHOWN, Settings
from .events import FetchKind
from .models import Issue, Repository
from .scoring import difficulty_label
from .state import Screen, ScreenContext


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


# Terminal lines taken by one row, and by everything around the rows
REPO_ROW_LINES = 3
REPO_LIST_CHROME = 9
ISSUE_ROW_LINES = 1
ISSUE_LIST_CHROME = 14


def visible_window(count: int, selected: int, size: int) -> tuple[int, int]:
    """The page of at most ``size`` rows that holds ``selected``, as a [start, stop) range."""
    size = max(1, size)
    if count <= size:
        return 0, count
    start = (min(max(selected, 0), count - 1) // size) * size
    return start, min(count, start + size)


def rows_that_fit(height: int | None, chrome: int, row_lines: int) -> int | None:
    if height is None:
        return None
    return max(1, (height - chrome) // row_lines)


def _date(value) -> str:
    return f"{value:%b} {value.day}, {value.year}" if value else "unknown"


@dataclass(frozen=True)
class RepoListItem:
    rank: int
    full_name: str
    stars: int
    language: str
    score: int
    description: str
    updated: str
    selected: bool = False

    @classmethod
    def from_repository(cls, rank: int, repo: Repository, selected: bool = False) -> "RepoListItem":
        return cls(
            rank=rank,
            full_name=repo.full_name,
            stars=repo.stars,
            language=repo.language or "",
            score=repo.relevance_score or 0,
            description=truncate(repo.description or "No description available", DESCRIPTION_PREVIEW_CHARS),
            updated=_date(repo.updated_at),
            selected=selected,
        )


@dataclass(frozen=True)
class IssueListItem:
    number: int
    title: str
    difficulty: int
    difficulty_tag: str
    comments: int
    created: str
    labels: tuple[str, ...]
    selected: bool = False

    @classmethod
    def from_issue(cls, issue: Issue, selected: bool = False) -> "IssueListItem":
        difficulty = issue.difficulty_score or 0
        return cls(
            number=issue.number,
            title=issue.title,
            difficulty=difficulty,
            difficulty_tag=difficulty_label(difficulty),
            comments=issue.comments,
            created=_date(issue.created_at),
            # only the first few labels fit on a row
            labels=issue.labels[:3],
            selected=selected,
        )


@dataclass(frozen=True)
class WelcomeView:
    languages: tuple[str, ...]
    skill_level: str
    max_repos: int


@dataclass(frozen=True)
class LoadingView:
    title: str
    message: str


@dataclass(frozen=True)
class ErrorView:
    title: str
    message: str
    actions: tuple[str, ...] = ("Q: Back", "R: Retry")


@dataclass(frozen=True)
class RepoListView:
    items: tuple[RepoListItem, ...]
    page: int
    total_pages: int
    total_estimate: int
    has_previous: bool
    has_next: bool
    hidden_above: int = 0
    hidden_below: int = 0
    filter_text: str = ""
    filtering: bool = False
    empty_message: str = "No repositories found matching your criteria. Try different filters."

    @property
    def filtered(self) -> bool:
        return self.filtering or bool(self.filter_text)


@dataclass(frozen=True)
class IssueListView:
    repository: str
    items: tuple[IssueListItem, ...]
    top_labels: tuple[tuple[str, int], ...] = ()
    more_labels: int = 0
    unique_labels: int = 0
    total: int = 0
    hidden_above: int = 0
    hidden_below: int = 0
    filter_text: str = ""
    filtering: bool = False
    empty_message: str = "No open issues found in this repository."

    @property
    def filtered(self) -> bool:
        return self.filtering or bool(self.filter_text)


@dataclass(frozen=True)
class IssueDetailView:
    repository: str
    number: int
    title: str
    author: str
    created: str
    comments: int
    difficulty: int
    difficulty_tag: str
    labels: tuple[str, ...]
    url: str
    body: str = ""


ViewModel = Union[WelcomeView, LoadingView, ErrorView, RepoListView, IssueListView, IssueDetailView]


@dataclass(frozen=True)
class Frame:
    """One render cycle: the screen's view plus the overlay flags it was derived from."""

    view: ViewModel
    screen: Screen
    loading: bool = False
    error: str | None = None
    log_path: str | None = field(default=None, compare=False)


def _loading_view(ctx: ScreenContext, settings: Settings) -> LoadingView:
    if ctx.screen is Screen.SEARCHING:
        langs = ", ".join(settings.preferred_languages) or "any language"
        return LoadingView(
            title="Searching Repositories",
            message=f"Searching for {settings.topic} repositories ({langs})... This may take a few moments.",
        )
    if ctx.pending is FetchKind.ISSUES:
        name = ctx.selected_repo.full_name if ctx.selected_repo else "repository"
        return LoadingView(title="Loading Issues", message=f"Fetching open issues for {name}...")
    return LoadingView(title="Loading Repositories", message="Please wait...")


def _error_view(ctx: ScreenContext) -> ErrorView:
    what = "issues" if ctx.screen is Screen.ISSUE_LIST else "repositories"
    return ErrorView(title="Error", message=f"Failed to load {what}: {ctx.error}")


def build_view(
    ctx: ScreenContext,
    settings: Settings,
    log_path: str | None = None,
    height: int | None = None,
) -> Frame:
    """Snapshot the context for rendering.

    With a terminal ``height``, list screens only carry the rows that fit,
    always including the selected one.
    """
    view = _build(ctx, settings, height)
    return Frame(
        view=view,
        screen=ctx.screen,
        loading=ctx.loading,
        error=str(ctx.error) if ctx.error is not None else None,
        log_path=log_path,
    )


def _build(ctx: ScreenContext, settings: Settings, height: int | None) -> ViewModel:
    if ctx.loading:
        return _loading_view(ctx, settings)
    if ctx.error is not None:
        return _error_view(ctx)

    if ctx.screen is Screen.REPO_LIST:
        cursor = ctx.cursor
        repos = ctx.visible_repositories
        size = rows_that_fit(height, REPO_LIST_CHROME, REPO_ROW_LINES) or len(repos)
        start, stop = visible_window(len(repos), ctx.repo_index, size)
        items = tuple(
            RepoListItem.from_repository(rank, repos[rank - 1], selected=(rank - 1 == ctx.repo_index))
            for rank in range(start + 1, stop + 1)
        )
        return RepoListView(
            items=items,
            page=cursor.current_page,
            total_pages=cursor.total_pages,
            total_estimate=cursor.total_estimate,
            has_previous=cursor.current_page > 1,
            has_next=cursor.has_more_pages,
            hidden_above=start,
            hidden_below=len(repos) - stop,
            filter_text=ctx.filter_text,
            filtering=ctx.filtering,
            empty_message=(
                f'No repositories match "{ctx.filter_text}".' if ctx.filter_text else RepoListView.empty_message
            ),
        )

    if ctx.screen is Screen.ISSUE_LIST:
        collection = ctx.issues
        repo_name = ctx.selected_repo.full_name if ctx.selected_repo else "Unknown"
        if collection is None:
            return IssueListView(repository=repo_name, items=())
        top = collection.top_labels(TOP_LABELS_SHOWN)
        issues = ctx.visible_issues
        size = rows_that_fit(height, ISSUE_LIST_CHROME, ISSUE_ROW_LINES) or len(issues)
        start, stop = visible_window(len(issues), ctx.issue_index, size)
        return IssueListView(
            repository=repo_name,
            items=tuple(
                IssueListItem.from_issue(issues[i], selected=(i == ctx.issue_index))
                for i in range(start, stop)
            ),
            total=len(collection.issues),
            hidden_above=start,
            hidden_below=len(issues) - stop,
            filter_text=ctx.filter_text,
            filtering=ctx.filtering,
            top_labels=tuple(top),
            more_labels=max(0, len(collection.label_counts) - len(top)),
            unique_labels=len(collection.label_counts),
            empty_message=f'No issues match "{ctx.filter_text}".' if ctx.filter_text else IssueListView.empty_message,
        )

    if ctx.screen is Screen.ISSUE_DETAIL and ctx.selected_issue is not None:
        issue = ctx.selected_issue
        difficulty = issue.difficulty_score or 0
        created = issue.created_at
        return IssueDetailView(
            repository=ctx.selected_repo.full_name if ctx.selected_repo else issue.repository.full_name,
            number=issue.number,
            title=issue.title,
            author=issue.author,
            created=f"{created:%B} {created.day}, {created:%Y at %H:%M}" if created else "unknown",
            comments=issue.comments,
            difficulty=difficulty,
            difficulty_tag=difficulty_label(difficulty),
            labels=issue.labels,
            url=issue.html_url,
            body=issue.body,
        )

    return WelcomeView(
        languages=tuple(settings.preferred_languages),
        skill_level=settings.skill_level.value,
        max_repos=settings.max_repos,
    )
