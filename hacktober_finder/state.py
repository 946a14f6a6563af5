"""Screen state machine: turns keys and completion events into screen changes and fetch commands.

The machine never performs I/O. handle_key() returns the fetch command the
caller must dispatch, apply() consumes the completion event that comes back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum

from .config import Settings
from .events import (
    Command,
    CompletionEvent,
    FetchFailed,
    FetchIssues,
    FetchKind,
    FetchRepos,
    IssuesLoaded,
    Key,
    ReposLoaded,
    Typed,
)
from .models import Issue, IssueCollection, Repository
from .paging import Direction, PagingCursor, focus_index

log = logging.getLogger(__name__)


class Screen(Enum):
    WELCOME = "welcome"
    SEARCHING = "searching"
    REPO_LIST = "repo_list"
    ISSUE_LIST = "issue_list"
    ISSUE_DETAIL = "issue_detail"


# Where BACK leads from each screen
PREVIOUS_SCREEN = {
    Screen.REPO_LIST: Screen.WELCOME,
    Screen.ISSUE_LIST: Screen.REPO_LIST,
    Screen.ISSUE_DETAIL: Screen.ISSUE_LIST,
}


@dataclass
class ScreenContext:
    cursor: PagingCursor
    screen: Screen = Screen.WELCOME
    repositories: list[Repository] = field(default_factory=list)
    issues: IssueCollection | None = None
    selected_repo: Repository | None = None
    selected_issue: Issue | None = None
    error: Exception | None = None
    loading: bool = False
    pending: FetchKind | None = None
    repo_index: int = 0
    issue_index: int = 0
    filter_text: str = ""
    filtering: bool = False

    @property
    def issue_list(self) -> tuple[Issue, ...]:
        return self.issues.issues if self.issues else ()

    @property
    def visible_repositories(self) -> list[Repository]:
        """Repositories matching the filter, by "owner/name description"."""
        if not self.filter_text:
            return self.repositories
        needle = self.filter_text.lower()
        return [
            repo for repo in self.repositories
            if needle in f"{repo.full_name} {repo.description or ''}".lower()
        ]

    @property
    def visible_issues(self) -> tuple[Issue, ...]:
        """Issues matching the filter, by "#number title"."""
        if not self.filter_text:
            return self.issue_list
        needle = self.filter_text.lower()
        return tuple(issue for issue in self.issue_list if needle in f"#{issue.number} {issue.title}".lower())


class ScreenStateMachine:
    def __init__(self, settings: Settings, *, drop_stale: bool | None = None):
        self.settings = settings
        self.drop_stale = settings.drop_stale_completions if drop_stale is None else drop_stale
        self.context = ScreenContext(cursor=PagingCursor(settings.max_repos))
        self.quit_requested = False
        self._request_counter = 0
        self._outstanding: int | None = None
        self._last_command: Command | None = None
        self._page_before_dispatch: int | None = None

    @property
    def screen(self) -> Screen:
        return self.context.screen

    # ── Input ───────────────────────────────────────────────────

    def handle_key(self, key: Key | Typed) -> Command | None:
        ctx = self.context
        if ctx.filtering and not ctx.loading and ctx.error is None and self._on_filter_input(key):
            return None
        if isinstance(key, Typed):
            if key.key is None:
                return None
            key = key.key

        if key is Key.QUIT:
            self.quit_requested = True
            return None

        if ctx.loading:
            if key is Key.BACK:
                self._cancel()
            return None

        if ctx.error is not None:
            if key is Key.BACK:
                self._back()
            elif key is Key.REFRESH:
                return self._retry()
            return None

        if key in (Key.UP, Key.DOWN):
            self._move_selection(-1 if key is Key.UP else 1)
            return None
        if key is Key.FILTER:
            if ctx.screen in (Screen.REPO_LIST, Screen.ISSUE_LIST):
                ctx.filtering = True
            return None
        if key is Key.BACK:
            if ctx.filter_text:
                self._clear_filter()
            else:
                self._back()
            return None

        handler = {
            Screen.WELCOME: self._on_welcome,
            Screen.REPO_LIST: self._on_repo_list,
            Screen.ISSUE_LIST: self._on_issue_list,
        }.get(ctx.screen)
        return handler(key) if handler else None

    def _on_welcome(self, key: Key) -> Command | None:
        if key is not Key.CONFIRM:
            return None
        self.context.cursor.reset()
        self._enter(Screen.SEARCHING)
        return self._dispatch_repos(1, Direction.FORWARD)

    def _on_repo_list(self, key: Key) -> Command | None:
        ctx = self.context
        cursor = ctx.cursor

        if key is Key.CONFIRM:
            visible = ctx.visible_repositories
            if not visible:
                return None
            ctx.selected_repo = visible[ctx.repo_index]
            return self._dispatch(FetchIssues(self._next_request_id(), ctx.selected_repo))

        if key is Key.RIGHT:
            previous = cursor.current_page
            if not cursor.advance():
                return None
            self._page_before_dispatch = previous
            return self._dispatch_repos(cursor.current_page, Direction.FORWARD)

        if key is Key.LEFT:
            previous = cursor.current_page
            if not cursor.retreat():
                return None
            self._page_before_dispatch = previous
            return self._dispatch_repos(cursor.current_page, Direction.BACKWARD)

        if key is Key.REFRESH:
            return self._dispatch_repos(cursor.current_page, Direction.FORWARD)
        return None

    def _on_issue_list(self, key: Key) -> Command | None:
        ctx = self.context
        if key is Key.CONFIRM:
            visible = ctx.visible_issues
            if not visible:
                return None
            ctx.selected_issue = visible[ctx.issue_index]
            self._enter(Screen.ISSUE_DETAIL)
            return None

        if key is Key.REFRESH and ctx.selected_repo is not None:
            return self._dispatch(FetchIssues(self._next_request_id(), ctx.selected_repo))
        return None

    def _move_selection(self, step: int) -> None:
        ctx = self.context
        if ctx.screen is Screen.REPO_LIST and ctx.visible_repositories:
            ctx.repo_index = max(0, min(len(ctx.visible_repositories) - 1, ctx.repo_index + step))
        elif ctx.screen is Screen.ISSUE_LIST and ctx.visible_issues:
            ctx.issue_index = max(0, min(len(ctx.visible_issues) - 1, ctx.issue_index + step))

    # ── Filtering ───────────────────────────────────────────────

    def _on_filter_input(self, key: Key | Typed) -> bool:
        """Consume a key while the filter prompt is open; False lets it through."""
        ctx = self.context
        if isinstance(key, Typed):
            self._set_filter(ctx.filter_text + key.char)
        elif key is Key.ERASE:
            self._set_filter(ctx.filter_text[:-1])
        elif key is Key.CONFIRM:
            ctx.filtering = False
        elif key is Key.BACK:
            self._clear_filter()
        elif key in (Key.UP, Key.DOWN, Key.QUIT):
            return False
        return True

    def _set_filter(self, text: str) -> None:
        ctx = self.context
        ctx.filter_text = text
        if ctx.screen is Screen.REPO_LIST:
            ctx.repo_index = 0
        elif ctx.screen is Screen.ISSUE_LIST:
            ctx.issue_index = 0

    def _clear_filter(self) -> None:
        """Drop the filter, keeping the same item selected in the full list."""
        ctx = self.context
        if ctx.filter_text:
            if ctx.screen is Screen.REPO_LIST:
                visible = ctx.visible_repositories
                if 0 <= ctx.repo_index < len(visible):
                    ctx.repo_index = ctx.repositories.index(visible[ctx.repo_index])
            elif ctx.screen is Screen.ISSUE_LIST:
                visible = ctx.visible_issues
                if 0 <= ctx.issue_index < len(visible):
                    ctx.issue_index = ctx.issue_list.index(visible[ctx.issue_index])
        ctx.filter_text = ""
        ctx.filtering = False

    def _back(self) -> None:
        ctx = self.context
        ctx.error = None
        if ctx.screen is Screen.WELCOME:
            self.quit_requested = True
            return
        target = PREVIOUS_SCREEN.get(ctx.screen, Screen.WELCOME)
        if ctx.screen is Screen.REPO_LIST:
            ctx.cursor.reset()
            ctx.repo_index = 0
        log.debug("Back: %s -> %s", ctx.screen.value, target.value)
        self._enter(target)

    def _cancel(self) -> None:
        ctx = self.context
        log.info("Cancelled in-flight %s fetch (request %s)", ctx.pending and ctx.pending.value, self._outstanding)
        ctx.loading = False
        self._outstanding = None
        if ctx.pending is FetchKind.ISSUES and ctx.screen is Screen.REPO_LIST:
            ctx.selected_repo = None
        ctx.pending = None
        if self._page_before_dispatch is not None:
            ctx.cursor.current_page = self._page_before_dispatch
            self._page_before_dispatch = None
        if ctx.screen is Screen.SEARCHING:
            self._enter(Screen.WELCOME)

    def _retry(self) -> Command | None:
        if self._last_command is None:
            return None
        log.info("Retrying %s fetch", self._last_command.kind.value)
        return self._dispatch(replace(self._last_command, request_id=self._next_request_id()))

    # ── Dispatch ────────────────────────────────────────────────

    def _next_request_id(self) -> int:
        self._request_counter += 1
        return self._request_counter

    def _dispatch_repos(self, page: int, direction: Direction) -> Command:
        return self._dispatch(FetchRepos(self._next_request_id(), page, direction))

    def _dispatch(self, command: Command) -> Command:
        ctx = self.context
        ctx.loading = True
        ctx.pending = command.kind
        ctx.error = None
        self._outstanding = command.request_id
        self._last_command = command
        log.debug("Dispatching %s", command)
        return command

    # ── Completion events ───────────────────────────────────────

    def apply(self, event: CompletionEvent) -> bool:
        """Apply a completion event; returns False when it was dropped as stale."""
        ctx = self.context
        current = event.request_id == self._outstanding
        if not current:
            if self.drop_stale:
                log.info("Dropping stale completion for request %d", event.request_id)
                return False
            log.warning(
                "Applying stale completion for request %d (outstanding: %s)",
                event.request_id, self._outstanding,
            )
        else:
            ctx.loading = False
            ctx.pending = None
            self._outstanding = None
            self._page_before_dispatch = None

        if isinstance(event, ReposLoaded):
            self._apply_repos(event)
        elif isinstance(event, IssuesLoaded):
            self._apply_issues(event)
        elif isinstance(event, FetchFailed):
            self._apply_failure(event)
        else:
            raise TypeError(f"Unknown completion event: {event!r}")
        return True

    def _apply_repos(self, event: ReposLoaded) -> None:
        ctx = self.context
        self._enter(Screen.REPO_LIST)
        ctx.error = None
        ctx.repositories = list(event.repositories)
        has_more = ctx.cursor.record_fetch(event.page, len(event.repositories), event.total_estimate)
        ctx.repo_index = focus_index(event.direction, len(ctx.repositories))
        log.info(
            "Repositories page %d loaded: %d repos (global total ~%d), has more: %s",
            event.page, len(ctx.repositories), event.total_estimate, has_more,
        )

    def _apply_issues(self, event: IssuesLoaded) -> None:
        ctx = self.context
        self._enter(Screen.ISSUE_LIST)
        ctx.error = None
        ctx.selected_repo = event.repository
        ctx.issues = event.collection
        ctx.issue_index = 0
        log.info(
            "Issues loaded for %s: %d issues, %d unique labels",
            event.repository.full_name, len(event.collection), len(event.collection.label_counts),
        )

    def _apply_failure(self, event: FetchFailed) -> None:
        ctx = self.context
        if event.kind is FetchKind.ISSUES:
            repo = event.repository or ctx.selected_repo
            self._enter(Screen.ISSUE_LIST)
            ctx.selected_repo = repo
            ctx.issues = None
        else:
            self._enter(Screen.REPO_LIST)
        ctx.error = event.error
        log.error("%s fetch failed: %s", event.kind.value, event.error)

    def _enter(self, screen: Screen) -> None:
        self._clear_filter()
        ctx = self.context
        ctx.screen = screen
        if screen is not Screen.ISSUE_DETAIL:
            ctx.selected_issue = None
        if screen in (Screen.WELCOME, Screen.SEARCHING, Screen.REPO_LIST):
            # an outstanding issue fetch still owns the chosen repository
            if ctx.pending is not FetchKind.ISSUES:
                ctx.selected_repo = None
            ctx.issues = None
            ctx.issue_index = 0
        if screen in (Screen.WELCOME, Screen.SEARCHING):
            ctx.repositories = []
            ctx.repo_index = 0
