"""Tests for view-model building and rendering."""

from datetime import datetime, timezone

from rich.console import Console

from hacktober_finder.config import Settings
from hacktober_finder.display import render
from hacktober_finder.events import FetchFailed, FetchKind, IssuesLoaded, Key, ReposLoaded, Typed
from hacktober_finder.github_api import GitHubAPIError
from hacktober_finder.models import Issue, IssueCollection, Repository
from hacktober_finder.state import Screen, ScreenStateMachine
from hacktober_finder.views import (
    ErrorView,
    IssueDetailView,
    IssueListView,
    LoadingView,
    RepoListView,
    WelcomeView,
    build_view,
    truncate,
    visible_window,
)

from fakes import make_issue, make_repo

SETTINGS = Settings(github_token="t", preferred_languages=["Go"], max_repos=2)


def machine_on_repo_list(repos, total=10):
    machine = ScreenStateMachine(SETTINGS)
    command = machine.handle_key(Key.CONFIRM)
    machine.apply(ReposLoaded(command.request_id, tuple(repos), total, 1))
    return machine


def machine_on_issue_detail(issue, repo):
    machine = machine_on_repo_list([repo])
    command = machine.handle_key(Key.CONFIRM)
    machine.apply(IssuesLoaded(command.request_id, IssueCollection.build(repo, [issue])))
    machine.handle_key(Key.CONFIRM)
    return machine


def rendered_text(frame, height=None) -> str:
    console = Console(width=160, height=height, record=True, color_system=None)
    console.print(render(frame))
    return console.export_text()


class TestTruncate:
    def test_short_text_unchanged(self):
        assert truncate("short", 10) == "short"

    def test_long_text_gets_ellipsis(self):
        result = truncate("x" * 150, 100)
        assert len(result) == 100
        assert result.endswith("...")


class TestBuildView:
    def test_welcome(self):
        frame = build_view(ScreenStateMachine(SETTINGS).context, SETTINGS)
        assert frame.view == WelcomeView(languages=("Go",), skill_level="intermediate", max_repos=2)
        assert frame.screen is Screen.WELCOME

    def test_searching(self):
        machine = ScreenStateMachine(SETTINGS)
        machine.handle_key(Key.CONFIRM)
        frame = build_view(machine.context, SETTINGS)
        assert isinstance(frame.view, LoadingView)
        assert frame.view.title == "Searching Repositories"
        assert frame.loading is True

    def test_repo_list_items(self):
        repo = Repository(
            owner="o", name="r", stars=1234, language="Go", description="d" * 200,
            updated_at=datetime(2024, 10, 3, tzinfo=timezone.utc),
        ).with_score(42)
        machine = machine_on_repo_list([repo, make_repo("other", score=1)])
        view = build_view(machine.context, SETTINGS).view

        assert isinstance(view, RepoListView)
        item = view.items[0]
        assert (item.rank, item.full_name, item.stars, item.score) == (1, "o/r", 1234, 42)
        assert len(item.description) == 100
        assert item.updated == "Oct 3, 2024"
        assert item.selected is True
        assert view.items[1].selected is False
        assert (view.page, view.total_pages, view.has_previous, view.has_next) == (1, 5, False, True)

    def test_empty_repo_list(self):
        view = build_view(machine_on_repo_list([]).context, SETTINGS).view
        assert view.items == ()
        assert "Try different filters" in view.empty_message

    def test_error_overlay(self):
        machine = ScreenStateMachine(SETTINGS)
        command = machine.handle_key(Key.CONFIRM)
        machine.apply(FetchFailed(command.request_id, FetchKind.REPOS, GitHubAPIError("boom")))
        frame = build_view(machine.context, SETTINGS, log_path="/tmp/h.log")
        assert isinstance(frame.view, ErrorView)
        assert frame.view.message == "Failed to load repositories: boom"
        assert frame.view.actions == ("Q: Back", "R: Retry")
        assert frame.error == "boom"

    def test_issue_list_label_summary(self):
        repo = make_repo("r", "o", score=5)
        labels = [f"label-{i}" for i in range(12)]
        issues = (
            make_issue(1, labels=labels[:6], repo=repo, difficulty=20),
            make_issue(2, labels=["label-0"] + labels[6:], repo=repo, difficulty=90),
        )
        machine = machine_on_repo_list([repo])
        command = machine.handle_key(Key.CONFIRM)
        machine.apply(IssuesLoaded(command.request_id, IssueCollection.build(repo, issues)))
        view = build_view(machine.context, SETTINGS).view

        assert isinstance(view, IssueListView)
        assert view.repository == "o/r"
        assert view.top_labels[0] == ("label-0", 2)
        assert len(view.top_labels) == 10
        assert view.more_labels == 2
        assert view.unique_labels == 12
        assert view.items[0].labels == ("label-0", "label-1", "label-2")
        assert view.items[1].difficulty_tag == "Expert"

    def test_issue_detail(self):
        repo = make_repo("r", "o", score=5)
        issue = Issue(
            repository=repo.key, number=7, title="Crash", author="dev",
            created_at=datetime(2024, 10, 1, 9, 30, tzinfo=timezone.utc),
            comments=4, labels=("bug",), body="b" * 800, html_url="https://github.com/o/r/issues/7",
        ).with_difficulty(60)
        machine = machine_on_repo_list([repo])
        command = machine.handle_key(Key.CONFIRM)
        machine.apply(IssuesLoaded(command.request_id, IssueCollection.build(repo, [issue])))
        machine.handle_key(Key.CONFIRM)
        view = build_view(machine.context, SETTINGS).view

        assert isinstance(view, IssueDetailView)
        assert view.created == "October 1, 2024 at 09:30"
        assert view.difficulty_tag == "Medium"
        assert view.repository == "o/r"


class TestRender:
    def test_error_shows_log_location_and_actions(self):
        machine = ScreenStateMachine(SETTINGS)
        command = machine.handle_key(Key.CONFIRM)
        machine.apply(FetchFailed(command.request_id, FetchKind.REPOS, GitHubAPIError("boom")))
        text = rendered_text(build_view(machine.context, SETTINGS, log_path="/tmp/h.log"))
        assert "/tmp/h.log" in text
        assert "Q: Back • R: Retry" in text

    def test_repo_list_paging_controls(self):
        machine = machine_on_repo_list([make_repo("a", score=3), make_repo("b", score=2)])
        text = rendered_text(build_view(machine.context, SETTINGS))
        assert "Page 1/5" in text
        assert "Next →" in text
        assert "Previous" not in text

    def test_issue_detail_body_truncated(self):
        repo = make_repo("r", "o", score=5)
        issue = Issue(repository=repo.key, number=7, title="Crash", body="z" * 800).with_difficulty(60)
        machine = machine_on_repo_list([repo])
        command = machine.handle_key(Key.CONFIRM)
        machine.apply(IssuesLoaded(command.request_id, IssueCollection.build(repo, [issue])))
        machine.handle_key(Key.CONFIRM)
        text = rendered_text(build_view(machine.context, SETTINGS))
        assert text.count("z") == 497

    def test_welcome_renders(self):
        text = rendered_text(build_view(ScreenStateMachine(SETTINGS).context, SETTINGS))
        assert "Press ENTER" in text
        assert "Go" in text

    def test_bracketed_issue_text_is_not_markup(self):
        repo = make_repo("r", "o", score=5)
        issue = Issue(
            repository=repo.key, number=3, title="[Bug] tokenizer", author="[bold]dev",
            labels=("[/Status] Done", "[Type] Bug"), body="Prompt ends with [/INST] token",
            html_url="https://github.com/o/r/issues/3",
        ).with_difficulty(40)
        machine = machine_on_issue_detail(issue, repo)
        detail = rendered_text(build_view(machine.context, SETTINGS))
        assert "Prompt ends with [/INST] token" in detail
        assert "[/Status] Done, [Type] Bug" in detail
        assert "[bold]dev" in detail

        machine.handle_key(Key.BACK)
        listing = rendered_text(build_view(machine.context, SETTINGS))
        assert "[/Status] Done, [Type] Bug" in listing
        assert "#3: [Bug] tokenizer" in listing

    def test_bracketed_repository_text_is_not_markup(self):
        repo = Repository(
            owner="o", name="r", stars=50, language="[/]", description="Fine-tune [INST] prompts",
        ).with_score(5)
        text = rendered_text(build_view(machine_on_repo_list([repo]).context, SETTINGS))
        assert "[/]" in text
        assert "Fine-tune [INST] prompts" in text

    def test_selected_repository_rendered_in_short_terminal(self):
        repos = [make_repo(f"repo{i:02d}", score=100 - i) for i in range(50)]
        machine = machine_on_repo_list(repos, total=500)
        for _ in range(45):
            machine.handle_key(Key.DOWN)
        text = rendered_text(build_view(machine.context, SETTINGS, height=20), height=20)

        assert "owner/repo45" in text
        assert "owner/repo00" not in text
        assert "↑ 45 more" in text
        assert "↓ 2 more" in text
        assert len(text.rstrip("\n").splitlines()) <= 20

    def test_filter_prompt_and_no_matches(self):
        machine = machine_on_repo_list([make_repo("alpha", score=2), make_repo("beta", score=1)])
        machine.handle_key(Key.FILTER)
        for char in "zz":
            machine.handle_key(Typed(char))
        text = rendered_text(build_view(machine.context, SETTINGS))
        assert "Filter: zz" in text
        assert "(0 matching)" in text
        assert 'No repositories match "zz".' in text
        assert "Type to filter" in text


class TestVisibleWindow:
    def test_everything_fits(self):
        assert visible_window(5, 4, 10) == (0, 5)

    def test_selected_always_inside(self):
        for count in (1, 7, 30, 101):
            for size in (1, 3, 8):
                for selected in range(count):
                    start, stop = visible_window(count, selected, size)
                    assert start <= selected < stop
                    assert stop - start <= size

    def test_pages_are_fixed(self):
        assert visible_window(30, 8, 8) == (8, 16)
        assert visible_window(30, 15, 8) == (8, 16)
        assert visible_window(30, 29, 8) == (24, 30)

    def test_build_view_windows_issue_rows(self):
        repo = make_repo("r", "o", score=5)
        issues = [make_issue(n, repo=repo, difficulty=20) for n in range(1, 41)]
        machine = machine_on_repo_list([repo])
        command = machine.handle_key(Key.CONFIRM)
        machine.apply(IssuesLoaded(command.request_id, IssueCollection.build(repo, issues)))
        for _ in range(39):
            machine.handle_key(Key.DOWN)
        view = build_view(machine.context, SETTINGS, height=24).view

        assert view.total == 40
        assert len(view.items) == 10
        assert view.items[-1].selected is True
        assert view.items[-1].number == 40
        assert (view.hidden_above, view.hidden_below) == (30, 0)

    def test_no_height_keeps_every_row(self):
        repos = [make_repo(f"repo{i}", score=1) for i in range(30)]
        view = build_view(machine_on_repo_list(repos).context, SETTINGS).view
        assert len(view.items) == 30
        assert view.hidden_below == 0
