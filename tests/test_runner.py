from __future__ import annotations

import queue
import unittest
from concurrent.futures import ThreadPoolExecutor

from hacktober_finder.aggregator import SearchAggregator
from hacktober_finder.config import Settings
from hacktober_finder.events import (
    FetchFailed,
    FetchIssues,
    FetchKind,
    FetchRepos,
    IssuesLoaded,
    ReposLoaded,
)
from hacktober_finder.github_api import GitHubAPIError, SearchPage
from hacktober_finder.paging import Direction
from hacktober_finder.runner import AsyncCommandRunner

from fakes import FakeGitHubClient, issue_payload, make_repo, repo_payload


class RunnerTest(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = Settings(github_token="t", preferred_languages=["Go"], max_repos=10)
        self.client = FakeGitHubClient(
            searches={
                "topic:hacktoberfest stars:>=20 archived:false": SearchPage(total_count=77),
                "topic:hacktoberfest stars:>=20 archived:false language:go": SearchPage(
                    items=[repo_payload("o", "r", 300, "Go")]
                ),
            },
            issues=[issue_payload(1, labels=["bug"])],
        )
        self.events: queue.Queue = queue.Queue()
        self.runner = AsyncCommandRunner(SearchAggregator(self.client), self.settings, self.events)

    def tearDown(self) -> None:
        self.runner.shutdown()

    def test_execute_repos(self) -> None:
        event = self.runner.execute(FetchRepos(4, page=2, direction=Direction.BACKWARD))
        self.assertIsInstance(event, ReposLoaded)
        self.assertEqual(event.request_id, 4)
        self.assertEqual(event.page, 2)
        self.assertEqual(event.direction, Direction.BACKWARD)
        self.assertEqual(event.total_estimate, 77)
        self.assertEqual([r.name for r in event.repositories], ["r"])
        self.assertEqual(self.client.search_calls[1]["page"], 2)

    def test_execute_issues(self) -> None:
        repo = make_repo("r", "o")
        event = self.runner.execute(FetchIssues(5, repo))
        self.assertIsInstance(event, IssuesLoaded)
        self.assertEqual(event.repository, repo)
        self.assertEqual(len(event.collection), 1)

    def test_failure_becomes_event(self) -> None:
        self.client.issues = GitHubAPIError("gone")
        repo = make_repo("r", "o")
        event = self.runner.execute(FetchIssues(6, repo))
        self.assertIsInstance(event, FetchFailed)
        self.assertEqual(event.kind, FetchKind.ISSUES)
        self.assertEqual(event.repository, repo)
        self.assertEqual(str(event.error), "gone")

    def test_unexpected_exception_becomes_event(self) -> None:
        def explode(*args, **kwargs):
            raise RuntimeError("bug")

        self.client.search_repositories = explode
        event = self.runner.execute(FetchRepos(7, page=1))
        self.assertIsInstance(event, FetchFailed)
        self.assertEqual(event.kind, FetchKind.REPOS)
        self.assertIsNone(event.repository)

    def test_dispatch_posts_exactly_one_event(self) -> None:
        executor = ThreadPoolExecutor(max_workers=1)
        runner = AsyncCommandRunner(SearchAggregator(self.client), self.settings, self.events, executor=executor)
        runner.dispatch(FetchRepos(8, page=1)).result(timeout=5)
        runner.dispatch(FetchIssues(9, make_repo("r", "o"))).result(timeout=5)
        executor.shutdown(wait=True)

        first = self.events.get_nowait()
        second = self.events.get_nowait()
        self.assertEqual((first.request_id, second.request_id), (8, 9))
        self.assertTrue(self.events.empty())


if __name__ == "__main__":
    unittest.main()
