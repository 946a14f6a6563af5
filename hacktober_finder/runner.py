"""Background execution of fetch commands.

Each dispatched command runs on a worker thread and produces exactly one
completion event on the shared queue. Workers never touch the state machine.
"""

from __future__ import annotations

import logging
import queue
from concurrent.futures import Future, ThreadPoolExecutor

from .aggregator import SearchAggregator
from .config import Settings
from .events import (
    Command,
    CompletionEvent,
    FetchFailed,
    FetchIssues,
    FetchRepos,
    IssuesLoaded,
    ReposLoaded,
)

log = logging.getLogger(__name__)


class AsyncCommandRunner:
    def __init__(
        self,
        aggregator: SearchAggregator,
        settings: Settings,
        events: queue.Queue,
        *,
        executor: ThreadPoolExecutor | None = None,
    ):
        self.aggregator = aggregator
        self.settings = settings
        self.events = events
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="fetch")

    def dispatch(self, command: Command) -> Future:
        log.debug("Submitting %s", command)
        return self._executor.submit(self._run, command)

    def execute(self, command: Command) -> CompletionEvent:
        """Run a command on the calling thread and return its completion event."""
        try:
            if isinstance(command, FetchRepos):
                result = self.aggregator.search_repositories(
                    self.settings.min_stars,
                    self.settings.preferred_languages,
                    self.settings.max_repos,
                    page=command.page,
                )
                return ReposLoaded(
                    request_id=command.request_id,
                    repositories=tuple(result.repositories),
                    total_estimate=result.total_estimate,
                    page=command.page,
                    direction=command.direction,
                )
            if isinstance(command, FetchIssues):
                collection = self.aggregator.fetch_issues(
                    command.repository, self.settings.max_issues_per_repo,
                )
                return IssuesLoaded(request_id=command.request_id, collection=collection)
            raise TypeError(f"Unknown command: {command!r}")
        except Exception as e:  # noqa: BLE001
            log.exception("%s fetch failed (request %d)", command.kind.value, command.request_id)
            return FetchFailed(
                request_id=command.request_id,
                kind=command.kind,
                error=e,
                repository=getattr(command, "repository", None),
            )

    def _run(self, command: Command) -> None:
        self.events.put(self.execute(command))

    def shutdown(self) -> None:
        # in-flight fetches are abandoned; their events are never consumed
        self._executor.shutdown(wait=False, cancel_futures=True)
