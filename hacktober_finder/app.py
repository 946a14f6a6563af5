"""Explorer application: wires settings, GitHub client, state machine and display."""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass

from rich.console import Console
from rich.live import Live

from .aggregator import SearchAggregator
from .config import Settings
from .display import render
from .events import Key, Typed
from .github_api import GitHubClient
from .logs import FetchObserver
from .runner import AsyncCommandRunner
from .state import ScreenStateMachine
from .terminal import KeyReader
from .views import Frame, build_view

log = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Collaborators built once at startup and passed explicitly."""

    settings: Settings
    client: GitHubClient
    aggregator: SearchAggregator
    observer: FetchObserver

    @classmethod
    def create(cls, settings: Settings) -> "AppContext":
        observer = FetchObserver()
        client = GitHubClient(token=settings.github_token or None)
        aggregator = SearchAggregator(client, topic=settings.topic, observer=observer)
        return cls(settings=settings, client=client, aggregator=aggregator, observer=observer)


class ExplorerApp:
    def __init__(
        self,
        context: AppContext,
        *,
        events: queue.Queue | None = None,
        reader=None,
        console: Console | None = None,
        log_path: str | None = None,
        runner: AsyncCommandRunner | None = None,
    ):
        self.context = context
        self.events: queue.Queue = events if events is not None else queue.Queue()
        self.machine = ScreenStateMachine(context.settings)
        self.runner = runner or AsyncCommandRunner(context.aggregator, context.settings, self.events)
        self.reader = reader if reader is not None else KeyReader(self.events)
        self.console = console or Console()
        self.log_path = log_path

    def frame(self) -> Frame:
        return build_view(
            self.machine.context, self.context.settings, log_path=self.log_path, height=self.console.size.height,
        )

    def process(self, event) -> None:
        """Route one queued event: keys to the state machine, completions to apply()."""
        if isinstance(event, (Key, Typed)):
            command = self.machine.handle_key(event)
            if command is not None:
                self.runner.dispatch(command)
        else:
            self.machine.apply(event)

    def run(self) -> None:
        log.info("Explorer loop starting")
        try:
            with self.reader, Live(
                render(self.frame()), console=self.console, auto_refresh=False, screen=True,
            ) as live:
                while not self.machine.quit_requested:
                    self.process(self.events.get())
                    live.update(render(self.frame()), refresh=True)
        except KeyboardInterrupt:
            log.info("Interrupted, quitting")
        finally:
            self.runner.shutdown()
        log.info("Explorer loop finished")
