"""GitHub Actions dashboard: Textual TUI host.

The app owns no dashboard state. It forwards keys and resizes to
``DashboardController``, runs commands on thread workers and hands their
completion events back to the controller on the UI thread.

Launch with: python -m actions_dash
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from textual import events, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Static

from .commands import Command, CommandFactory, Event
from .config import DashConfig
from .controller import DashboardController
from .github import GitHubClient
from .jobs_cache import JobsCache, JobsCoordinator

logger = logging.getLogger(__name__)


def normalize_key(event: events.Key) -> str:
    """Typed character for printable keys, Textual's key name otherwise."""
    char = event.character
    if char and len(char) == 1 and char.isprintable() and not char.isspace():
        return char
    return event.key


class ActionsDashboard(App):
    """Terminal dashboard for the workflows, runs, jobs and logs of one repository."""

    CSS = """
    Screen {
        overflow: hidden;
    }
    #frame {
        width: 100%;
        height: 100%;
    }
    """

    TITLE = "gh-actions-dash"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(self, client: GitHubClient, owner: str, repo: str, config: Optional[DashConfig] = None, **kwargs: object) -> None:
        super().__init__(**kwargs)
        self._config = config or DashConfig()
        cache = JobsCache(ttl=self._config.jobs_cache_ttl)
        self._commands = CommandFactory(client, owner, repo, cache, per_page=self._config.per_page)
        self._jobs = JobsCoordinator(cache, dispatch=self._dispatch_jobs_fetch, delay=self._config.debounce_seconds)
        self.controller = DashboardController(
            self._commands, self._jobs, self.submit, per_page=self._config.per_page
        )
        self._ui_thread_id: Optional[int] = None

    def compose(self) -> ComposeResult:
        yield Static(id="frame")

    def on_mount(self) -> None:
        self._ui_thread_id = threading.get_ident()
        self.controller.resize(self.size.width, self.size.height)
        self.controller.start()
        # Stops with the app.
        self.set_interval(self._config.sweep_interval, self._jobs.sweep)
        self._redraw()

    def on_unmount(self) -> None:
        self._jobs.cancel()

    def on_resize(self, event: events.Resize) -> None:
        self.controller.resize(event.size.width, event.size.height)
        self._redraw()

    def on_key(self, event: events.Key) -> None:
        event.stop()
        event.prevent_default()
        self.controller.handle_key(normalize_key(event))
        if self.controller.should_quit:
            self.exit()
            return
        self._redraw()

    # ------------------------------------------------------------------
    # Command pipeline
    # ------------------------------------------------------------------

    def submit(self, command: Command) -> None:
        """Start ``command`` on a worker thread. Safe to call from any thread."""
        if threading.get_ident() == self._ui_thread_id:
            self._run_command(command)
        else:
            self.call_from_thread(self._run_command, command)

    @work(thread=True)
    def _run_command(self, command: Command) -> None:
        """Execute one command in a background thread."""
        event = command()
        self.call_from_thread(self._dispatch_event, event)

    def _dispatch_event(self, event: Event) -> None:
        """Apply a completion event (called on UI thread)."""
        logger.debug("Event %s", type(event).__name__)
        self.controller.handle_event(event)
        self._redraw()

    def _dispatch_jobs_fetch(self, run_id: int) -> None:
        self.submit(self._commands.load_jobs(run_id))

    def _redraw(self) -> None:
        self.query_one("#frame", Static).update(self.controller.render())
