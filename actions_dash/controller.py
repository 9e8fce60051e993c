"""Dashboard controller: the view-state machine behind the TUI.

The controller owns every piece of UI state. It is driven by three inputs,
all delivered on the UI thread: key presses (``handle_key``), terminal
resizes (``resize``) and command completion events (``handle_event``). It
never performs I/O itself; loads are handed to ``submit`` as ``Command``
objects and their results come back through ``handle_event``.

``render`` turns the current state into a rich renderable for the app.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import styles
from .commands import (
    AllRunsLoaded,
    Command,
    CommandFactory,
    Event,
    JobsFailed,
    JobsLoaded,
    LoadFailed,
    LogsLoaded,
    WorkflowFileFailed,
    WorkflowFileLoaded,
    WorkflowRunsLoaded,
    WorkflowsLoaded,
)
from .config import DEFAULT_PER_PAGE
from .github.exceptions import ErrorKind
from .jobs_cache import JobsCoordinator
from .keys import KeyMap
from .logs import TextDocument, highlight_yaml
from .models import Job, Workflow, WorkflowRun
from .state import (
    MIN_HEIGHT,
    MIN_WIDTH,
    Layout,
    ListState,
    Mode,
    ModeEvent,
    Page,
    View,
    compute_layout,
    describe_state,
    parent_view,
    transition,
)
from .widgets import (
    RUN_TABLE_HEADER,
    render_list,
    render_run_preview,
    render_workflow_preview,
    run_row,
    workflow_row,
)

logger = logging.getLogger(__name__)

HELP_LINES = {
    View.ALL_RUNS: "Enter: View logs • w: Workflows • r: Refresh • n: Next page • p: Prev page • q: Quit",
    View.WORKFLOW_LIST: "Enter: View runs • a: All runs • Esc: Back • r: Refresh • n: Next page • p: Prev page • q: Quit",
    View.WORKFLOW_RUNS: "Enter: View logs • Esc: Back • a: All runs • r: Refresh • q: Quit",
    View.LOGS: (
        "↑/↓: Scroll • PgUp/PgDn: Page • g/G: Top/Bottom • /: Search • :: Jump to line"
        " • f/→: View workflow file • Esc: Back • q: Quit"
    ),
}
FILE_HELP = "Esc/←: Close • ↑/↓ PgUp/PgDn g/G: Scroll • q: Quit"

EMPTY_MESSAGES = {
    View.ALL_RUNS: (
        "No workflow runs in this repository",
        "Run a workflow or satisfy one of its trigger conditions",
    ),
    View.WORKFLOW_LIST: (
        "No GitHub Actions workflows in this repository",
        "Create a workflow file under .github/workflows/",
    ),
    View.WORKFLOW_RUNS: (
        "This workflow has no runs yet",
        "Run it manually or satisfy one of its trigger conditions",
    ),
}

REMEDIATION: dict[ErrorKind, tuple[str, ...]] = {
    ErrorKind.AUTH: (
        "Run `gh auth login` to sign in to GitHub",
        "Check the login state with `gh auth status`",
        "Make sure the token has the required scopes",
    ),
    ErrorKind.PERMISSION: (
        "Make sure the repository exists",
        "Make sure you have access to the repository",
        "For private repositories, grant the token repository access",
    ),
    ErrorKind.NOT_FOUND: (
        "Check the owner and repository names",
        "Make sure the repository exists",
        "Look for typos",
    ),
    ErrorKind.NETWORK: (
        "Check your internet connection",
        "Check your proxy settings",
        "Wait a moment and retry",
    ),
    ErrorKind.RATE_LIMIT: (
        "Wait a moment and retry",
        "Use an authenticated token",
    ),
}
GENERAL_REMEDIATION = (
    "Wait a moment and retry",
    "Check for GitHub CLI updates",
)

RUN_VIEWS = (View.ALL_RUNS, View.WORKFLOW_RUNS)


class DashboardController:
    def __init__(
        self,
        commands: CommandFactory,
        jobs: JobsCoordinator,
        submit: Callable[[Command], None],
        keymap: Optional[KeyMap] = None,
        per_page: int = DEFAULT_PER_PAGE,
    ):
        self.commands = commands
        self.jobs = jobs
        self.submit = submit
        self.keymap = keymap or KeyMap()

        self.view = View.ALL_RUNS
        self.mode = Mode.NORMAL
        self.width = 0
        self.height = 0

        self.all_runs: ListState[WorkflowRun] = ListState(page=Page(per_page=per_page))
        self.workflows: ListState[Workflow] = ListState(page=Page(per_page=per_page))
        self.workflow_runs: ListState[WorkflowRun] = ListState(page=Page(per_page=per_page))
        self.current_workflow: Optional[Workflow] = None
        self.current_run: Optional[WorkflowRun] = None

        # Jobs shown in the preview belong to jobs_run_id.
        self.current_jobs: Optional[list[Job]] = None
        self.jobs_run_id: Optional[int] = None
        self.jobs_error = ""

        self.logs = TextDocument()
        self.logs_run_id: Optional[int] = None
        self.file = TextDocument(highlighter=highlight_yaml, rule_marker=None)
        self.file_path = ""
        self.file_loading = False
        self.input_buffer = ""

        self.loading = False
        self.error: Optional[LoadFailed] = None
        self.last_command: Optional[Command] = None
        self.should_quit = False

    @property
    def owner(self) -> str:
        return self.commands.owner

    @property
    def repo(self) -> str:
        return self.commands.repo

    @property
    def layout(self) -> Layout:
        return compute_layout(self.width, self.height, self.view)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        self._issue(self.commands.load_all_runs(self.all_runs.page.page))

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        layout = self.layout
        self.logs.resize(layout.log_height)
        self.file.resize(layout.file_height)

    def _issue(self, command: Command) -> None:
        """Submit a load that owns the full-screen loading/error state."""
        self.loading = True
        self.error = None
        self.last_command = command
        logger.debug("Issuing %s", command.name)
        self.submit(command)

    def _set_view(self, view: View) -> None:
        self.view = view
        logger.debug("State: %s", describe_state(self.view, self.mode))

    def _set_mode(self, event: ModeEvent) -> None:
        self.mode = transition(self.mode, event)

    def _active_runs(self) -> Optional[ListState[WorkflowRun]]:
        if self.view is View.ALL_RUNS:
            return self.all_runs
        if self.view is View.WORKFLOW_RUNS:
            return self.workflow_runs
        return None

    # ------------------------------------------------------------------
    # Completion events
    # ------------------------------------------------------------------

    def handle_event(self, event: Event) -> None:
        if isinstance(event, WorkflowsLoaded):
            if not self._is_current(event):
                return
            self.loading = False
            self.workflows.replace(event.workflows)
            self.workflows.page.page = event.page
            self.workflows.page.total = event.total
        elif isinstance(event, WorkflowRunsLoaded):
            if not self._is_current(event):
                return
            self.loading = False
            self.workflow_runs.replace(event.runs)
            if event.runs and self.view is View.WORKFLOW_RUNS:
                self._request_jobs_now(event.runs[0].id)
        elif isinstance(event, AllRunsLoaded):
            if not self._is_current(event):
                return
            self.loading = False
            self.all_runs.replace(event.runs)
            self.all_runs.page.page = event.page
            self.all_runs.page.total = event.total
            if event.runs and self.view is View.ALL_RUNS:
                self._request_jobs_now(event.runs[0].id)
        elif isinstance(event, JobsLoaded):
            if self.jobs.accept(event.run_id):
                self._show_jobs(event.run_id, event.jobs)
            else:
                logger.debug("Discarding stale jobs for run %s", event.run_id)
        elif isinstance(event, JobsFailed):
            if self.jobs.accept(event.run_id):
                self.jobs_run_id = event.run_id
                self.current_jobs = None
                self.jobs_error = event.message
        elif isinstance(event, LogsLoaded):
            if not self._is_current(event):
                return
            self.loading = False
            if self.current_run is not None and self.current_run.id == event.run_id:
                self.logs.set_text(event.text)
                self.logs_run_id = event.run_id
        elif isinstance(event, WorkflowFileLoaded):
            if self._file_is_current(event.path):
                self.file_loading = False
                self.file.set_text(event.content)
        elif isinstance(event, WorkflowFileFailed):
            if self._file_is_current(event.path):
                self.file_loading = False
                self.file.set_text(f"Failed to fetch workflow file: {event.message}")
        elif isinstance(event, LoadFailed):
            if event.command is not None and not self._is_current(event.command):
                return
            self.loading = False
            self.error = event
            logger.debug("Load failed (%s): %s", event.kind.value, event.message)

    def _is_current(self, answer: Event | Command) -> bool:
        """True if ``answer`` belongs to the most recently issued full-screen load."""
        if self.last_command is not None and self.last_command.target == answer.target:
            return True
        logger.debug("Discarding superseded result for %s", answer.target)
        return False

    def _file_is_current(self, path: str) -> bool:
        return self.mode is Mode.FILE_VIEWER and self.file_path == path

    def _show_jobs(self, run_id: int, jobs: list[Job]) -> None:
        self.jobs_run_id = run_id
        self.current_jobs = jobs
        self.jobs_error = ""

    def _request_jobs_now(self, run_id: int) -> None:
        cached = self.jobs.request_now(run_id)
        if cached is not None:
            self._show_jobs(run_id, cached)

    def _schedule_jobs(self, run: Optional[WorkflowRun]) -> None:
        if run is None:
            return
        cached = self.jobs.schedule_fetch(run.id)
        if cached is not None:
            self._show_jobs(run.id, cached)

    # ------------------------------------------------------------------
    # Key handling
    # ------------------------------------------------------------------

    def handle_key(self, key: str) -> None:
        km = self.keymap
        if self.mode is Mode.SEARCH:
            self._handle_search_key(key)
        elif self.mode is Mode.JUMP:
            self._handle_jump_key(key)
        elif km.matches(key, "quit"):
            self.should_quit = True
        elif self.mode is Mode.FILE_VIEWER:
            self._handle_file_key(key)
        elif self.error is not None:
            if km.matches(key, "workflows"):
                self.switch_to_workflows()
            elif km.matches(key, "all_runs"):
                self.switch_to_all_runs()
            else:
                self._handle_error_key(key)
        elif self.view is View.LOGS:
            self._handle_logs_key(key)
        else:
            self._handle_list_key(key)

    def _edit_buffer(self, key: str, digits_only: bool = False) -> None:
        if self.keymap.matches(key, "delete"):
            self.input_buffer = self.input_buffer[:-1]
            return
        char = " " if key == "space" else key
        if len(char) != 1 or not char.isprintable():
            return
        if digits_only and not char.isdigit():
            return
        self.input_buffer += char

    def _handle_search_key(self, key: str) -> None:
        km = self.keymap
        if km.matches(key, "force_quit"):
            self.should_quit = True
        elif km.matches(key, "confirm"):
            self.logs.confirm_search(self.input_buffer)
            self.input_buffer = ""
            self._set_mode(ModeEvent.CONFIRM)
        elif km.matches(key, "cancel"):
            self.logs.clear_search()
            self.input_buffer = ""
            self._set_mode(ModeEvent.CANCEL)
        else:
            self._edit_buffer(key)

    def _handle_jump_key(self, key: str) -> None:
        km = self.keymap
        if km.matches(key, "force_quit"):
            self.should_quit = True
        elif km.matches(key, "confirm"):
            self.logs.jump(self.input_buffer)
            self.input_buffer = ""
            self._set_mode(ModeEvent.CONFIRM)
        elif km.matches(key, "cancel"):
            self.input_buffer = ""
            self._set_mode(ModeEvent.CANCEL)
        else:
            self._edit_buffer(key, digits_only=True)

    def _handle_file_key(self, key: str) -> None:
        km = self.keymap
        if km.matches(key, "back", "left"):
            self._set_mode(ModeEvent.CLOSE)
            self.file.clear()
            self.file_path = ""
            self.file_loading = False
            return
        if self.file_loading:
            return
        self._scroll(self.file, key)

    def _handle_error_key(self, key: str) -> None:
        km = self.keymap
        if km.matches(key, "refresh"):
            command = self.error.command if self.error and self.error.command else self.last_command
            if command is not None:
                self._issue(command)
            else:
                self.refresh()
        elif km.matches(key, "back"):
            self.error = None

    def _scroll(self, doc: TextDocument, key: str) -> bool:
        km = self.keymap
        viewport = doc.viewport
        if km.matches(key, "up"):
            viewport.scroll(-1)
        elif km.matches(key, "down"):
            viewport.scroll(1)
        elif km.matches(key, "page_up"):
            viewport.page_up()
        elif km.matches(key, "page_down"):
            viewport.page_down()
        elif km.matches(key, "home"):
            viewport.home()
        elif km.matches(key, "end"):
            viewport.end()
        else:
            return False
        return True

    def _handle_logs_key(self, key: str) -> None:
        km = self.keymap
        if km.matches(key, "search"):
            self.input_buffer = ""
            self._set_mode(ModeEvent.START_SEARCH)
        elif km.matches(key, "jump"):
            self.input_buffer = ""
            self._set_mode(ModeEvent.START_JUMP)
        elif km.matches(key, "view_file"):
            self.open_workflow_file()
        elif km.matches(key, "back"):
            if self.logs.search.active:
                self.logs.clear_search()
            else:
                self.go_back()
        elif km.matches(key, "left"):
            self.go_back()
        elif km.matches(key, "next_match"):
            self.logs.next_match()
        elif km.matches(key, "prev_match"):
            self.logs.previous_match()
        elif km.matches(key, "refresh"):
            self.refresh()
        elif km.matches(key, "workflows"):
            self.switch_to_workflows()
        elif km.matches(key, "all_runs"):
            self.switch_to_all_runs()
        else:
            self._scroll(self.logs, key)

    def _handle_list_key(self, key: str) -> None:
        km = self.keymap
        if km.matches(key, "back", "left"):
            self.go_back()
        elif km.matches(key, "select", "right"):
            self.select()
        elif km.matches(key, "refresh"):
            self.refresh()
        elif km.matches(key, "workflows"):
            self.switch_to_workflows()
        elif km.matches(key, "all_runs"):
            self.switch_to_all_runs()
        elif km.matches(key, "next_page"):
            self.next_page()
        elif km.matches(key, "prev_page"):
            self.prev_page()
        else:
            self._move_selection(key)

    def _move_selection(self, key: str) -> None:
        km = self.keymap
        lst = self._active_runs() or (self.workflows if self.view is View.WORKFLOW_LIST else None)
        if lst is None:
            return
        step = max(1, self._list_rows())
        if km.matches(key, "up"):
            changed = lst.move(-1)
        elif km.matches(key, "down"):
            changed = lst.move(1)
        elif km.matches(key, "page_up"):
            changed = lst.move(-step)
        elif km.matches(key, "page_down"):
            changed = lst.move(step)
        elif km.matches(key, "home"):
            changed = lst.select(0)
        elif km.matches(key, "end"):
            changed = lst.select(len(lst.items) - 1)
        else:
            return
        if changed and self.view in RUN_VIEWS:
            self._schedule_jobs(lst.selected)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def select(self) -> None:
        if self.view is View.WORKFLOW_LIST:
            workflow = self.workflows.selected
            if workflow is None:
                return
            self.current_workflow = workflow
            self.workflow_runs.replace([])
            self._set_view(View.WORKFLOW_RUNS)
            self._issue(self.commands.load_workflow_runs(workflow.id))
            return
        runs = self._active_runs()
        run = runs.selected if runs is not None else None
        if run is None:
            return
        self.current_run = run
        self.logs.clear()
        self.logs_run_id = None
        self._set_view(View.LOGS)
        self._issue(self.commands.load_logs(run.id))

    def go_back(self) -> None:
        parent = parent_view(self.view, self.current_workflow is not None)
        if parent is None:
            return
        if parent is View.ALL_RUNS:
            self.current_workflow = None
        self._set_view(parent)
        runs = self._active_runs()
        if runs is not None:
            self._schedule_jobs(runs.selected)

    def switch_to_workflows(self) -> None:
        self.current_workflow = None
        self._set_view(View.WORKFLOW_LIST)
        self._issue(self.commands.load_workflows(self.workflows.page.page))

    def switch_to_all_runs(self) -> None:
        self.current_workflow = None
        self._set_view(View.ALL_RUNS)
        self._issue(self.commands.load_all_runs(self.all_runs.page.page))

    def next_page(self) -> None:
        if self.view is View.WORKFLOW_LIST and self.workflows.page.has_next:
            self._issue(self.commands.load_workflows(self.workflows.page.page + 1))
        elif self.view is View.ALL_RUNS and self.all_runs.page.has_next:
            self._issue(self.commands.load_all_runs(self.all_runs.page.page + 1))

    def prev_page(self) -> None:
        if self.view is View.WORKFLOW_LIST and self.workflows.page.has_prev:
            self._issue(self.commands.load_workflows(self.workflows.page.page - 1))
        elif self.view is View.ALL_RUNS and self.all_runs.page.has_prev:
            self._issue(self.commands.load_all_runs(self.all_runs.page.page - 1))

    def refresh(self) -> None:
        if self.view is View.ALL_RUNS:
            self._issue(self.commands.load_all_runs(self.all_runs.page.page))
        elif self.view is View.WORKFLOW_LIST:
            self._issue(self.commands.load_workflows(self.workflows.page.page))
        elif self.view is View.WORKFLOW_RUNS and self.current_workflow is not None:
            self._issue(self.commands.load_workflow_runs(self.current_workflow.id))
        elif self.view is View.LOGS and self.current_run is not None:
            self.logs.clear()
            self.logs_run_id = None
            self._issue(self.commands.load_logs(self.current_run.id))

    def open_workflow_file(self) -> None:
        """Show the workflow file of the current run at the run's commit."""
        run = self.current_run
        if run is None:
            return
        path = run.path or (self.current_workflow.path if self.current_workflow else "")
        if not path:
            return
        self._set_mode(ModeEvent.OPEN_FILE)
        self.file.clear()
        self.file_path = path
        self.file_loading = True
        self.submit(self.commands.load_workflow_file(path, run.head_sha))

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> RenderableType:
        if self.width <= 0 or self.height <= 0:
            return Text("Loading...", style=styles.LOADING)
        layout = self.layout
        if layout.too_small:
            return Text(f"Terminal too small! Need {MIN_WIDTH}x{MIN_HEIGHT}", style=styles.ERROR)
        if self.error is not None:
            return self._render_error(self.error)
        if self.mode is Mode.FILE_VIEWER:
            return self._render_file()
        if self.loading:
            return Text("Loading...", style=styles.LOADING)
        if self.view is View.LOGS:
            return self._render_logs()
        return self._render_list_view(layout)

    def _title(self) -> str:
        if self.view is View.WORKFLOW_LIST:
            return f"GitHub Actions - {self.owner}/{self.repo}"
        if self.view is View.WORKFLOW_RUNS:
            name = self.current_workflow.name if self.current_workflow else ""
            return f"Workflow Runs - {name}"
        return f"All Workflow Runs - {self.owner}/{self.repo}"

    def _list_rows(self) -> int:
        layout = self.layout
        # The runs table has a column header row.
        return layout.list_height - 1 if self.view in RUN_VIEWS else layout.list_height

    def _render_list_view(self, layout: Layout) -> RenderableType:
        parts: list[RenderableType] = [Text(self._title(), style=styles.TITLE)]
        runs = self._active_runs()

        if runs is not None:
            items = runs
            page = self.all_runs.page if self.view is View.ALL_RUNS else None
            if runs.items:
                parts.append(Text(RUN_TABLE_HEADER, style=styles.HELP))
                parts.extend(render_list(runs.items, runs.index, self._list_rows(), run_row, layout.list_width))
            selected = runs.selected
            if selected is not None and self.jobs_run_id == selected.id:
                preview = render_run_preview(
                    selected, self.current_jobs, layout.preview_width, layout.preview_height, self.jobs_error
                )
            else:
                preview = render_run_preview(selected, None, layout.preview_width, layout.preview_height)
        else:
            items = self.workflows
            page = self.workflows.page
            if self.workflows.items:
                parts.extend(
                    render_list(
                        self.workflows.items, self.workflows.index, self._list_rows(), workflow_row, layout.list_width
                    )
                )
            preview = render_workflow_preview(self.workflows.selected, layout.preview_width, layout.preview_height)

        if not items.items:
            message, details = EMPTY_MESSAGES[self.view]
            parts.extend([Text(""), Text(message, style=styles.HELP), Text(details, style=styles.HELP), Text("")])
        if page is not None and page.total > 0:
            parts.append(Text(page.info(), style=styles.HELP))
        parts.append(Text(HELP_LINES[self.view], style=styles.HELP))

        grid = Table.grid(padding=(0, 1))
        grid.add_column(width=layout.list_width)
        grid.add_column(width=layout.preview_width)
        grid.add_row(Group(*parts), preview)
        return grid

    def _prompt_line(self) -> Text:
        if self.mode is Mode.SEARCH:
            return Text(f"/{self.input_buffer}_  (Enter: search, Esc: cancel)", style=styles.HELP)
        if self.mode is Mode.JUMP:
            return Text(f":{self.input_buffer}_  (Enter to jump / Esc to cancel)", style=styles.HELP)
        if self.logs.search.active:
            label = self.logs.search.match_label()
            return Text(f"{label} • n/N: next/prev match, Esc: reset", style=styles.HELP)
        return Text("")

    def _render_logs(self) -> RenderableType:
        run = self.current_run
        if run is None:
            return Text("No run selected", style=styles.HELP)
        header = Text(f"Logs - Run #{run.run_number}", style=styles.TITLE)
        if self.logs_run_id != run.id:
            return Group(header, Text("Loading logs...", style=styles.LOADING))

        live_query = self.input_buffer if self.mode is Mode.SEARCH and self.input_buffer else None
        rows = self.logs.render(self.width, highlight=live_query)
        body: RenderableType = Text("\n").join(rows) if rows else Text("(no log output)", style=styles.HELP)
        return Group(header, body, self._prompt_line(), Text(HELP_LINES[View.LOGS], style=styles.HELP))

    def _render_file(self) -> RenderableType:
        title = f"Workflow File: {self.file_path}" if self.file_path else "Workflow File"
        header = Text(title, style=styles.TITLE)
        if self.file_loading:
            body: RenderableType = Text("Loading workflow file...", style=styles.LOADING)
        elif self.file.empty:
            body = Text("(empty file)", style=styles.HELP)
        else:
            body = Text("\n").join(self.file.render(max(0, self.width - 4)))
        return Group(header, body, Text(FILE_HELP, style=styles.HELP))

    def _render_error(self, error: LoadFailed) -> RenderableType:
        text = Text()
        text.append(f"✗ {error.message}\n\n", style=styles.ERROR)
        if error.hint:
            text.append(f"{error.hint}\n\n", style=styles.HELP)
        steps = REMEDIATION.get(error.kind)
        text.append("How to fix:\n" if steps else "General fixes:\n", style=styles.SUBTITLE)
        for i, step in enumerate(steps or GENERAL_REMEDIATION, start=1):
            text.append(f"  {i}. {step}\n", style=styles.HELP)
        text.append("\nr: retry • q: quit", style=styles.HELP)
        return Panel(text, border_style=styles.FAILURE, title="Error", title_align="left")
