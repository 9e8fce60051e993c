"""Deferred fetch operations and the completion events they produce.

A ``Command`` wraps exactly one GitHub client call. Running it never raises:
it returns one event, either the matching ``*Loaded`` variant or
``LoadFailed``. The app runs commands on worker threads and hands the events
back to the controller on the UI thread.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Union

from .github import GitHubClient, GitHubError, categorize_error
from .github.exceptions import ErrorKind
from .jobs_cache import JobsCache
from .models import Job, Workflow, WorkflowRun

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkflowsLoaded:
    workflows: list[Workflow]
    total: int
    page: int

    @property
    def target(self) -> tuple:
        return ("workflows", self.page)


@dataclass(frozen=True)
class WorkflowRunsLoaded:
    workflow_id: int
    runs: list[WorkflowRun]

    @property
    def target(self) -> tuple:
        return ("workflow_runs", self.workflow_id)


@dataclass(frozen=True)
class AllRunsLoaded:
    runs: list[WorkflowRun]
    total: int
    page: int

    @property
    def target(self) -> tuple:
        return ("all_runs", self.page)


@dataclass(frozen=True)
class JobsLoaded:
    run_id: int
    jobs: list[Job]


@dataclass(frozen=True)
class JobsFailed:
    run_id: int
    message: str


@dataclass(frozen=True)
class LogsLoaded:
    run_id: int
    text: str

    @property
    def target(self) -> tuple:
        return ("logs", self.run_id)


@dataclass(frozen=True)
class WorkflowFileLoaded:
    path: str
    content: str


@dataclass(frozen=True)
class WorkflowFileFailed:
    path: str
    message: str


@dataclass(frozen=True)
class LoadFailed:
    kind: ErrorKind
    message: str
    hint: str = ""
    command: Optional["Command"] = field(default=None, compare=False)


Event = Union[
    WorkflowsLoaded,
    WorkflowRunsLoaded,
    AllRunsLoaded,
    JobsLoaded,
    JobsFailed,
    LogsLoaded,
    WorkflowFileLoaded,
    WorkflowFileFailed,
    LoadFailed,
]


@dataclass(frozen=True)
class Command:
    """A named zero-argument fetch.

    ``on_error`` builds the failure event; by default a full-screen
    ``LoadFailed`` that remembers this command so refresh can reissue it.
    ``target`` names what a full-screen load fetches; its success event
    reports the same target, so a result can be matched to the load that
    is current.
    """

    name: str
    func: Callable[[], Event]
    on_error: Optional[Callable[[GitHubError], Event]] = None
    target: tuple = ()

    def __call__(self) -> Event:
        try:
            return self.func()
        except Exception as exc:  # converted to an event, never propagated
            error = exc if isinstance(exc, GitHubError) else categorize_error(exc)
            logger.warning("%s failed: %s (%s)", self.name, error.message, error.kind.value)
            if not isinstance(exc, GitHubError):
                logger.debug("Unexpected error in %s", self.name, exc_info=exc)
            if self.on_error is not None:
                return self.on_error(error)
            return LoadFailed(kind=error.kind, message=error.message, hint=error.hint, command=self)


class CommandFactory:
    """Builds commands bound to one repository."""

    def __init__(self, client: GitHubClient, owner: str, repo: str, cache: JobsCache, per_page: int = 100):
        self.client = client
        self.owner = owner
        self.repo = repo
        self.cache = cache
        self.per_page = per_page

    def load_workflows(self, page: int = 1) -> Command:
        def run() -> WorkflowsLoaded:
            workflows, total = self.client.list_workflows(self.owner, self.repo, page=page, per_page=self.per_page)
            return WorkflowsLoaded(workflows=workflows, total=total, page=page)

        return Command(f"load_workflows(page={page})", run, target=("workflows", page))

    def load_workflow_runs(self, workflow_id: int) -> Command:
        def run() -> WorkflowRunsLoaded:
            runs = self.client.list_runs_for_workflow(self.owner, self.repo, workflow_id)
            return WorkflowRunsLoaded(workflow_id=workflow_id, runs=runs)

        return Command(f"load_workflow_runs({workflow_id})", run, target=("workflow_runs", workflow_id))

    def load_all_runs(self, page: int = 1) -> Command:
        def run() -> AllRunsLoaded:
            runs, total = self.client.list_all_runs(self.owner, self.repo, page=page, per_page=self.per_page)
            return AllRunsLoaded(runs=runs, total=total, page=page)

        return Command(f"load_all_runs(page={page})", run, target=("all_runs", page))

    def load_jobs(self, run_id: int) -> Command:
        def run() -> JobsLoaded:
            jobs = self.client.get_jobs(self.owner, self.repo, run_id)
            self.cache.set(run_id, jobs)
            return JobsLoaded(run_id=run_id, jobs=jobs)

        return Command(
            f"load_jobs({run_id})",
            run,
            on_error=lambda error: JobsFailed(run_id=run_id, message=error.message),
        )

    def load_logs(self, run_id: int) -> Command:
        def run() -> LogsLoaded:
            return LogsLoaded(run_id=run_id, text=self.client.get_logs(self.owner, self.repo, run_id))

        return Command(f"load_logs({run_id})", run, target=("logs", run_id))

    def load_workflow_file(self, path: str, ref: str) -> Command:
        def run() -> WorkflowFileLoaded:
            content = self.client.get_file_at_ref(self.owner, self.repo, path, ref)
            return WorkflowFileLoaded(path=path, content=content)

        return Command(
            f"load_workflow_file({path}@{ref})",
            run,
            on_error=lambda error: WorkflowFileFailed(path=path, message=error.message),
        )
