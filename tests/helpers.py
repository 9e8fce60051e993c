"""Factories and fakes shared by the test modules."""

from datetime import datetime, timedelta, timezone

from actions_dash.models import Actor, Job, Step, Workflow, WorkflowRun

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimer:
    def __init__(self, clock, delay, function):
        self.delay = delay
        self.function = function
        self.created_at = clock()
        self.started = False
        self.cancelled = False

    @property
    def due_at(self):
        return self.created_at + self.delay

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function()


class FakeTimerFactory:
    """Records every timer so tests can fire them deterministically."""

    def __init__(self, clock):
        self.clock = clock
        self.timers = []

    def __call__(self, delay, function):
        timer = FakeTimer(self.clock, delay, function)
        self.timers.append(timer)
        return timer

    @property
    def live(self):
        return [t for t in self.timers if t.started and not t.cancelled]


def make_run(run_id=1, **overrides):
    fields = dict(
        id=run_id,
        name="CI",
        run_number=run_id,
        status="completed",
        conclusion="success",
        workflow_id=10,
        head_branch="main",
        head_sha=f"sha{run_id}",
        path=".github/workflows/ci.yml",
        event="push",
        created_at=T0,
        updated_at=T0 + timedelta(minutes=3),
        run_started_at=T0,
        actor=Actor(login="octocat", id=1),
    )
    fields.update(overrides)
    return WorkflowRun(**fields)


def make_workflow(workflow_id=10, **overrides):
    fields = dict(
        id=workflow_id,
        name=f"Workflow {workflow_id}",
        path=f".github/workflows/wf{workflow_id}.yml",
        state="active",
        created_at=T0,
        updated_at=T0,
    )
    fields.update(overrides)
    return Workflow(**fields)


def make_job(job_id=100, run_id=1, **overrides):
    fields = dict(
        id=job_id,
        name="build",
        run_id=run_id,
        status="completed",
        conclusion="success",
        started_at=T0,
        completed_at=T0 + timedelta(seconds=90),
        steps=(Step(name="Checkout", number=1, status="completed", conclusion="success"),),
    )
    fields.update(overrides)
    return Job(**fields)


def run_all(controller, submitted):
    """Execute every queued command and feed the events back, like the app does."""
    while submitted:
        command = submitted.pop(0)
        controller.handle_event(command())
