"""Right-hand preview panel for the selected run or workflow."""

from __future__ import annotations

from typing import Optional, Sequence

from rich.console import RenderableType
from rich.panel import Panel
from rich.text import Text

from .. import styles
from ..models import Job, Step, Workflow, WorkflowRun
from ..utils import format_duration, format_timestamp, truncate
from .items import status_icon


def _panel(body: Text, width: int, height: int) -> Panel:
    return Panel(
        body,
        width=max(15, width),
        height=max(5, height),
        border_style=styles.BORDER,
        padding=(0, 1),
    )


def _field(text: Text, label: str, value: str | Text) -> None:
    text.append(f"{label}: ", style=styles.SUBTITLE)
    if isinstance(value, Text):
        text.append_text(value)
    else:
        text.append(value)
    text.append("\n")


def render_empty(width: int, height: int) -> Panel:
    return _panel(Text("Select an item to see details", style=styles.HELP), width, height)


def _step_line(step: Step, name_width: int) -> Text:
    status = step.ci_status
    line = Text("  ")
    line.append(status_icon(status), style=styles.status_style(status))
    line.append(f" {truncate(step.name, name_width)}\n")
    return line


def _job_block(job: Job, width: int) -> Text:
    status = job.ci_status
    block = Text()
    block.append(
        f"{status_icon(status)} {truncate(job.name, max(10, width - 6))}\n",
        style=styles.status_style(status),
    )
    if job.duration is not None:
        block.append(f"  Duration: {format_duration(job.duration)}\n", style=styles.HELP)
    if job.steps:
        block.append("\n")
        for step in job.steps:
            block.append_text(_step_line(step, max(10, width - 8)))
    return block


def render_run_preview(
    run: Optional[WorkflowRun],
    jobs: Optional[Sequence[Job]],
    width: int,
    height: int,
    jobs_error: str = "",
) -> RenderableType:
    """Run number, branch, event, start time, then jobs with their steps.

    ``jobs`` of None means the fetch has not completed yet.
    """
    if run is None:
        return render_empty(width, height)

    text = Text()
    text.append(f"Run #{run.run_number}\n\n", style=styles.TITLE)
    _field(text, "Branch", run.head_branch)
    _field(text, "Event", run.event)
    _field(text, "Started", format_timestamp(run.run_started_at))
    text.append("\n")

    if jobs_error:
        text.append(f"Failed to load jobs: {jobs_error}", style=styles.ERROR)
    elif jobs is None:
        text.append("Loading jobs...", style=styles.LOADING)
    elif not jobs:
        text.append("No jobs for this run", style=styles.HELP)
    else:
        text.append("Jobs & Steps\n\n", style=styles.TITLE)
        for i, job in enumerate(jobs):
            if i:
                text.append("\n")
            text.append_text(_job_block(job, width))
    return _panel(text, width, height)


def render_workflow_preview(workflow: Optional[Workflow], width: int, height: int) -> RenderableType:
    if workflow is None:
        return render_empty(width, height)

    text = Text()
    text.append(f"{workflow.name}\n\n", style=styles.TITLE)
    _field(text, "File", workflow.filename)
    if workflow.state == "active":
        _field(text, "State", Text("Active", style=styles.status_style("success")))
    else:
        _field(text, "State", Text(workflow.state, style=styles.status_style("warning")))
    _field(text, "Created", format_timestamp(workflow.created_at))
    _field(text, "Updated", format_timestamp(workflow.updated_at))
    text.append("\n")
    text.append("Press Enter to view recent runs for this workflow", style=styles.HELP)
    return _panel(text, width, height)
