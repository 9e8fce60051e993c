"""Row renderers for the workflow and run lists."""

from __future__ import annotations

from typing import Callable, Sequence, TypeVar

from rich.text import Text

from .. import styles
from ..models import Workflow, WorkflowRun
from ..utils import format_short_duration, format_timestamp, truncate

T = TypeVar("T")

STATUS_ICONS = {
    "success": "✓",
    "completed": "✓",
    "failure": "✗",
    "failed": "✗",
    "pending": "⏳",
    "queued": "⏳",
    "in_progress": "⏵",
    "running": "⏵",
    "skipped": "⊘",
}

RUN_TABLE_HEADER = (
    f"{'Name':<25} {'Status':<12} {'Branch':<18} {'Actor':<15} {'PR':<12} {'Duration':<8} Created"
)


def status_icon(status: str) -> str:
    return STATUS_ICONS.get(status, "○")


def _pr_label(run: WorkflowRun) -> str:
    if not run.pull_requests:
        return "-"
    pr = run.pull_requests[0]
    if len(pr.title) > 8:
        return f"#{pr.number}:{pr.title[:4]}..."
    if pr.title:
        return f"#{pr.number}:{pr.title}"
    return f"#{pr.number}"


def run_row(run: WorkflowRun, selected: bool = False) -> Text:
    """One table row: name(#n), status, branch, actor, PR, duration, created."""
    status = run.ci_status
    name = truncate(f"{run.name}(#{run.run_number})", 25)
    status_text = f"{status_icon(status)} {truncate(status, 10):<10}"

    row = Text()
    row.append(f"{name:<25} ")
    row.append(status_text, style=styles.status_style(status))
    row.append(
        f" {truncate(run.head_branch, 18):<18}"
        f" {truncate(run.actor.login, 15):<15}"
        f" {_pr_label(run):<12}"
        f" {format_short_duration(run.duration):<8}"
        f" {format_timestamp(run.created_at, '%m-%d %H:%M')}"
    )
    if selected:
        row.stylize(styles.SELECTED)
    return row


def workflow_row(workflow: Workflow, selected: bool = False) -> Text:
    row = Text()
    row.append(f"{status_icon(workflow.state)} {workflow.state}", style=styles.status_style(workflow.state))
    row.append(f" {truncate(workflow.name, 50)} • {truncate(workflow.filename, 30)}")
    if selected:
        row.stylize(styles.SELECTED)
    return row


def visible_window(count: int, index: int, height: int) -> range:
    """Indices to show so that ``index`` stays on screen."""
    if count <= 0 or height <= 0:
        return range(0)
    start = max(0, min(index - height + 1, count - height)) if index >= height else 0
    return range(start, min(count, start + height))


def render_list(
    items: Sequence[T],
    index: int,
    height: int,
    row: Callable[[T, bool], Text],
    width: int = 0,
) -> list[Text]:
    rows = []
    for i in visible_window(len(items), index, height):
        line = row(items[i], i == index)
        if width > 0:
            line.truncate(width, overflow="ellipsis")
        rows.append(line)
    return rows
