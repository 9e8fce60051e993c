"""Color palette and rich styles shared by the dashboard renderers."""

from rich.style import Style

PRIMARY = "#7c3aed"
SUCCESS = "#22c55e"
FAILURE = "#ef4444"
WARNING = "#f59e0b"
INFO = "#3b82f6"
MUTED = "#6b7280"
BORDER = "#374151"

BASE = Style()
TITLE = Style(color=PRIMARY, bold=True)
SUBTITLE = Style(color=MUTED, bold=True)
HELP = Style(color=MUTED)
SELECTED = Style(color=PRIMARY, bgcolor="#1e1b4b", bold=True)
LOADING = Style(color=INFO)
ERROR = Style(color=FAILURE, bold=True)
LINE_NUMBER = Style(color=MUTED)
GROUP_RULE = Style(color="color(36)", bold=True)
SEARCH_MATCH = Style(color="color(226)", bold=True, reverse=True)

STATUS_STYLES = {
    "success": Style(color=SUCCESS),
    "completed": Style(color=SUCCESS),
    "active": Style(color=SUCCESS),
    "failure": Style(color=FAILURE),
    "failed": Style(color=FAILURE),
    "timed_out": Style(color=FAILURE),
    "cancelled": Style(color=MUTED),
    "skipped": Style(color=MUTED),
    "in_progress": Style(color=INFO),
    "queued": Style(color=WARNING),
    "pending": Style(color=WARNING),
    "waiting": Style(color=WARNING),
    "warning": Style(color=WARNING),
}


def status_style(status: str) -> Style:
    return STATUS_STYLES.get(status, HELP)
