"""View/mode state machine primitives, pagination, list selection and layout."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from .config import DEFAULT_PER_PAGE

T = TypeVar("T")


class View(Enum):
    ALL_RUNS = "all_runs"
    WORKFLOW_LIST = "workflow_list"
    WORKFLOW_RUNS = "workflow_runs"
    LOGS = "logs"


class Mode(Enum):
    """Input mode layered on top of the current view. Exactly one is active."""

    NORMAL = "normal"
    SEARCH = "search"
    JUMP = "jump"
    FILE_VIEWER = "file_viewer"


class ModeEvent(Enum):
    START_SEARCH = "start_search"
    START_JUMP = "start_jump"
    OPEN_FILE = "open_file"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    CLOSE = "close"


class InvalidTransition(ValueError):
    """Raised for a (mode, event) pair missing from MODE_TRANSITIONS."""


MODE_TRANSITIONS: dict[tuple[Mode, ModeEvent], Mode] = {
    (Mode.NORMAL, ModeEvent.START_SEARCH): Mode.SEARCH,
    (Mode.NORMAL, ModeEvent.START_JUMP): Mode.JUMP,
    (Mode.NORMAL, ModeEvent.OPEN_FILE): Mode.FILE_VIEWER,
    (Mode.SEARCH, ModeEvent.CONFIRM): Mode.NORMAL,
    (Mode.SEARCH, ModeEvent.CANCEL): Mode.NORMAL,
    (Mode.JUMP, ModeEvent.CONFIRM): Mode.NORMAL,
    (Mode.JUMP, ModeEvent.CANCEL): Mode.NORMAL,
    (Mode.FILE_VIEWER, ModeEvent.CLOSE): Mode.NORMAL,
}

# Where "back" leads from each view; LOGS depends on the workflow context.
PARENT_VIEWS: dict[View, Optional[View]] = {
    View.ALL_RUNS: None,
    View.WORKFLOW_LIST: View.ALL_RUNS,
    View.WORKFLOW_RUNS: View.WORKFLOW_LIST,
    View.LOGS: View.ALL_RUNS,
}


def transition(mode: Mode, event: ModeEvent) -> Mode:
    try:
        return MODE_TRANSITIONS[(mode, event)]
    except KeyError:
        raise InvalidTransition(f"{event.value} is not valid in {mode.value} mode") from None


def parent_view(view: View, has_workflow: bool) -> Optional[View]:
    if view is View.LOGS and has_workflow:
        return View.WORKFLOW_RUNS
    return PARENT_VIEWS[view]


@dataclass
class Page:
    """Pagination state for one list. ``page`` is 1-based."""

    page: int = 1
    per_page: int = DEFAULT_PER_PAGE
    total: int = 0

    @property
    def has_next(self) -> bool:
        return self.page * self.per_page < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def total_pages(self) -> int:
        return max(1, (self.total + self.per_page - 1) // self.per_page)

    def info(self) -> str:
        return f"Page {self.page} of {self.total_pages} ({self.total} items)"


@dataclass
class ListState(Generic[T]):
    """Items of one list view plus a bounds-checked selection."""

    items: list[T] = field(default_factory=list)
    index: int = 0
    page: Page = field(default_factory=Page)

    @property
    def selected(self) -> Optional[T]:
        if 0 <= self.index < len(self.items):
            return self.items[self.index]
        return None

    def replace(self, items: list[T]) -> None:
        self.items = list(items)
        self.index = 0

    def select(self, index: int) -> bool:
        """Move the selection, clamped to the list. Returns True if it changed."""
        if not self.items:
            self.index = 0
            return False
        clamped = max(0, min(index, len(self.items) - 1))
        changed = clamped != self.index
        self.index = clamped
        return changed

    def move(self, delta: int) -> bool:
        return self.select(self.index + delta)


@dataclass(frozen=True)
class Layout:
    width: int
    height: int
    list_width: int
    list_height: int
    preview_width: int
    preview_height: int
    log_height: int
    file_height: int

    @property
    def too_small(self) -> bool:
        return self.width < MIN_WIDTH or self.height < MIN_HEIGHT


MIN_WIDTH = 40
MIN_HEIGHT = 10


def compute_layout(width: int, height: int, view: View) -> Layout:
    """Panel geometry for a terminal of ``width`` x ``height``.

    List views split 60/40 between the list and the preview panel; the logs
    view uses the full width.
    """
    preview_width = max(15, (width * 2) // 5 - 1)
    preview_height = max(5, height - 4)
    if view is View.WORKFLOW_LIST:
        list_width = max(20, (width * 3) // 5 - 1)
        list_height = max(5, height - 4)
    elif view is View.LOGS:
        list_width = max(20, width - 4)
        list_height = max(5, height - 6)
    else:
        list_width = max(20, (width * 3) // 5 - 2)
        list_height = max(5, height - 6)
    return Layout(
        width=width,
        height=height,
        list_width=list_width,
        list_height=list_height,
        preview_width=preview_width,
        preview_height=preview_height,
        log_height=max(1, height - 6),
        file_height=max(1, height - 4),
    )


def describe_state(view: View, mode: Mode, **extra: Any) -> str:
    parts = [f"view={view.value}", f"mode={mode.value}"]
    parts.extend(f"{key}={value}" for key, value in extra.items())
    return " ".join(parts)
