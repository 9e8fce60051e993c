"""Key bindings.

Keys are the normalized names the app passes to the controller: the typed
character for printable keys (``"k"``, ``"G"``, ``"/"``), otherwise Textual's
key name (``"up"``, ``"pagedown"``, ``"escape"``, ``"space"``, ``"ctrl+c"``).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from textual.binding import Binding


def keys_of(binding: Binding) -> tuple[str, ...]:
    return tuple(key.strip() for key in binding.key.split(","))


@dataclass
class KeyMap:
    # Navigation (vim-style plus arrows)
    up: Binding = field(default_factory=lambda: Binding("k,up", "up", "move up"))
    down: Binding = field(default_factory=lambda: Binding("j,down", "down", "move down"))
    left: Binding = field(default_factory=lambda: Binding("h,left", "left", "back"))
    right: Binding = field(default_factory=lambda: Binding("l,right", "right", "select"))
    page_up: Binding = field(default_factory=lambda: Binding("ctrl+u,pageup", "page_up", "page up"))
    page_down: Binding = field(default_factory=lambda: Binding("ctrl+d,pagedown", "page_down", "page down"))
    home: Binding = field(default_factory=lambda: Binding("g,home", "home", "go to start"))
    end: Binding = field(default_factory=lambda: Binding("G,end", "end", "go to end"))

    # Actions
    select: Binding = field(default_factory=lambda: Binding("enter,space", "select", "select"))
    back: Binding = field(default_factory=lambda: Binding("escape", "back", "back"))
    refresh: Binding = field(default_factory=lambda: Binding("r", "refresh", "refresh"))
    quit: Binding = field(default_factory=lambda: Binding("q,ctrl+c", "quit", "quit"))
    force_quit: Binding = field(default_factory=lambda: Binding("ctrl+c", "quit", "quit"))

    # Views and pages
    workflows: Binding = field(default_factory=lambda: Binding("w", "workflows", "workflows"))
    all_runs: Binding = field(default_factory=lambda: Binding("a", "all_runs", "all runs"))
    next_page: Binding = field(default_factory=lambda: Binding("n", "next_page", "next page"))
    prev_page: Binding = field(default_factory=lambda: Binding("p", "prev_page", "prev page"))

    # Logs view
    search: Binding = field(default_factory=lambda: Binding("/", "search", "search"))
    jump: Binding = field(default_factory=lambda: Binding(":", "jump", "jump to line"))
    next_match: Binding = field(default_factory=lambda: Binding("n", "next_match", "next match"))
    prev_match: Binding = field(default_factory=lambda: Binding("N", "prev_match", "previous match"))
    view_file: Binding = field(default_factory=lambda: Binding("f,right", "view_file", "view workflow file"))

    # Prompt editing
    confirm: Binding = field(default_factory=lambda: Binding("enter", "confirm", "confirm"))
    cancel: Binding = field(default_factory=lambda: Binding("escape", "cancel", "cancel"))
    delete: Binding = field(default_factory=lambda: Binding("backspace", "delete", "delete"))

    def matches(self, key: str, *names: str) -> bool:
        """True if ``key`` is bound to any of the named bindings."""
        return any(key in keys_of(getattr(self, name)) for name in names)
