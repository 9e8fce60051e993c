"""Log rendering engine.

Turns raw log or file text plus a viewport and search state into styled,
line-numbered rows:

- ``decode_sgr`` converts ``ESC [ <params> m`` color sequences into rich styles.
- ``highlight_log_line`` adds GitHub Actions workflow-command coloring
  (``[command]``, ``##[group]``, ``##[error]`` ...).
- ``highlight_yaml`` colors workflow files one line at a time.
- ``TextDocument`` owns the line buffer, the ``Viewport`` (scrolling and
  line jumps) and the ``SearchState`` (matches and cyclic navigation).

The text buffer is never modified for display; styles are spans on copies.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable

from rich.style import Style
from rich.text import Text

from . import styles

# ---------------------------------------------------------------------------
# ANSI / SGR decoding
# ---------------------------------------------------------------------------

SGR_PATTERN = re.compile(r"\x1b\[([0-9;]*)m")

# Foreground palette for SGR 30-37 and 90-97.
ANSI_PALETTE: dict[int, str] = {
    30: "#000000",  # black
    31: "#ff0000",  # red
    32: "#00ff00",  # green
    33: "#ffff00",  # yellow
    34: "#0000ff",  # blue
    35: "#ff00ff",  # magenta
    36: "#00ffff",  # cyan
    37: "#ffffff",  # white
    90: "#808080",  # bright black (gray)
    91: "#ff8080",  # bright red
    92: "#80ff80",  # bright green
    93: "#ffff80",  # bright yellow
    94: "#8080ff",  # bright blue
    95: "#ff80ff",  # bright magenta
    96: "#80ffff",  # bright cyan
    97: "#ffffff",  # bright white
}

_ATTRIBUTE_CODES: dict[int, Style] = {
    1: Style(bold=True),
    2: Style(dim=True),
    3: Style(italic=True),
    4: Style(underline=True),
}

# 38/48 take "5;n" or "2;r;g;b" arguments that must not be read as codes.
_EXTENDED_COLOR_CODES = (38, 48)


def strip_ansi(line: str) -> str:
    return SGR_PATTERN.sub("", line)


def apply_sgr(current: Style, params: str, base: Style = styles.BASE) -> Style:
    """Fold one SGR parameter list into the running style.

    ``0`` (or an empty list) resets to ``base``; unknown codes are ignored.
    """
    codes = [int(p) if p else 0 for p in params.split(";")] if params else [0]
    style = current
    i = 0
    while i < len(codes):
        code = codes[i]
        if code == 0:
            style = base
        elif code in _ATTRIBUTE_CODES:
            style = style + _ATTRIBUTE_CODES[code]
        elif code in ANSI_PALETTE:
            style = style + Style(color=ANSI_PALETTE[code])
        elif code in _EXTENDED_COLOR_CODES and i + 1 < len(codes):
            i += 2 if codes[i + 1] == 5 else 4 if codes[i + 1] == 2 else 0
        i += 1
    return style


def sgr_segments(line: str, base: Style = styles.BASE) -> list[tuple[str, Style]]:
    """Split a line into ``(text, style)`` runs according to its SGR sequences."""
    if "\x1b[" not in line:
        return [(line, base)] if line else []

    segments: list[tuple[str, Style]] = []
    style = base
    pos = 0
    for match in SGR_PATTERN.finditer(line):
        if match.start() > pos:
            segments.append((line[pos:match.start()], style))
        style = apply_sgr(style, match.group(1), base)
        pos = match.end()
    if pos < len(line):
        segments.append((line[pos:], style))
    return segments


def decode_sgr(line: str, base: Style = styles.BASE) -> Text:
    if "\x1b[" not in line:
        return Text(line, style=base)
    text = Text()
    for chunk, style in sgr_segments(line, base):
        text.append(chunk, style=style)
    return text


# ---------------------------------------------------------------------------
# Workflow-command markers
# ---------------------------------------------------------------------------

GROUP_RUN_MARKER = "##[group]Run "

MARKER_STYLES: tuple[tuple[tuple[str, ...], Style], ...] = (
    (("[command]",), Style(color="color(33)", bold=True)),
    (("##[group]", "##[endgroup]"), Style(color="color(129)", bold=True)),
    (("##[error]",), Style(color="color(196)", bold=True)),
    (("##[warning]",), Style(color="color(226)", bold=True)),
)


def marker_style(line: str) -> Style | None:
    """Return the color for a line carrying a workflow-command marker."""
    trimmed = line.strip()
    for markers, style in MARKER_STYLES:
        if any(marker in trimmed for marker in markers):
            return style
    return None


def highlight_log_line(line: str) -> Text:
    text = decode_sgr(line)
    style = marker_style(text.plain)
    if style is not None:
        # Explicit SGR colors inside the line still win over the marker color.
        text.stylize_before(style)
    return text


# ---------------------------------------------------------------------------
# YAML highlighting (workflow file viewer)
# ---------------------------------------------------------------------------

YAML_KEY = Style(color="color(197)", bold=True)
YAML_STRING = Style(color="color(223)")
YAML_BOOL = Style(color="color(141)", bold=True)
YAML_NUMBER = Style(color="color(148)")
YAML_COMMENT = Style(color="color(59)", italic=True)

_YAML_KEY = re.compile(r"^([ \t-]*)([A-Za-z0-9_.\"'\-]+):")
_YAML_STRING = re.compile(r"\"[^\"\\]*(?:\\.[^\"\\]*)*\"|'[^'\\]*(?:\\.[^'\\]*)*'")
_YAML_BOOL = re.compile(r"\b(?:true|false|null)\b")
_YAML_NUMBER = re.compile(r"(?<![^ \t:,\[{])-?\d+(?:\.\d+)?%?(?=[ \t,\]}]|$)")


def _comment_start(line: str) -> int:
    """Index of the ``#`` starting a comment, or -1."""
    quote = ""
    for i, ch in enumerate(line):
        if quote:
            if ch == quote:
                quote = ""
        elif ch in "\"'":
            quote = ch
        elif ch == "#" and (i == 0 or line[i - 1] in " \t"):
            return i
    return -1


def highlight_yaml(line: str) -> Text:
    line = line.rstrip("\r")
    if not line.strip():
        return Text(line)

    idx = _comment_start(line)
    code, comment = (line[:idx], line[idx:]) if idx >= 0 else (line, "")

    text = Text(code)
    key = _YAML_KEY.match(code)
    if key:
        text.stylize(YAML_KEY, key.start(2), key.end(2))
    for pattern, style in ((_YAML_NUMBER, YAML_NUMBER), (_YAML_BOOL, YAML_BOOL), (_YAML_STRING, YAML_STRING)):
        for match in pattern.finditer(code):
            text.stylize(style, match.start(), match.end())
    if comment:
        text.append(comment, style=YAML_COMMENT)
    return text


# ---------------------------------------------------------------------------
# Viewport, search and line jump
# ---------------------------------------------------------------------------

@dataclass
class Viewport:
    """Visible window ``[offset, offset + height)`` into ``line_count`` lines.

    Every operation leaves ``0 <= offset <= max_offset``. ``limit``, when
    set, replaces the default ``line_count - height`` bound for content that
    draws extra rows between lines.
    """

    offset: int = 0
    height: int = 1
    line_count: int = 0
    limit: int | None = None

    @property
    def max_offset(self) -> int:
        if self.limit is not None:
            return self.limit
        return max(0, self.line_count - self.height)

    def _set(self, offset: int) -> None:
        self.offset = max(0, min(offset, self.max_offset))

    def scroll(self, delta: int) -> None:
        self._set(self.offset + delta)

    def page_up(self) -> None:
        self.scroll(-self.height)

    def page_down(self) -> None:
        self.scroll(self.height)

    def home(self) -> None:
        self.offset = 0

    def end(self) -> None:
        self.offset = self.max_offset

    def show_line(self, index: int) -> None:
        """Bring a 0-based line to the top of the window, as far as possible."""
        self._set(index)

    def resize(self, height: int) -> None:
        self.height = max(0, height)
        self._set(self.offset)

    def set_line_count(self, count: int) -> None:
        self.line_count = max(0, count)
        self._set(self.offset)

    def set_limit(self, limit: int | None) -> None:
        self.limit = limit
        self._set(self.offset)


def find_matches(lines: list[str], query: str) -> list[int]:
    """0-based indices of lines containing ``query``, case-insensitively."""
    if not query:
        return []
    needle = query.lower()
    return [i for i, line in enumerate(lines) if needle in line.lower()]


@dataclass
class SearchState:
    query: str = ""
    matches: list[int] = field(default_factory=list)
    cursor: int = -1

    @property
    def active(self) -> bool:
        return bool(self.query)

    @property
    def current(self) -> int | None:
        if 0 <= self.cursor < len(self.matches):
            return self.matches[self.cursor]
        return None

    def run(self, lines: list[str], query: str) -> int | None:
        """Search all lines and return the first matching line, if any."""
        self.query = query
        self.matches = find_matches(lines, query)
        self.cursor = 0 if self.matches else -1
        return self.current

    def clear(self) -> None:
        self.query = ""
        self.matches = []
        self.cursor = -1

    def next(self) -> int | None:
        if not self.matches:
            return None
        self.cursor = (self.cursor + 1) % len(self.matches)
        return self.current

    def previous(self) -> int | None:
        if not self.matches:
            return None
        n = len(self.matches)
        self.cursor = (self.cursor - 1 + n) % n
        return self.current

    def match_label(self) -> str:
        if not self.query:
            return ""
        if not self.matches:
            return "no matches"
        return f"match {self.cursor + 1}/{len(self.matches)}"


def parse_line_number(buffer: str) -> int | None:
    """Parse a jump buffer into a 1-based line number; None if unusable."""
    if not buffer.isdigit():
        return None
    number = int(buffer)
    return number if number > 0 else None


def highlight_first_match(text: Text, query: str, style: Style = styles.SEARCH_MATCH) -> Text:
    """Style the first case-insensitive occurrence of ``query`` in ``text``."""
    if query:
        idx = text.plain.lower().find(query.lower())
        if idx >= 0:
            text.stylize(style, idx, idx + len(query))
    return text


class TextDocument:
    """A scrollable, searchable block of text.

    Used both for run logs (SGR + marker highlighting, step separators) and
    for the workflow file viewer (YAML highlighting).
    """

    def __init__(
        self,
        highlighter: Callable[[str], Text] = highlight_log_line,
        rule_marker: str | None = GROUP_RUN_MARKER,
    ) -> None:
        self.highlighter = highlighter
        self.rule_marker = rule_marker
        self.text = ""
        self.lines: list[str] = []
        self._plain: list[str] = []
        self.viewport = Viewport()
        self.search = SearchState()

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def empty(self) -> bool:
        return not self.text

    def set_text(self, text: str) -> None:
        """Replace the buffer, scroll to the top and re-run an active search."""
        self.text = text
        self.lines = text.split("\n") if text else []
        self._plain = [strip_ansi(line) for line in self.lines]
        self.viewport.offset = 0
        self.viewport.set_line_count(len(self.lines))
        self.viewport.set_limit(self._tail_offset())
        if self.search.active:
            self.search.run(self._plain, self.search.query)

    def clear(self) -> None:
        self.set_text("")
        self.search.clear()

    def resize(self, height: int) -> None:
        self.viewport.resize(height)
        self.viewport.set_limit(self._tail_offset())

    def _has_rule(self, index: int) -> bool:
        return bool(self.rule_marker) and self.rule_marker in self._plain[index]

    def _tail_offset(self) -> int:
        """Largest useful offset: the first line of the window that ends on the last line.

        Rules drawn above step groups take rows, so the window at the end of
        a log may hold fewer than ``height`` lines.
        """
        if not self.lines:
            return 0
        height = self.viewport.height
        used = 0
        start = len(self.lines)
        while start > 0:
            cost = 2 if self._has_rule(start - 1) else 1
            if used + cost > height:
                break
            used += cost
            start -= 1
        return min(start, len(self.lines) - 1)

    # -- search ------------------------------------------------------------

    def confirm_search(self, query: str) -> None:
        """Run a search; an empty query clears matches and highlighting."""
        if not query:
            self.search.clear()
            return
        first = self.search.run(self._plain, query)
        if first is not None:
            self.viewport.show_line(first)

    def clear_search(self) -> None:
        self.search.clear()

    def next_match(self) -> None:
        line = self.search.next()
        if line is not None:
            self.viewport.show_line(line)

    def previous_match(self) -> None:
        line = self.search.previous()
        if line is not None:
            self.viewport.show_line(line)

    def jump(self, buffer: str) -> bool:
        """Jump so that 1-based line ``buffer`` is at the top. No-op if invalid."""
        number = parse_line_number(buffer)
        if number is None:
            return False
        self.viewport.show_line(number - 1)
        return True

    # -- rendering ---------------------------------------------------------

    def render(self, width: int = 0, highlight: str | None = None) -> list[Text]:
        """Render the visible rows with right-aligned line numbers.

        ``highlight`` overrides the confirmed query (used while typing).
        Separator rules above step groups take rows from the window; a rule
        is only drawn when the line below it also fits.
        """
        height = self.viewport.height
        if height <= 0 or not self.lines:
            return []

        query = self.search.query if highlight is None else highlight
        start = self.viewport.offset
        digits = len(str(len(self.lines)))
        rule_width = max(10, width - (digits + 3) - 2) if width else 40

        rows: list[Text] = []
        for i, line in enumerate(self.lines[start:start + height], start=start):
            if self._has_rule(i) and len(rows) + 2 <= height:
                rows.append(Text("─" * rule_width, style=styles.GROUP_RULE))
            body = highlight_first_match(self.highlighter(line), query)
            row = Text()
            row.append(f"{i + 1:>{digits}} | ", style=styles.LINE_NUMBER)
            row.append_text(body)
            if width > 0:
                row.truncate(width, overflow="crop")
            rows.append(row)
        return rows[:height]
