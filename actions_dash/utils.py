"""Shared formatting helpers for the dashboard package."""

from __future__ import annotations

from datetime import datetime, timedelta


def format_duration(delta: timedelta | None) -> str:
    """Format a duration rounded to the second, e.g. '1h2m3s', '45s'."""
    if delta is None:
        return "-"
    total = int(round(delta.total_seconds()))
    if total <= 0:
        return "0s"
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{minutes}m{seconds}s"
    return f"{seconds}s"


def format_short_duration(delta: timedelta | None) -> str:
    """Compact duration for table cells: '42s', '7m', '1.5h'."""
    if delta is None or delta.total_seconds() <= 0:
        return "-"
    secs = delta.total_seconds()
    if secs < 60:
        return f"{secs:.0f}s"
    if secs < 3600:
        return f"{secs / 60:.0f}m"
    return f"{secs / 3600:.1f}h"


def format_timestamp(dt: datetime | None, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    if dt is None:
        return "-"
    return dt.strftime(fmt)


def truncate(text: str, width: int) -> str:
    """Cut ``text`` to ``width`` characters, ending with '...' when cut."""
    if width <= 0:
        return ""
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[: width - 3] + "..."
