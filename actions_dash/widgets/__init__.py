"""Rendering helpers for the dashboard panels."""

from .items import RUN_TABLE_HEADER, render_list, run_row, status_icon, workflow_row
from .preview import render_empty, render_run_preview, render_workflow_preview

__all__ = [
    "RUN_TABLE_HEADER",
    "render_list",
    "run_row",
    "status_icon",
    "workflow_row",
    "render_empty",
    "render_run_preview",
    "render_workflow_preview",
]
