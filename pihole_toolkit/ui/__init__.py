"""User interface helpers (menu, progress bars, tables)."""

from .menu import MenuAction, MenuCategory, ToolkitMenu
from .progress import ProbeProgress, ProgressActivity
from .tables import render_audit_summary, render_health_table, render_top_table

__all__ = [
    "MenuAction",
    "MenuCategory",
    "ProbeProgress",
    "ProgressActivity",
    "ToolkitMenu",
    "render_audit_summary",
    "render_health_table",
    "render_top_table",
]
