from reports.scopes import Scope, report_window, resolve_selector
from reports.summary import build_report, daily_breakdown, total_hours, total_minutes

__all__ = [
    "Scope",
    "build_report",
    "daily_breakdown",
    "report_window",
    "resolve_selector",
    "total_hours",
    "total_minutes",
]
