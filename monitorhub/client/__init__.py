"""Terminal observer for a monitor session."""

from .console import MonitorConsole, format_timestamp, run_console

__all__ = ["MonitorConsole", "format_timestamp", "run_console"]
