"""Domain services - pure business logic operations."""

from .lines import split_lines
from .settings_reconciler import ReconcileResult, SettingsReconciler

__all__ = [
    "SettingsReconciler",
    "ReconcileResult",
    "split_lines",
]
