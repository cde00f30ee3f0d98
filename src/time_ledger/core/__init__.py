"""Core functionality for time tracking."""

from time_ledger.core.models import Break, Entry, SharedReport, UserSettings
from time_ledger.core.storage import StorageManager
from time_ledger.core.tracker import WorkSessionTracker

__all__ = ["Entry", "Break", "UserSettings", "SharedReport", "StorageManager", "WorkSessionTracker"]
