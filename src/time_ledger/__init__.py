"""Time Ledger - work session tracking with breaks, reports and sharing."""

__version__ = "0.3.0"
