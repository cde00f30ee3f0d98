"""REST API for Time Ledger.

This module provides a FastAPI-based REST API over the ledger service:
work session control, manual entries, reports, share tokens and user
settings. Callers authenticate with a JWT whose ``sub`` claim is their
user id; shared reports are public to token holders.

Usage:
    # Generate token
    time-ledger token

    # Start server
    time-ledger serve

    # Access API docs
    http://localhost:8000/docs
"""

__all__ = ["create_app", "run_server"]

from time_ledger.api.server import create_app, run_server  # noqa: F401
