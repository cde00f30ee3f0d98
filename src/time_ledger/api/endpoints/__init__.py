"""API endpoints.

This package contains all API endpoint routers organized by resource type.
Each module defines a FastAPI router that is included in the main application.

Available routers:
- system: Health checks
- session: Clock in, breaks and clock out
- entries: Manual entry CRUD
- reports: Report generation
- shares: Share tokens and the public shared-report view
- settings: User settings
"""

__all__ = ["system", "session", "entries", "reports", "shares", "settings"]

from time_ledger.api.endpoints import (  # noqa: F401
    entries,
    reports,
    session,
    settings,
    shares,
    system,
)
