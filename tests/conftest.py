"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator

import pytest  # type: ignore[import-not-found]

from time_ledger.core.config import ConfigManager
from time_ledger.core.storage import StorageManager
from time_ledger.service import TimeLedgerService

# A Monday, so weekly ranges start on this day.
BASE_DAY = datetime(2025, 11, 17, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0, day: int = 0) -> datetime:
    """Aware UTC datetime on ``BASE_DAY`` shifted by ``day`` days."""
    return BASE_DAY + timedelta(days=day, hours=hour, minutes=minute)


class FakeClock:
    """Controllable clock for deterministic transitions."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, value: datetime) -> None:
        self.current = value

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    """Clock set to 09:00 UTC on the base day."""
    return FakeClock(at(9))


@pytest.fixture
def storage(tmp_path: Path) -> Iterator[StorageManager]:
    """Open storage on a temporary SQLite file."""
    manager = StorageManager(f"sqlite:///{tmp_path / 'ledger.db'}")
    manager.open()
    yield manager
    manager.close()


@pytest.fixture
def config(tmp_path: Path) -> ConfigManager:
    """Configuration on a temporary path; the database sits next to it."""
    return ConfigManager(tmp_path / "config" / "config.yml")


@pytest.fixture
def service(config: ConfigManager, clock: FakeClock) -> Iterator[TimeLedgerService]:
    """Open ledger service driven by the fake clock."""
    ledger = TimeLedgerService.from_config(config, clock=clock)
    ledger.open()
    yield ledger
    ledger.close()


@pytest.fixture
def test_app(config: ConfigManager, service: TimeLedgerService):
    """Create a test FastAPI application around the fake-clock service."""
    from time_ledger.api import create_app

    return create_app(config, service)


@pytest.fixture
def client(test_app):
    """Create a test client."""
    from fastapi.testclient import TestClient  # type: ignore[import-untyped]

    return TestClient(test_app)


@pytest.fixture
def auth_headers(config: ConfigManager):
    """Build bearer headers for a user id."""
    from time_ledger.api.auth import create_token_for_user

    def _headers(user_id: int = 1) -> dict[str, str]:
        token_data = create_token_for_user(config, user_id=user_id)
        return {"Authorization": f"Bearer {token_data['access_token']}"}

    return _headers
