"""Tests for the ledger service facade."""

from datetime import date, datetime

import pytest  # type: ignore[import-not-found]
from conftest import FakeClock, at

from time_ledger.core.entries import BreakDraft
from time_ledger.core.errors import PersistenceError, ValidationError
from time_ledger.core.models import ReportType, SessionState
from time_ledger.core.storage import StorageManager
from time_ledger.core.timezone import day_bounds, is_valid_timezone, to_utc
from time_ledger.service import UNEXPECTED_ERROR, TimeLedgerService, parse_report_type


class TestTimezoneHelpers:
    """Test timezone helpers used by the facade."""

    def test_naive_values_use_the_zone(self) -> None:
        """Test naive wall-clock time is read in the given zone."""
        assert to_utc(datetime(2025, 11, 17, 9, 0), "Europe/Lisbon") == at(9)
        assert to_utc(datetime(2025, 11, 17, 9, 0), "America/Sao_Paulo") == at(12)

    def test_day_bounds(self) -> None:
        """Test local days map to UTC half-open bounds."""
        start, end = day_bounds(date(2025, 11, 17), date(2025, 11, 17), "America/Sao_Paulo")

        assert start == at(3)
        assert end == at(3, day=1)

    def test_is_valid_timezone(self) -> None:
        """Test IANA names are recognised."""
        assert is_valid_timezone("Asia/Tokyo") is True
        assert is_valid_timezone("Nowhere/Special") is False
        assert is_valid_timezone("") is False


class TestParseReportType:
    """Test parse_report_type."""

    def test_names(self) -> None:
        """Test names are case-insensitive."""
        assert parse_report_type("Weekly") is ReportType.WEEKLY
        assert parse_report_type(ReportType.MONTHLY) is ReportType.MONTHLY

    def test_unknown(self) -> None:
        """Test unknown names fail validation."""
        with pytest.raises(ValidationError, match="Report type must be one of"):
            parse_report_type("yearly")


class TestTimeLedgerService:
    """Test TimeLedgerService results."""

    def test_session_flow(self, service: TimeLedgerService, clock: FakeClock) -> None:
        """Test the work day from start to end through results."""
        assert service.start(1).success is True
        clock.set(at(12))
        assert service.start_break(1).success is True
        clock.set(at(13))
        assert service.end_break(1).success is True
        clock.set(at(17))

        state = service.get_active_state(1).data
        assert state.state is SessionState.WORKING

        result = service.end(1)
        assert result.success is True
        assert result.data.end_time == at(17)

    def test_conflict_is_a_failed_result(self, service: TimeLedgerService) -> None:
        """Test classified errors become failed results."""
        service.start(1)
        result = service.start(1)

        assert result.success is False
        assert result.error_kind == "conflict"
        assert result.error == "A work session is already active"

    def test_unexpected_error_is_generic(
        self, service: TimeLedgerService, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test unclassified errors do not leak their message."""

        def broken(user_id: int) -> None:
            raise RuntimeError("secret internals")

        monkeypatch.setattr(service.tracker, "start", broken)
        result = service.start(1)

        assert result.success is False
        assert result.error == UNEXPECTED_ERROR
        assert result.error_kind == "error"

    def test_closed_storage_is_persistence_failure(self, clock: FakeClock) -> None:
        """Test operations on closed storage fail with a generic message."""
        ledger = TimeLedgerService(StorageManager(), clock=clock)
        result = ledger.start(1)

        assert result.success is False
        assert result.error_kind == PersistenceError.kind

    def test_today_is_a_result(self, service: TimeLedgerService, clock: FakeClock) -> None:
        """Test today is the calendar date in the user's timezone."""
        clock.set(at(1))
        service.update_settings(1, {"timezone": "America/Sao_Paulo"})

        assert service.today(1).data == date(2025, 11, 16)
        assert service.today(2).data == date(2025, 11, 17)

    def test_today_on_closed_storage(self, clock: FakeClock) -> None:
        """Test today reports a failed result instead of raising."""
        ledger = TimeLedgerService(StorageManager(), clock=clock)
        result = ledger.today(1)

        assert result.success is False
        assert result.error_kind == PersistenceError.kind

    def test_naive_times_use_user_timezone(self, service: TimeLedgerService) -> None:
        """Test naive input is localized with the user's timezone."""
        service.update_settings(1, {"timezone": "America/Sao_Paulo"})
        result = service.create_entry(
            1,
            datetime(2025, 11, 17, 9, 0),
            datetime(2025, 11, 17, 17, 0),
            [BreakDraft(datetime(2025, 11, 17, 12, 0), datetime(2025, 11, 17, 13, 0))],
        )

        assert result.success is True
        assert result.data.start_time == at(12)
        assert result.data.breaks[0].start_time == at(15)

    def test_aware_times_are_kept(self, service: TimeLedgerService) -> None:
        """Test aware input is stored as the same instant."""
        result = service.create_entry(1, at(9), at(17))

        assert result.data.start_time == at(9)

    def test_entry_crud(self, service: TimeLedgerService) -> None:
        """Test create, get, update, list and delete through the facade."""
        created = service.create_entry(1, at(9), at(17)).data
        assert service.get_entry(1, created.id).data.id == created.id

        updated = service.update_entry(1, created.id, at(9), at(16), [BreakDraft(at(12), at(13))])
        assert updated.success is True
        assert len(updated.data.breaks) == 1

        assert [e.id for e in service.recent_entries(1).data] == [created.id]
        assert service.delete_entry(1, created.id).success is True

        missing = service.get_entry(1, created.id)
        assert missing.success is False
        assert missing.error_kind == "not_found"

    def test_validation_error_result(self, service: TimeLedgerService) -> None:
        """Test invalid entries fail with a validation result."""
        result = service.create_entry(1, at(17), at(9))

        assert result.success is False
        assert result.error_kind == "validation"
        assert result.error == "End time must be after start time"


class TestServiceReports:
    """Test report and share ranges through the facade."""

    def test_default_range_is_today(self, service: TimeLedgerService) -> None:
        """Test a daily report without dates covers today."""
        report = service.generate_report(1).data

        assert report.start_date == date(2025, 11, 17)
        assert report.end_date == date(2025, 11, 17)

    def test_weekly_range_from_start_date(self, service: TimeLedgerService) -> None:
        """Test a missing end date completes the week of the start date."""
        report = service.generate_report(1, "weekly", start_date=date(2025, 11, 5)).data

        assert report.start_date == date(2025, 11, 5)
        assert report.end_date == date(2025, 11, 9)

    def test_monthly_range_from_end_date(self, service: TimeLedgerService) -> None:
        """Test a missing start date begins the month of the end date."""
        report = service.generate_report(1, "monthly", end_date=date(2025, 10, 20)).data

        assert report.start_date == date(2025, 10, 1)
        assert report.end_date == date(2025, 10, 20)

    def test_unknown_report_type(self, service: TimeLedgerService) -> None:
        """Test an unknown type fails validation."""
        result = service.generate_report(1, "hourly")

        assert result.success is False
        assert result.error_kind == "validation"

    def test_share_and_resolve(self, service: TimeLedgerService, clock: FakeClock) -> None:
        """Test a share resolves until it expires."""
        service.create_entry(1, at(9), at(17), [BreakDraft(at(12), at(13))])
        shared = service.share_report(1, "weekly", expires_in_days=1).data

        view = service.resolve_share(shared.share_token).data
        assert view.data.summary.total_net_work_ms == 7 * 3_600_000

        clock.advance(days=2)
        expired = service.resolve_share(shared.share_token)
        assert expired.success is False
        assert expired.error_kind == "expired"

    def test_revoke_share(self, service: TimeLedgerService) -> None:
        """Test revoked shares are gone."""
        shared = service.share_report(1, ReportType.DAILY).data

        assert service.revoke_share(1, shared.share_token).success is True
        assert service.resolve_share(shared.share_token).error_kind == "not_found"
        assert service.list_shares(1).data == []


class TestServiceSettings:
    """Test settings through the facade."""

    def test_configured_defaults(self, service: TimeLedgerService) -> None:
        """Test lazily created settings use configured defaults."""
        settings = service.get_settings(1).data

        assert settings.timezone == "UTC"
        assert settings.working_hours == 8

    def test_dict_patch(self, service: TimeLedgerService) -> None:
        """Test a mapping patch changes only its fields."""
        result = service.update_settings(1, {"theme": "dark"})

        assert result.success is True
        assert result.data.theme == "dark"
        assert result.data.allow_sharing is True

    def test_unknown_keys(self, service: TimeLedgerService) -> None:
        """Test unknown settings are rejected."""
        result = service.update_settings(1, {"colour": "blue"})

        assert result.success is False
        assert result.error == "Unknown settings: colour"

    def test_empty_patch(self, service: TimeLedgerService) -> None:
        """Test an empty patch is rejected."""
        result = service.update_settings(1, {})

        assert result.success is False
        assert result.error_kind == "validation"

    def test_wrongly_typed_value(self, service: TimeLedgerService) -> None:
        """Test a value of the wrong type is a validation failure."""
        result = service.update_settings(1, {"working_hours": "8"})

        assert result.success is False
        assert result.error_kind == "validation"
        assert result.error == "working_hours must be an integer"
