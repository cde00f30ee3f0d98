"""Tests for report endpoints."""

from fastapi.testclient import TestClient  # type: ignore[import-untyped]


def add_entry(client: TestClient, headers: dict[str, str], day: str, start: str, end: str, breaks=()) -> None:  # type: ignore[no-untyped-def]
    """Create a completed entry through the API."""
    response = client.post(
        "/api/v1/entries",
        headers=headers,
        json={
            "start_time": f"{day}T{start}:00+00:00",
            "end_time": f"{day}T{end}:00+00:00",
            "breaks": [
                {"start_time": f"{day}T{s}:00+00:00", "end_time": f"{day}T{e}:00+00:00"}
                for s, e in breaks
            ],
        },
    )
    assert response.status_code == 201


class TestReportEndpoint:
    """Test GET /api/v1/reports."""

    def test_daily_report_defaults_to_today(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test a report without dates covers today."""
        headers = auth_headers()
        add_entry(client, headers, "2025-11-17", "09:00", "17:00", [("12:00", "13:00")])

        response = client.get("/api/v1/reports", headers=headers)
        data = response.json()

        assert response.status_code == 200
        assert data["report_type"] == "daily"
        assert data["start_date"] == "2025-11-17"
        assert data["entries"][0]["net_work"] == 7 * 3_600_000
        assert data["summary"]["days_worked"] == 1

    def test_weekly_report(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test a weekly report over an explicit range."""
        headers = auth_headers()
        add_entry(client, headers, "2025-11-17", "09:00", "13:00")
        add_entry(client, headers, "2025-11-18", "09:00", "11:00")
        add_entry(client, headers, "2025-11-25", "09:00", "11:00")

        response = client.get(
            "/api/v1/reports",
            headers=headers,
            params={"report_type": "weekly", "from_date": "2025-11-17", "to_date": "2025-11-23"},
        )
        data = response.json()

        assert len(data["entries"]) == 2
        assert data["entries"][0]["date"] == "2025-11-18"
        assert data["summary"]["total_net_work"] == 6 * 3_600_000
        assert data["summary"]["average_daily_work"] == 3 * 3_600_000

    def test_empty_range(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test an empty range has zero days worked."""
        response = client.get(
            "/api/v1/reports",
            headers=auth_headers(),
            params={"from_date": "2020-01-01", "to_date": "2020-01-31"},
        )

        assert response.status_code == 200
        assert response.json()["summary"]["days_worked"] == 0
        assert response.json()["summary"]["average_daily_work"] == 0

    def test_reversed_range(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test a reversed range returns 400."""
        response = client.get(
            "/api/v1/reports",
            headers=auth_headers(),
            params={"from_date": "2025-11-20", "to_date": "2025-11-17"},
        )

        assert response.status_code == 400

    def test_invalid_report_type(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test an unknown report type is rejected by validation."""
        response = client.get(
            "/api/v1/reports", headers=auth_headers(), params={"report_type": "yearly"}
        )

        assert response.status_code == 422

    def test_reports_require_auth(self, client: TestClient) -> None:
        """Test reports require authentication."""
        assert client.get("/api/v1/reports").status_code == 401
