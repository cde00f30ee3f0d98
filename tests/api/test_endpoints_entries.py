"""Tests for entry endpoints."""

import pytest  # type: ignore[import-not-found]
from fastapi.testclient import TestClient  # type: ignore[import-untyped]

DAY = "2025-11-17"


def iso(hour: int, minute: int = 0) -> str:
    """UTC timestamp on the test day."""
    return f"{DAY}T{hour:02d}:{minute:02d}:00+00:00"


@pytest.fixture
def sample_entry(client: TestClient, auth_headers):  # type: ignore[no-untyped-def]
    """Create a 09:00-17:00 entry with two breaks."""
    response = client.post(
        "/api/v1/entries",
        headers=auth_headers(),
        json={
            "start_time": iso(9),
            "end_time": iso(17),
            "breaks": [
                {"start_time": iso(10), "end_time": iso(10, 15)},
                {"start_time": iso(12), "end_time": iso(13)},
            ],
        },
    )
    assert response.status_code == 201
    return response.json()


class TestCreateEntry:
    """Test POST /api/v1/entries."""

    def test_create_entry(self, sample_entry) -> None:  # type: ignore[no-untyped-def]
        """Test creating an entry with breaks."""
        assert sample_entry["status"] == "completed"
        assert len(sample_entry["breaks"]) == 2

    def test_create_requires_auth(self, client: TestClient) -> None:
        """Test creating requires authentication."""
        response = client.post("/api/v1/entries", json={"start_time": iso(9)})

        assert response.status_code == 401

    def test_create_invalid_window(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test an entry ending before it starts returns 400."""
        response = client.post(
            "/api/v1/entries",
            headers=auth_headers(),
            json={"start_time": iso(17), "end_time": iso(9)},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "End time must be after start time"

    def test_create_overlapping_breaks(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test overlapping breaks return 400."""
        response = client.post(
            "/api/v1/entries",
            headers=auth_headers(),
            json={
                "start_time": iso(9),
                "end_time": iso(17),
                "breaks": [
                    {"start_time": iso(12), "end_time": iso(13)},
                    {"start_time": iso(12, 30), "end_time": iso(14)},
                ],
            },
        )

        assert response.status_code == 400

    def test_create_missing_start_is_unprocessable(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test request validation."""
        response = client.post("/api/v1/entries", headers=auth_headers(), json={})

        assert response.status_code == 422


class TestReadEntries:
    """Test GET endpoints."""

    def test_get_entry(self, client: TestClient, auth_headers, sample_entry) -> None:  # type: ignore[no-untyped-def]
        """Test fetching one entry."""
        response = client.get(f"/api/v1/entries/{sample_entry['id']}", headers=auth_headers())

        assert response.status_code == 200
        assert response.json()["id"] == sample_entry["id"]

    def test_other_user_gets_404(self, client: TestClient, auth_headers, sample_entry) -> None:  # type: ignore[no-untyped-def]
        """Test another user's entry is not found."""
        response = client.get(f"/api/v1/entries/{sample_entry['id']}", headers=auth_headers(2))

        assert response.status_code == 404

    def test_list_entries(self, client: TestClient, auth_headers, sample_entry) -> None:  # type: ignore[no-untyped-def]
        """Test listing recent entries."""
        response = client.get("/api/v1/entries?limit=5", headers=auth_headers())

        assert response.status_code == 200
        assert [e["id"] for e in response.json()] == [sample_entry["id"]]

    def test_list_limit_validation(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test the limit must be positive."""
        response = client.get("/api/v1/entries?limit=0", headers=auth_headers())

        assert response.status_code == 422


class TestUpdateEntry:
    """Test PUT /api/v1/entries/{id}."""

    def test_reconcile_breaks(self, client: TestClient, auth_headers, sample_entry) -> None:  # type: ignore[no-untyped-def]
        """Test removing one break and adding another leaves two breaks."""
        first = sample_entry["breaks"][0]

        response = client.put(
            f"/api/v1/entries/{sample_entry['id']}",
            headers=auth_headers(),
            json={
                "start_time": iso(9),
                "end_time": iso(17),
                "breaks": [
                    {"id": first["id"], "is_new": False, "is_deleted": True},
                    {"start_time": iso(15), "end_time": iso(15, 30)},
                    {"start_time": iso(16), "end_time": iso(16, 10), "is_deleted": True},
                ],
            },
        )
        data = response.json()

        assert response.status_code == 200
        assert len(data["breaks"]) == 2
        assert first["id"] not in [b["id"] for b in data["breaks"]]

    def test_update_running_entry_is_conflict(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test a running entry cannot be edited."""
        running = client.post("/api/v1/session/start", headers=auth_headers()).json()

        response = client.put(
            f"/api/v1/entries/{running['id']}",
            headers=auth_headers(),
            json={"start_time": iso(8)},
        )

        assert response.status_code == 409

    def test_update_unknown_break(self, client: TestClient, auth_headers, sample_entry) -> None:  # type: ignore[no-untyped-def]
        """Test an unknown break id returns 404."""
        response = client.put(
            f"/api/v1/entries/{sample_entry['id']}",
            headers=auth_headers(),
            json={
                "start_time": iso(9),
                "end_time": iso(17),
                "breaks": [{"id": 999, "is_new": False, "start_time": iso(11), "end_time": iso(11, 5)}],
            },
        )

        assert response.status_code == 404


class TestDeleteEntry:
    """Test DELETE /api/v1/entries/{id}."""

    def test_delete_entry(self, client: TestClient, auth_headers, sample_entry) -> None:  # type: ignore[no-untyped-def]
        """Test deleting an entry."""
        url = f"/api/v1/entries/{sample_entry['id']}"

        assert client.delete(url, headers=auth_headers(2)).status_code == 404
        assert client.delete(url, headers=auth_headers()).status_code == 204
        assert client.get(url, headers=auth_headers()).status_code == 404
