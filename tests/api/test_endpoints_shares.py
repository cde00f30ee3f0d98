"""Tests for share endpoints."""

from fastapi.testclient import TestClient  # type: ignore[import-untyped]
from conftest import FakeClock


def create_share(client: TestClient, headers: dict[str, str], **body):  # type: ignore[no-untyped-def]
    response = client.post("/api/v1/shares", headers=headers, json=body)
    assert response.status_code == 201
    return response.json()


class TestShareEndpoints:
    """Test issuing, resolving and revoking shares."""

    def test_create_share(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test a weekly share with the default expiry."""
        shared = create_share(client, auth_headers())

        assert shared["report_type"] == "weekly"
        assert shared["start_date"] == "2025-11-17"
        assert shared["end_date"] == "2025-11-23"
        assert len(shared["share_token"]) >= 16
        assert shared["expires_at"] is not None

    def test_public_view(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test anyone with the token sees the live report."""
        headers = auth_headers()
        shared = create_share(client, headers, expires_in_days=0)
        client.post(
            "/api/v1/entries",
            headers=headers,
            json={"start_time": "2025-11-18T09:00:00+00:00", "end_time": "2025-11-18T12:00:00+00:00"},
        )

        response = client.get(f"/api/v1/shared/{shared['share_token']}")
        data = response.json()

        assert response.status_code == 200
        assert data["report"]["expires_at"] is None
        assert len(data["report_data"]["entries"]) == 1

    def test_expired_share_is_gone(
        self, client: TestClient, auth_headers, clock: FakeClock
    ) -> None:  # type: ignore[no-untyped-def]
        """Test an expired share returns 410."""
        shared = create_share(client, auth_headers(), expires_in_days=1)
        clock.advance(days=2)

        response = client.get(f"/api/v1/shared/{shared['share_token']}")

        assert response.status_code == 410
        assert response.json()["detail"] == "Shared report has expired"

    def test_unknown_token(self, client: TestClient) -> None:
        """Test an unknown token returns 404."""
        assert client.get("/api/v1/shared/0000000000000000").status_code == 404

    def test_revoke(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test revoked tokens stop resolving."""
        shared = create_share(client, auth_headers())
        url = f"/api/v1/shares/{shared['share_token']}"

        assert client.delete(url, headers=auth_headers(2)).status_code == 404
        assert client.delete(url, headers=auth_headers()).status_code == 204
        assert client.get(f"/api/v1/shared/{shared['share_token']}").status_code == 404

    def test_list_shares(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test listing only the caller's shares."""
        mine = create_share(client, auth_headers(), report_type="daily")
        create_share(client, auth_headers(2))

        response = client.get("/api/v1/shares", headers=auth_headers())

        assert [s["share_token"] for s in response.json()] == [mine["share_token"]]

    def test_sharing_disabled(self, client: TestClient, auth_headers) -> None:  # type: ignore[no-untyped-def]
        """Test disabled sharing returns 400."""
        headers = auth_headers()
        client.patch("/api/v1/settings", headers=headers, json={"allow_sharing": False})

        response = client.post("/api/v1/shares", headers=headers, json={})

        assert response.status_code == 400
