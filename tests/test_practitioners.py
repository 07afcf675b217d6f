"""
tests/test_practitioners.py -- Practitioner listing, presence and profiles.

Coverage:
  - GET /api/practitioners?online=true returns only isOnline records
  - ?id= returns one practitioner with its profile; unknown id -> 404
  - presence heartbeat through GET/PUT /api/practitioners/status
  - inService is not writable through the status endpoint
  - PUT /api/profiles updates only the caller's own profile
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from fakes import FakeSupabase, auth


class TestListing:
    """GET /api/practitioners."""

    def test_online_filter(self, client: TestClient, fake_db: FakeSupabase, practitioner: tuple[str, str]) -> None:
        fake_db.add_user("off1@example.com", "practitioner", online=False)
        fake_db.add_user("off2@example.com", "practitioner", online=False)
        fake_db.add_user("on2@example.com", "practitioner", online=True, in_service=True)

        resp = client.get("/api/practitioners", params={"online": "true"})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert len(body) == 2
        assert all(p["isOnline"] is True for p in body), f"Offline practitioner leaked: {body}"

    def test_unfiltered_lists_everyone_online_first(
        self, client: TestClient, fake_db: FakeSupabase, practitioner: tuple[str, str]
    ) -> None:
        fake_db.add_user("off@example.com", "practitioner", online=False)
        body = client.get("/api/practitioners").json()
        assert [p["isOnline"] for p in body] == [True, False]
        assert body[0]["profile"]["displayName"] == "Pat Practitioner"

    def test_single_by_id(self, client: TestClient, practitioner: tuple[str, str]) -> None:
        resp = client.get("/api/practitioners", params={"id": practitioner[0]})
        assert resp.status_code == 200
        body = resp.json()
        assert body["userId"] == practitioner[0]
        assert body["profile"]["role"] == "practitioner"
        assert body["reviewCount"] == 0

    def test_unknown_id_is_404(self, client: TestClient) -> None:
        assert client.get("/api/practitioners", params={"id": "missing"}).status_code == 404

    def test_upstream_failure_is_502(self, client: TestClient, fake_db: FakeSupabase) -> None:
        fake_db.failing_tables.add("practitioners")
        resp = client.get("/api/practitioners")
        assert resp.status_code == 502
        assert "upstream failure" in resp.json()["detail"]


class TestPresence:
    """GET/PUT /api/practitioners/status."""

    def test_get_status(self, client: TestClient, practitioner: tuple[str, str]) -> None:
        resp = client.get("/api/practitioners/status", headers=auth(practitioner[1]))
        assert resp.json() == {"isOnline": True, "inService": False}

    def test_go_offline(self, client: TestClient, fake_db: FakeSupabase, practitioner: tuple[str, str]) -> None:
        resp = client.put("/api/practitioners/status", json={"isOnline": False}, headers=auth(practitioner[1]))
        assert resp.status_code == 200, resp.text
        assert fake_db.row("practitioners", userId=practitioner[0])["isOnline"] is False
        listed = client.get("/api/practitioners", params={"online": "true"}).json()
        assert listed == []

    def test_in_service_not_writable(
        self, client: TestClient, fake_db: FakeSupabase, practitioner: tuple[str, str]
    ) -> None:
        client.put(
            "/api/practitioners/status", json={"isOnline": True, "inService": True}, headers=auth(practitioner[1])
        )
        assert fake_db.row("practitioners", userId=practitioner[0])["inService"] is False

    def test_guest_has_no_status(self, client: TestClient, guest: tuple[str, str]) -> None:
        resp = client.put("/api/practitioners/status", json={"isOnline": True}, headers=auth(guest[1]))
        assert resp.status_code == 404

    def test_status_requires_auth(self, client: TestClient) -> None:
        assert client.put("/api/practitioners/status", json={"isOnline": True}).status_code == 401


class TestCreatePractitioner:
    """POST /api/practitioners."""

    def test_existing_record_conflicts(self, client: TestClient, practitioner: tuple[str, str]) -> None:
        assert client.post("/api/practitioners", headers=auth(practitioner[1])).status_code == 409

    def test_guest_forbidden(self, client: TestClient, guest: tuple[str, str]) -> None:
        resp = client.post("/api/practitioners", headers=auth(guest[1]))
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Only practitioners can access this endpoint"

    def test_creates_missing_record(self, client: TestClient, fake_db: FakeSupabase, practitioner: tuple[str, str]) -> None:
        fake_db.tables["practitioners"].clear()
        resp = client.post("/api/practitioners", headers=auth(practitioner[1]))
        assert resp.status_code == 201, resp.text
        assert resp.json()["isOnline"] is False


class TestProfiles:
    """PUT /api/profiles and GET /api/profiles/{id}."""

    def test_update_own_profile(self, client: TestClient, fake_db: FakeSupabase, guest: tuple[str, str]) -> None:
        resp = client.put(
            "/api/profiles",
            json={"displayName": "Gwen G.", "bio": "Hello", "specialties": ["yoga"]},
            headers=auth(guest[1]),
        )
        assert resp.status_code == 200, resp.text
        row = fake_db.row("profiles", id=guest[0])
        assert row["displayName"] == "Gwen G."
        assert row["specialties"] == ["yoga"]
        assert row["role"] == "guest"

    def test_role_is_not_writable(self, client: TestClient, fake_db: FakeSupabase, guest: tuple[str, str]) -> None:
        client.put("/api/profiles", json={"role": "practitioner"}, headers=auth(guest[1]))
        assert fake_db.row("profiles", id=guest[0])["role"] == "guest"

    def test_empty_display_name_rejected(self, client: TestClient, guest: tuple[str, str]) -> None:
        resp = client.put("/api/profiles", json={"displayName": ""}, headers=auth(guest[1]))
        assert resp.status_code == 400

    def test_get_profile(self, client: TestClient, guest: tuple[str, str], practitioner: tuple[str, str]) -> None:
        resp = client.get(f"/api/profiles/{practitioner[0]}", headers=auth(guest[1]))
        assert resp.status_code == 200
        assert resp.json()["displayName"] == "Pat Practitioner"
        assert client.get("/api/profiles/missing", headers=auth(guest[1])).status_code == 404
