"""Admin invite management endpoint tests."""

import re

from fastapi.testclient import TestClient

from rsvp.app.db.crud.invite import INVITE_CODE_ALPHABET
from rsvp.app.main import create_app


def _post(client, csrf_headers, path, body=None, ip="198.51.100.40"):
    return client.post(path, json=body, headers=csrf_headers(client, ip=ip))


class TestCreateInvite:
    def test_creates_invite_with_random_code(self, client, csrf_headers):
        resp = _post(client, csrf_headers, "/api/admin/invites", {"guests": ["Jane Doe", " John Doe "]})
        assert resp.status_code == 201, resp.text
        code = resp.json()["inviteCode"]
        assert re.fullmatch(f"[{INVITE_CODE_ALPHABET}]{{6}}", code)

        invite = client.get("/api/rsvp", params={"inviteCode": code}).json()
        assert [g["name"] for g in invite["guests"]] == ["Jane Doe", "John Doe"]

    def test_codes_are_unique(self, client, create_invite):
        codes = {create_invite(["Jane Doe"])["inviteCode"] for _ in range(8)}
        assert len(codes) == 8

    def test_blank_names_are_dropped(self, client, csrf_headers):
        resp = _post(client, csrf_headers, "/api/admin/invites", {"guests": ["Jane Doe", "", "   "]})
        assert resp.status_code == 201
        code = resp.json()["inviteCode"]
        invite = client.get("/api/rsvp", params={"inviteCode": code}).json()
        assert len(invite["guests"]) == 1

    def test_empty_guest_list_rejected(self, client, csrf_headers):
        resp = _post(client, csrf_headers, "/api/admin/invites", {"guests": []})
        assert resp.status_code == 400
        assert resp.json()["errors"] == {"guests": "Guest list required"}

    def test_invalid_name_rejected(self, client, csrf_headers):
        resp = _post(client, csrf_headers, "/api/admin/invites", {"guests": ["Jane Doe", "R2D2"]})
        assert resp.status_code == 400
        assert resp.json()["errors"]["guests"].startswith("Guest 2: Name can only contain")

    def test_too_many_guests_rejected(self, client, csrf_headers):
        names = [f"Guest {chr(65 + i)}" for i in range(21)]
        resp = _post(client, csrf_headers, "/api/admin/invites", {"guests": names})
        assert resp.status_code == 400
        assert resp.json()["errors"]["guests"] == "You can RSVP up to 20 guests including yourself"

    def test_requires_csrf(self, client):
        resp = client.post("/api/admin/invites", json={"guests": ["Jane Doe"]})
        assert resp.status_code == 403
        assert resp.json()["error"] == "CSRF token missing"

    def test_post_operations_limit(self, client, csrf_headers):
        headers = csrf_headers(client, ip="198.51.100.41")
        for _ in range(5):
            resp = client.post("/api/admin/invites", json={"guests": ["Jane Doe"]}, headers=headers)
            assert resp.status_code == 201
        resp = client.post("/api/admin/invites", json={"guests": ["Jane Doe"]}, headers=headers)
        assert resp.status_code == 429
        assert resp.headers["X-RateLimit-Limit"] == "5"

    def test_admin_limit_not_disabled_by_rsvp_flag(self, make_settings):
        app = create_app(make_settings(disable_rsvp_rate_limit=True))
        with TestClient(app, raise_server_exceptions=False) as client:
            headers = {"X-Forwarded-For": "198.51.100.42"}
            for _ in range(5):
                client.post("/api/admin/invites", json={"guests": ["Jane Doe"]}, headers=headers)
            resp = client.post("/api/admin/invites", json={"guests": ["Jane Doe"]}, headers=headers)
            assert resp.status_code == 429


class TestListInvites:
    def test_lists_invites_with_guests(self, client, create_invite):
        first = create_invite(["Jane Doe"])
        second = create_invite(["Ann Lee", "Bo Lee"], message="Family table")

        resp = client.get("/api/admin/invites")
        assert resp.status_code == 200
        invites = {i["inviteCode"]: i for i in resp.json()}
        assert set(invites) == {first["inviteCode"], second["inviteCode"]}
        assert [g["name"] for g in invites[second["inviteCode"]]["guests"]] == ["Ann Lee", "Bo Lee"]
        assert invites[second["inviteCode"]]["message"] == "Family table"
        assert "createdAt" in invites[first["inviteCode"]]


class TestResetInvite:
    def test_reset_clears_responses(self, client, csrf_headers, create_invite):
        created = create_invite(["Jane Doe", "John Doe"])
        answered = client.post(
            "/api/rsvp",
            json={
                "inviteCode": created["inviteCode"],
                "name": "Jane Doe",
                "attending": "ATTENDING",
                "dietaryNotes": "Vegan",
                "message": "Yay",
            },
            headers=csrf_headers(client, ip="198.51.100.43"),
        )
        assert answered.status_code == 200, answered.text

        resp = _post(client, csrf_headers, f"/api/admin/invites/{created['id']}/reset")
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["message"] is None
        assert data["responded"] is False
        assert all(g["status"] == "UNSELECTED" and g["dietNotes"] is None for g in data["guests"])

    def test_reset_unknown_invite(self, client, csrf_headers):
        resp = _post(client, csrf_headers, "/api/admin/invites/does-not-exist/reset")
        assert resp.status_code == 404
