"""Guest autocomplete search endpoint tests."""

import pytest
from fastapi.testclient import TestClient

from rsvp.app.api.guests import searchable_prefix
from rsvp.app.main import create_app


@pytest.fixture
def invite_code(create_invite):
    create_invite(["Matt Jones", "Matthew Jameson"])
    return create_invite(["Jane Doe", "John Doe"])["inviteCode"]


def _search(client, code, query, ip="198.51.100.30"):
    params = {"query": query}
    if code is not None:
        params["inviteCode"] = code
    return client.get("/api/guests/search", params=params, headers={"X-Forwarded-For": ip})


class TestSearchablePrefix:
    @pytest.mark.parametrize("query", ["", "Ma", "Matt", "Matt ", "J Doe", "  J  "])
    def test_nothing_searchable(self, query):
        assert searchable_prefix(query) is None

    def test_first_and_partial_last_name(self):
        assert searchable_prefix("Matt J") == "Matt J"

    def test_query_is_sanitized(self):
        assert searchable_prefix("<Matt> J") == "Matt J"


class TestGuestSearch:
    def test_requires_invite_code(self, client):
        resp = _search(client, None, "Matt J")
        assert resp.status_code == 401
        assert resp.json()["error"] == "Unauthorized"

    def test_unknown_invite_code(self, client):
        resp = _search(client, "NOPE42", "Matt J")
        assert resp.status_code == 403
        assert resp.json()["error"] == "Invalid invite session"

    def test_prefix_match(self, client, invite_code):
        resp = _search(client, invite_code, "matt j")
        assert resp.status_code == 200, resp.text
        results = resp.json()["results"]
        assert [r["name"] for r in results] == ["Matt Jones"]
        assert set(results[0]) == {"id", "name", "dietaryNotes"}

    def test_partial_first_name_does_not_match(self, client, invite_code):
        resp = _search(client, invite_code, "Mat J")
        assert resp.json() == {"results": []}

    @pytest.mark.parametrize("query", ["Ma", "Matt", "M J"])
    def test_short_or_incomplete_queries_return_nothing(self, client, invite_code, query):
        resp = _search(client, invite_code, query)
        assert resp.status_code == 200
        assert resp.json() == {"results": []}

    def test_like_wildcards_are_literal(self, client, invite_code):
        resp = _search(client, invite_code, "Ja%e D")
        assert resp.json() == {"results": []}

    def test_results_limited_to_ten(self, client, create_invite, invite_code):
        create_invite([f"Anna S{letter}mith" for letter in "abcdefghijkl"])
        resp = _search(client, invite_code, "Anna S")
        assert len(resp.json()["results"]) == 10

    def test_rate_limited_after_thirty_searches(self, client, invite_code):
        for _ in range(30):
            assert _search(client, invite_code, "Jane D", ip="198.51.100.31").status_code == 200
        resp = _search(client, invite_code, "Jane D", ip="198.51.100.31")
        assert resp.status_code == 429
        assert "Retry-After" in resp.headers

    def test_rate_limit_applies_before_invite_check(self, client):
        for _ in range(30):
            assert _search(client, None, "x", ip="198.51.100.32").status_code == 401
        assert _search(client, None, "x", ip="198.51.100.32").status_code == 429


def test_search_not_limited_when_disabled(make_settings):
    app = create_app(make_settings(disable_rsvp_rate_limit=True))
    with TestClient(app, raise_server_exceptions=False) as client:
        for _ in range(35):
            assert _search(client, None, "x", ip="198.51.100.33").status_code == 401
