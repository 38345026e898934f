import itertools

import pytest
from fastapi.testclient import TestClient

from rsvp.app.core.config import Settings
from rsvp.app.main import create_app

_client_ips = itertools.count(1)


def _sqlite_url_from_absolute_path(path: str) -> str:
    # SQLAlchemy expects 4 slashes for absolute paths. The path already starts
    # with '/', so strip it when appending after '////'.
    return f"sqlite+aiosqlite:////{path.lstrip('/')}"


@pytest.fixture
def make_settings(tmp_path):
    """Build Settings pointing at a throwaway SQLite database."""

    def factory(**overrides) -> Settings:
        values = {
            "database_url_override": _sqlite_url_from_absolute_path(
                str(tmp_path / "rsvp_test.db")
            ),
            "node_env": "test",
            "allowed_origins": [],
            "disable_rsvp_rate_limit": False,
            "log_level": "WARNING",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return factory


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def fresh_ip():
    """Return a new client address on every call."""

    def factory() -> str:
        n = next(_client_ips)
        return f"10.{(n >> 16) & 255}.{(n >> 8) & 255}.{n & 255}"

    return factory


@pytest.fixture
def csrf_headers():
    """Fetch a token and build the header + cookie pair a browser would send."""

    def factory(client: TestClient, ip: str | None = None) -> dict[str, str]:
        headers = {"X-Forwarded-For": ip} if ip else {}
        resp = client.get("/api/csrf-token", headers=headers)
        assert resp.status_code == 200, resp.text
        token = resp.json()["token"]
        result = {"x-csrf-token": token, "cookie": f"__Host-csrf-token={token}"}
        result.update(headers)
        return result

    return factory


@pytest.fixture
def create_invite(client, csrf_headers, fresh_ip):
    """Create an invite through the admin API from a fresh client address."""

    def factory(names: list[str], message: str | None = None) -> dict:
        headers = csrf_headers(client, ip=fresh_ip())
        body: dict = {"guests": names}
        if message is not None:
            body["message"] = message
        resp = client.post("/api/admin/invites", json=body, headers=headers)
        assert resp.status_code == 201, resp.text
        return resp.json()

    return factory
