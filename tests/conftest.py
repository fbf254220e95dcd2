from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi.testclient import TestClient

from oauth_mcp_server.config import Settings
from oauth_mcp_server.main import create_app

TEST_SECRET = "test-secret-key-for-hs256-signing-0123456789"
OTHER_SECRET = "another-secret-key-for-hs256-signing-987654"
ISSUER = "http://testserver"
REDIRECT_URI = "https://cb.example.com/callback"
CLIENT_ID = "c1"

# RFC 7636 Appendix B
CODE_VERIFIER = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
CODE_CHALLENGE = "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


class FakeClock:
    """Controllable stand-in for datetime.now(timezone.utc)"""

    def __init__(self, start=None):
        self.now = start or datetime.now(timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def query_of(url):
    """Single-valued query parameters of a URL"""
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(JWT_SECRET=TEST_SECRET, SERVER_URI=None, _env_file=None)


@pytest.fixture
def app(settings, clock):
    return create_app(settings, clock=clock)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def authorize(client):
    """Call /authorize with valid defaults; keyword arguments override them"""

    def _authorize(**overrides):
        params = {
            "response_type": "code",
            "client_id": CLIENT_ID,
            "redirect_uri": REDIRECT_URI,
            "code_challenge": CODE_CHALLENGE,
            "code_challenge_method": "S256",
            "state": "xyz",
        }
        params.update(overrides)
        params = {key: value for key, value in params.items() if value is not None}
        return client.get("/authorize", params=params, follow_redirects=False)

    return _authorize


@pytest.fixture
def auth_code(authorize):
    response = authorize()
    assert response.status_code == 302
    return query_of(response.headers["location"])["code"]


@pytest.fixture
def access_token(client, auth_code):
    response = client.post(
        "/token",
        data={
            "grant_type": "authorization_code",
            "code": auth_code,
            "redirect_uri": REDIRECT_URI,
            "client_id": CLIENT_ID,
            "code_verifier": CODE_VERIFIER,
        },
    )
    assert response.status_code == 200
    return response.json()["access_token"]


@pytest.fixture
def auth_headers(access_token):
    return {"Authorization": f"Bearer {access_token}"}
