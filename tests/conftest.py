import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from secretboard.app import create_app
from secretboard.config import load_settings
from secretboard.infra.user_store import UserStore

TEST_SECRET_KEY = "test-secret-key-for-testing-purposes-only"


@pytest.fixture()
def settings(tmp_path: Path, monkeypatch):
    """Settings pointing at a throwaway users.yml, Google sign-in configured."""
    monkeypatch.setenv("SECRET_KEY", TEST_SECRET_KEY)
    monkeypatch.setenv("SECRETBOARD_USERS_PATH", str(tmp_path / "data" / "users.yml"))
    monkeypatch.setenv("CLIENT_ID", "test-client-id")
    monkeypatch.setenv("CLIENT_SECRET", "test-client-secret")
    monkeypatch.delenv("SECRETBOARD_COOKIE_NAME", raising=False)
    monkeypatch.delenv("SECRETBOARD_COOKIE_SECURE", raising=False)
    monkeypatch.delenv("GOOGLE_CALLBACK_URL", raising=False)
    load_settings.cache_clear()
    yield load_settings()
    load_settings.cache_clear()


@pytest.fixture()
def store(settings) -> UserStore:
    return UserStore(settings.users_path)


def _response(status_code: int = 200, payload=None):
    r = MagicMock()
    r.status_code = status_code
    r.json.return_value = payload if payload is not None else {}
    return r


@pytest.fixture()
def google_http():
    """Stand-in for the requests.Session used to talk to Google."""
    http = MagicMock()
    http.post.return_value = _response(200, {"access_token": "ya29.test", "token_type": "Bearer"})
    http.get.return_value = _response(200, {"sub": "1234567890", "name": "Test User"})
    return http


@pytest.fixture()
def make_response():
    return _response


@pytest.fixture()
def app(settings, store, google_http):
    from secretboard.auth.google import GoogleIdentityAdapter

    return create_app(settings, store=store, google=GoogleIdentityAdapter(settings, store, session=google_http))


@pytest.fixture()
def client(app):
    return TestClient(app, follow_redirects=False)
