from urllib.parse import parse_qs, urlparse

import pytest
import requests

from secretboard.auth.google import (
    AUTHORIZATION_ENDPOINT,
    TOKEN_ENDPOINT,
    USERINFO_ENDPOINT,
    GoogleIdentityAdapter,
)
from secretboard.errors import HandshakeError


@pytest.fixture()
def adapter(settings, store, google_http):
    return GoogleIdentityAdapter(settings, store, session=google_http)


def _state_from(url: str) -> str:
    return parse_qs(urlparse(url).query)["state"][0]


def test_begin_handshake_url(adapter, settings):
    hs = adapter.begin_handshake()
    assert hs.url.startswith(AUTHORIZATION_ENDPOINT)
    q = parse_qs(urlparse(hs.url).query)
    assert q["scope"] == ["profile"]
    assert q["response_type"] == ["code"]
    assert q["client_id"] == ["test-client-id"]
    assert q["redirect_uri"] == [settings.google_callback_url]
    assert hs.state_cookie and hs.state_cookie != q["state"][0]


def test_complete_handshake_find_or_create(adapter, store, google_http):
    hs = adapter.begin_handshake()
    user = adapter.complete_handshake(code="c1", state=_state_from(hs.url), state_cookie=hs.state_cookie)
    assert user.google_id == "1234567890"
    assert user.kind == "external"

    hs2 = adapter.begin_handshake()
    again = adapter.complete_handshake(code="c2", state=_state_from(hs2.url), state_cookie=hs2.state_cookie)
    assert again.id == user.id
    assert len(store.all()) == 1

    args, kwargs = google_http.post.call_args
    assert args[0] == TOKEN_ENDPOINT
    assert kwargs["data"]["grant_type"] == "authorization_code"
    args, kwargs = google_http.get.call_args
    assert args[0] == USERINFO_ENDPOINT
    assert kwargs["headers"]["Authorization"] == "Bearer ya29.test"


def test_state_mismatch_rejected(adapter, store, google_http):
    hs = adapter.begin_handshake()
    with pytest.raises(HandshakeError):
        adapter.complete_handshake(code="c", state="forged", state_cookie=hs.state_cookie)
    with pytest.raises(HandshakeError):
        adapter.complete_handshake(code="c", state=_state_from(hs.url), state_cookie=None)
    google_http.post.assert_not_called()
    assert store.all() == []


def test_denied_consent(adapter, google_http):
    hs = adapter.begin_handshake()
    with pytest.raises(HandshakeError):
        adapter.complete_handshake(
            code=None, state=_state_from(hs.url), state_cookie=hs.state_cookie, error="access_denied"
        )
    google_http.post.assert_not_called()


def test_provider_errors(adapter, store, google_http, make_response):
    hs = adapter.begin_handshake()
    state = _state_from(hs.url)

    google_http.post.return_value = make_response(400, {"error": "invalid_grant"})
    with pytest.raises(HandshakeError):
        adapter.complete_handshake(code="c", state=state, state_cookie=hs.state_cookie)

    google_http.post.side_effect = requests.ConnectionError("boom")
    with pytest.raises(HandshakeError):
        adapter.complete_handshake(code="c", state=state, state_cookie=hs.state_cookie)

    google_http.post.side_effect = None
    google_http.post.return_value = make_response(200, {"access_token": "t"})
    google_http.get.return_value = make_response(200, {"name": "no subject"})
    with pytest.raises(HandshakeError):
        adapter.complete_handshake(code="c", state=state, state_cookie=hs.state_cookie)
    assert store.all() == []


def test_not_configured(settings, store, monkeypatch):
    from secretboard.config import load_settings

    monkeypatch.delenv("CLIENT_ID")
    load_settings.cache_clear()
    adapter = GoogleIdentityAdapter(load_settings(), store)
    assert adapter.enabled is False
    with pytest.raises(HandshakeError):
        adapter.begin_handshake()


def test_non_ascii_state_rejected(adapter, google_http):
    hs = adapter.begin_handshake()
    with pytest.raises(HandshakeError):
        adapter.complete_handshake(code="c", state="été", state_cookie=hs.state_cookie)
    google_http.post.assert_not_called()
