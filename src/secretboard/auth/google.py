# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests
from itsdangerous import BadSignature, BadTimeSignature, URLSafeTimedSerializer

from secretboard.config import Settings
from secretboard.errors import HandshakeError
from secretboard.infra.user_store import UserStore
from secretboard.models import User

logger = logging.getLogger(__name__)

AUTHORIZATION_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
USERINFO_ENDPOINT = "https://www.googleapis.com/oauth2/v3/userinfo"

SCOPE = "profile"
STATE_COOKIE_NAME = "secretboard_oauth_state"
STATE_MAX_AGE_SECONDS = 600
STATE_SALT = "secretboard.oauth-state.v1"
HTTP_TIMEOUT_SECONDS = 10


@dataclass(frozen=True)
class Handshake:
    url: str
    # Signed value for the state cookie; checked again on the callback.
    state_cookie: str


class GoogleIdentityAdapter:
    """Google OAuth 2.0 sign-in (authorization code flow).

    ``begin_handshake`` builds the redirect to Google; ``complete_handshake``
    exchanges the returned code, reads the ``sub`` claim from the userinfo
    endpoint and finds or creates the matching user.
    """

    def __init__(self, settings: Settings, store: UserStore, *, session: Optional[requests.Session] = None):
        self.settings = settings
        self.store = store
        self.http = session or requests.Session()
        self._serializer = (
            URLSafeTimedSerializer(secret_key=settings.secret_key, salt=STATE_SALT) if settings.secret_key else None
        )

    @property
    def enabled(self) -> bool:
        return self.settings.google_enabled and self._serializer is not None

    def begin_handshake(self) -> Handshake:
        if not self.enabled:
            raise HandshakeError("Google sign-in is not configured")
        state = secrets.token_urlsafe(32)
        params = {
            "client_id": self.settings.google_client_id,
            "redirect_uri": self.settings.google_callback_url,
            "response_type": "code",
            "scope": SCOPE,
            "state": state,
        }
        return Handshake(
            url=f"{AUTHORIZATION_ENDPOINT}?{urlencode(params)}",
            state_cookie=self._serializer.dumps(state),
        )

    def _expected_state(self, state_cookie: str) -> str:
        if not state_cookie:
            raise HandshakeError("Missing OAuth state cookie")
        try:
            return str(self._serializer.loads(state_cookie, max_age=STATE_MAX_AGE_SECONDS))
        except (BadSignature, BadTimeSignature) as e:
            raise HandshakeError("Invalid or expired OAuth state") from e

    def _exchange_code(self, code: str) -> str:
        payload = {
            "client_id": self.settings.google_client_id,
            "client_secret": self.settings.google_client_secret,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.settings.google_callback_url,
        }
        try:
            r = self.http.post(TOKEN_ENDPOINT, data=payload, timeout=HTTP_TIMEOUT_SECONDS)
        except requests.RequestException as e:
            raise HandshakeError(f"Token exchange failed: {e}") from e
        if r.status_code >= 400:
            # Avoid leaking provider details; status only.
            raise HandshakeError(f"Token exchange failed (status={r.status_code})")
        try:
            data = r.json()
        except ValueError as e:
            raise HandshakeError("Provider returned invalid JSON") from e
        token = str((data or {}).get("access_token") or "").strip() if isinstance(data, dict) else ""
        if not token:
            raise HandshakeError("Missing access_token in token response")
        return token

    def _fetch_profile(self, access_token: str) -> Dict[str, Any]:
        try:
            r = self.http.get(
                USERINFO_ENDPOINT,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=HTTP_TIMEOUT_SECONDS,
            )
        except requests.RequestException as e:
            raise HandshakeError(f"Profile request failed: {e}") from e
        if r.status_code >= 400:
            raise HandshakeError(f"Profile request failed (status={r.status_code})")
        try:
            data = r.json()
        except ValueError as e:
            raise HandshakeError("Provider returned invalid JSON") from e
        if not isinstance(data, dict):
            raise HandshakeError("Invalid profile response")
        return data

    def complete_handshake(
        self,
        *,
        code: Optional[str],
        state: Optional[str],
        state_cookie: Optional[str],
        error: Optional[str] = None,
    ) -> User:
        if not self.enabled:
            raise HandshakeError("Google sign-in is not configured")
        if error:
            raise HandshakeError(f"Provider returned error: {error}")
        if not code:
            raise HandshakeError("Missing authorization code")

        expected = self._expected_state(state_cookie or "")
        if not state or not hmac.compare_digest(expected.encode("utf-8"), state.encode("utf-8")):
            raise HandshakeError("OAuth state mismatch")

        profile = self._fetch_profile(self._exchange_code(code))
        subject = str(profile.get("sub") or "").strip()
        if not subject:
            raise HandshakeError("Profile has no subject id")
        logger.debug("Google profile received for subject %s", subject)

        user, created = self.store.find_or_create_by_google_id(subject)
        if created:
            logger.info("Created user %s for a new Google account", user.id)
        return user
