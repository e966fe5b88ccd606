# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging

from secretboard.auth.passwords import hash_password, verify_password
from secretboard.errors import InvalidCredentialsError
from secretboard.infra.user_store import UserStore
from secretboard.models import User

logger = logging.getLogger(__name__)


class CredentialVerifier:
    """Username/password registration and login against the user store."""

    def __init__(self, store: UserStore):
        self.store = store

    def register(self, username: str, password: str) -> User:
        """Create a local user.

        Raises ``DuplicateUsernameError`` if the username is taken and
        ``ValueError`` if username or password is empty.
        """
        u = (username or "").strip()
        if not u:
            raise ValueError("Username must not be empty")
        user = self.store.create_local(u, hash_password(password))
        logger.info("Registered local user %s", user.id)
        return user

    def verify(self, username: str, password: str) -> User:
        user = self.store.get_by_username(username)
        if user is None or not user.is_local:
            raise InvalidCredentialsError("Invalid username or password")
        if not verify_password(user.password_hash or "", password):
            raise InvalidCredentialsError("Invalid username or password")
        return user
