# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations


class SecretboardError(Exception):
    """Base class for application errors."""


class DuplicateUsernameError(SecretboardError):
    def __init__(self, username: str):
        super().__init__(f"Username already registered: {username}")
        self.username = username


class InvalidCredentialsError(SecretboardError):
    """Unknown user, no local credential, or wrong password."""


class HandshakeError(SecretboardError):
    """The identity provider handshake did not produce a user."""


class StoreError(SecretboardError):
    """The user store could not be read or written."""


class UnknownUserError(SecretboardError):
    """The user id is not (or no longer) in the store."""
