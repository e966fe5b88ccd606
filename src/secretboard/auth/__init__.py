# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication.

This package provides:
- Password hashing/verification (argon2)
- Local registration and login against the user store
- Google OAuth 2.0 sign-in with find-or-create on the Google id
- Server-side sessions behind a signed cookie (itsdangerous)
"""
