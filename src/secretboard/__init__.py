# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""secretboard: share secrets anonymously.

Local (username/password) and Google sign-in, a signed session cookie and a
YAML-backed user store, served by FastAPI.
"""

__version__ = "0.1.0"
