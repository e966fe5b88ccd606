# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Anchor the default users.yml path to the project root (works well with editable installs).
BASE_DIR = Path(__file__).resolve().parents[2]
DEFAULT_USERS_PATH = BASE_DIR / "data" / "users.yml"
DEFAULT_CALLBACK_URL = "http://localhost:3000/auth/google/secrets"


def _flag(value: str) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "y", "on"}


def _opt(name: str) -> Optional[str]:
    return (os.getenv(name, "") or "").strip() or None


@dataclass(frozen=True)
class Settings:
    secret_key: Optional[str]
    users_path: Path
    cookie_name: str
    session_max_age: int
    cookie_secure: bool

    # Google OAuth client
    google_client_id: Optional[str]
    google_client_secret: Optional[str]
    google_callback_url: str

    host: str
    port: int
    reload: bool
    log_level: str

    @property
    def google_enabled(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Read settings from the environment (and ``.env`` when present)."""
    load_dotenv()

    max_age = int(os.getenv("SECRETBOARD_SESSION_MAX_AGE", "28800"))  # 8 hours
    if max_age <= 60:
        max_age = 60

    return Settings(
        secret_key=_opt("SECRET_KEY"),
        users_path=Path(os.getenv("SECRETBOARD_USERS_PATH", str(DEFAULT_USERS_PATH))).resolve(),
        cookie_name=os.getenv("SECRETBOARD_COOKIE_NAME", "secretboard_session"),
        session_max_age=max_age,
        cookie_secure=_flag(os.getenv("SECRETBOARD_COOKIE_SECURE", "false")),
        google_client_id=_opt("CLIENT_ID"),
        google_client_secret=_opt("CLIENT_SECRET"),
        google_callback_url=_opt("GOOGLE_CALLBACK_URL") or DEFAULT_CALLBACK_URL,
        host=os.getenv("SECRETBOARD_HOST", "0.0.0.0"),
        port=int(os.getenv("SECRETBOARD_PORT", "3000")),
        reload=_flag(os.getenv("SECRETBOARD_RELOAD", "false")),
        log_level=os.getenv("SECRETBOARD_LOG_LEVEL", "INFO").upper(),
    )
