# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request

from secretboard.auth.session import SessionManager
from secretboard.config import Settings
from secretboard.models import User


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions


def session_token(request: Request) -> str:
    return request.cookies.get(get_settings(request).cookie_name, "")


def load_user_from_request(request: Request) -> Optional[User]:
    token = session_token(request)
    if not token:
        return None
    return get_sessions(request).resolve(token)


def current_user_optional(request: Request) -> Optional[User]:
    u = getattr(request.state, "user", None)
    if u is not None:
        return u
    return load_user_from_request(request)


def require_user(request: Request) -> User:
    u = current_user_optional(request)
    if u:
        return u
    raise HTTPException(status_code=303, headers={"Location": "/login"})


def cookie_settings(settings: Settings) -> dict:
    return {"httponly": True, "samesite": "lax", "secure": settings.cookie_secure, "path": "/"}
