# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from secretboard.auth.google import STATE_COOKIE_NAME, STATE_MAX_AGE_SECONDS, GoogleIdentityAdapter
from secretboard.auth.local import CredentialVerifier
from secretboard.auth.session import SessionManager
from secretboard.config import Settings, load_settings
from secretboard.errors import (
    DuplicateUsernameError,
    HandshakeError,
    InvalidCredentialsError,
    StoreError,
    UnknownUserError,
)
from secretboard.infra.user_store import UserStore
from secretboard.models import User
from secretboard.permissions import (
    cookie_settings,
    load_user_from_request,
    require_user,
    session_token,
)

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))


def _render(request: Request, template_name: str, ctx: Optional[dict] = None, status_code: int = 200):
    """TemplateResponse wrapper injecting the signed-in user."""
    base_ctx = {
        "current_user": getattr(request.state, "user", None),
        "google_enabled": request.app.state.google.enabled,
    }
    merged = {**base_ctx, **(ctx or {})}
    return templates.TemplateResponse(request, template_name, merged, status_code=status_code)


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


def _start_session(request: Request, user: User, url: str = "/secrets") -> RedirectResponse:
    settings: Settings = request.app.state.settings
    token = request.app.state.sessions.login(user)
    resp = _redirect(url)
    resp.set_cookie(
        settings.cookie_name,
        token,
        max_age=settings.session_max_age,
        **cookie_settings(settings),
    )
    return resp


def create_app(
    settings: Optional[Settings] = None,
    *,
    store: Optional[UserStore] = None,
    google: Optional[GoogleIdentityAdapter] = None,
) -> FastAPI:
    """Build the application with its services attached to ``app.state``."""
    settings = settings or load_settings()
    store = store or UserStore(settings.users_path)

    app = FastAPI(title="secretboard")
    app.state.settings = settings
    app.state.store = store
    app.state.credentials = CredentialVerifier(store)
    app.state.sessions = SessionManager(store, settings.secret_key, max_age=settings.session_max_age)
    app.state.google = google or GoogleIdentityAdapter(settings, store)

    app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

    @app.middleware("http")
    async def _auth_middleware(request: Request, call_next):
        try:
            request.state.user = load_user_from_request(request)
        except StoreError:
            logger.exception("Cannot resolve session user")
            return PlainTextResponse("Internal Server Error", status_code=500)
        return await call_next(request)

    @app.exception_handler(StoreError)
    async def _store_error_handler(request: Request, exc: StoreError):
        logger.error("User store failure on %s %s: %s", request.method, request.url.path, exc)
        return PlainTextResponse("Internal Server Error", status_code=500)

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    # ------------------ Public pages ------------------

    @app.get("/", response_class=HTMLResponse)
    def home(request: Request):
        return _render(request, "home.html")

    @app.get("/login", response_class=HTMLResponse)
    def login_get(request: Request):
        return _render(request, "login.html", {"error": ""})

    @app.get("/register", response_class=HTMLResponse)
    def register_get(request: Request):
        return _render(request, "register.html")

    @app.get("/secrets", response_class=HTMLResponse)
    def secrets_page(request: Request):
        return _render(request, "secrets.html", {"secrets": request.app.state.store.list_secrets()})

    # ------------------ Local auth ------------------

    @app.post("/register")
    def register_post(request: Request, username: str = Form(""), password: str = Form("")):
        try:
            user = request.app.state.credentials.register(username, password)
        except DuplicateUsernameError as e:
            logger.info("Registration rejected: %s", e)
            return _redirect("/register")
        except ValueError as e:
            logger.info("Registration rejected: %s", e)
            return _redirect("/register")
        return _start_session(request, user)

    @app.post("/login")
    def login_post(request: Request, username: str = Form(""), password: str = Form("")):
        try:
            user = request.app.state.credentials.verify(username, password)
        except InvalidCredentialsError:
            logger.info("Failed login for username %r", username)
            return _render(request, "login.html", {"error": "Invalid username or password."})
        logger.info("User %s logged in", user.id)
        return _start_session(request, user)

    @app.get("/logout")
    def logout(request: Request):
        token = session_token(request)
        if token:
            request.app.state.sessions.logout(token)
        settings: Settings = request.app.state.settings
        resp = _redirect("/")
        resp.delete_cookie(settings.cookie_name, path="/")
        return resp

    # ------------------ Google sign-in ------------------

    @app.get("/auth/google")
    def auth_google(request: Request):
        google: GoogleIdentityAdapter = request.app.state.google
        try:
            handshake = google.begin_handshake()
        except HandshakeError as e:
            logger.warning("Google sign-in unavailable: %s", e)
            return _redirect("/login")
        settings: Settings = request.app.state.settings
        resp = RedirectResponse(url=handshake.url, status_code=302)
        resp.headers["Cache-Control"] = "no-store"
        resp.set_cookie(
            STATE_COOKIE_NAME,
            handshake.state_cookie,
            max_age=STATE_MAX_AGE_SECONDS,
            **cookie_settings(settings),
        )
        return resp

    @app.get("/auth/google/secrets")
    def auth_google_callback(
        request: Request,
        code: Optional[str] = None,
        state: Optional[str] = None,
        error: Optional[str] = None,
    ):
        google: GoogleIdentityAdapter = request.app.state.google
        try:
            user = google.complete_handshake(
                code=code,
                state=state,
                state_cookie=request.cookies.get(STATE_COOKIE_NAME),
                error=error,
            )
        except HandshakeError as e:
            logger.warning("Google sign-in failed: %s", e)
            resp = _redirect("/login")
        else:
            logger.info("User %s logged in with Google", user.id)
            resp = _start_session(request, user)
        resp.delete_cookie(STATE_COOKIE_NAME, path="/")
        return resp

    # ------------------ Secrets ------------------

    @app.get("/submit", response_class=HTMLResponse)
    def submit_get(request: Request, user: User = Depends(require_user)):
        return _render(request, "submit.html", {"secret": user.secret or ""})

    @app.post("/submit")
    def submit_post(request: Request, secret: str = Form(""), user: User = Depends(require_user)):
        text = (secret or "").strip()
        if not text:
            return _redirect("/submit")
        try:
            request.app.state.store.set_secret(user.id, text)
        except UnknownUserError:
            logger.warning("User %s disappeared before submitting a secret", user.id)
            return _redirect("/login")
        logger.info("User %s submitted a secret", user.id)
        return _redirect("/secrets")
