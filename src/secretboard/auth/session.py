# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import secrets
import threading
import time
from typing import Dict, Optional, Tuple

from itsdangerous import BadSignature, URLSafeTimedSerializer

from secretboard.infra.user_store import UserStore
from secretboard.models import User

logger = logging.getLogger(__name__)

SESSION_SALT = "secretboard.session.v1"


class SessionManager:
    """Maps opaque session ids to user ids.

    The cookie carries the session id signed with itsdangerous; the table
    itself lives in process memory. Only the user id is kept per session and
    the full user is re-read from the store on every ``resolve``. Entries older
    than ``max_age`` are dropped when resolved and pruned on each ``login``.
    """

    def __init__(self, store: UserStore, secret_key: Optional[str], *, max_age: int = 28800):
        if not secret_key:
            raise RuntimeError("Missing SECRET_KEY in environment")
        self.store = store
        self.max_age = max_age
        self._serializer = URLSafeTimedSerializer(secret_key=secret_key, salt=SESSION_SALT)
        # sid -> (user id, issued at)
        self._sessions: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def _session_id(self, token: str) -> Optional[str]:
        if not token:
            return None
        try:
            data = self._serializer.loads(token)
        except BadSignature:
            return None
        sid = str((data or {}).get("sid") or "").strip() if isinstance(data, dict) else ""
        return sid or None

    def _is_stale(self, issued_at: float, now: float) -> bool:
        return now - issued_at > self.max_age

    def _prune(self, now: float) -> None:
        stale = [sid for sid, (_, issued_at) in self._sessions.items() if self._is_stale(issued_at, now)]
        for sid in stale:
            del self._sessions[sid]

    def login(self, user: User) -> str:
        sid = secrets.token_urlsafe(32)
        now = time.time()
        with self._lock:
            self._prune(now)
            self._sessions[sid] = (user.id, now)
        return self._serializer.dumps({"sid": sid})

    def resolve(self, token: str) -> Optional[User]:
        sid = self._session_id(token)
        if sid is None:
            return None
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is None:
                return None
            user_id, issued_at = entry
            if self._is_stale(issued_at, time.time()):
                del self._sessions[sid]
                return None
        user = self.store.get(user_id)
        if user is None:
            # User vanished from the store; drop the dangling session.
            with self._lock:
                self._sessions.pop(sid, None)
        return user

    def logout(self, token: str) -> None:
        sid = self._session_id(token)
        if sid is None:
            return
        with self._lock:
            self._sessions.pop(sid, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
