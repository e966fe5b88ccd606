# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
import threading
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from secretboard.errors import DuplicateUsernameError, StoreError, UnknownUserError
from secretboard.models import User

logger = logging.getLogger(__name__)

STORE_VERSION = 1


class UserStore:
    """User documents kept in a single YAML file.

    Layout::

        version: 1
        users:
          <id>: {username, password_hash, google_id, email, secret}

    Reads are cached on the file mtime; writes hold a lock and replace the
    file atomically. Insertion order is preserved.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.RLock()
        self._cache: Tuple[float, Dict[str, User]] = (0.0, {})

    # ------------------ Reading ------------------

    def _load_file(self) -> Dict[str, User]:
        if not self.path.exists():
            return {}
        try:
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Cannot read user store {self.path}: {e}") from e
        users = (raw.get("users") or {}) if isinstance(raw, dict) else {}
        if not isinstance(users, dict):
            raise StoreError(f"Malformed user store {self.path}: 'users' is not a mapping")
        out: Dict[str, User] = {}
        for uid, doc in users.items():
            if not isinstance(doc, dict):
                continue
            try:
                out[str(uid)] = User.from_document(str(uid), doc)
            except ValueError as e:
                logger.warning("Skipping invalid user document %s: %s", uid, e)
        return out

    def _users(self) -> Dict[str, User]:
        with self._lock:
            try:
                mtime = self.path.stat().st_mtime if self.path.exists() else 0.0
            except OSError:
                mtime = 0.0

            cached_mtime, cached_users = self._cache
            if mtime and mtime == cached_mtime:
                return cached_users

            users = self._load_file()
            self._cache = (mtime, users)
            return users

    def all(self) -> List[User]:
        return list(self._users().values())

    def get(self, user_id: str) -> Optional[User]:
        if not user_id:
            return None
        return self._users().get(str(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        u = (username or "").strip()
        if not u:
            return None
        for user in self._users().values():
            if user.username == u:
                return user
        return None

    def get_by_google_id(self, google_id: str) -> Optional[User]:
        g = str(google_id or "").strip()
        if not g:
            return None
        for user in self._users().values():
            if user.google_id == g:
                return user
        return None

    def list_secrets(self) -> List[str]:
        return [u.secret for u in self._users().values() if u.secret]

    # ------------------ Writing ------------------

    def _save(self, users: Dict[str, User]) -> None:
        raw = {
            "version": STORE_VERSION,
            "users": {uid: u.to_document() for uid, u in users.items()},
        }
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(yaml.safe_dump(raw, sort_keys=False, allow_unicode=True), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreError(f"Cannot write user store {self.path}: {e}") from e
        # Force a reload on next read even if mtime resolution hides the change.
        self._cache = (0.0, {})

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex

    def create_local(self, username: str, password_hash: str) -> User:
        with self._lock:
            users = dict(self._users())
            if any(u.username == username for u in users.values()):
                raise DuplicateUsernameError(username)
            user = User(id=self.new_id(), username=username, password_hash=password_hash)
            users[user.id] = user
            self._save(users)
            return user

    def find_or_create_by_google_id(self, google_id: str) -> Tuple[User, bool]:
        """Return ``(user, created)`` for a Google subject id."""
        g = str(google_id or "").strip()
        if not g:
            raise ValueError("Google id is required")
        with self._lock:
            existing = self.get_by_google_id(g)
            if existing is not None:
                return existing, False
            users = dict(self._users())
            user = User(id=self.new_id(), google_id=g)
            users[user.id] = user
            self._save(users)
            return user, True

    def set_secret(self, user_id: str, secret: str) -> User:
        with self._lock:
            users = dict(self._users())
            current = users.get(str(user_id))
            if current is None:
                raise UnknownUserError(f"Unknown user id: {user_id}")
            updated = current.with_secret(secret)
            users[updated.id] = updated
            self._save(users)
            return updated
