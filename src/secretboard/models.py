# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class User:
    """A registered user.

    A user signs in locally (``username`` + ``password_hash``), through Google
    (``google_id``), or both. At least one of the two credentials must be set.
    """

    id: str
    username: Optional[str] = None
    password_hash: Optional[str] = None
    google_id: Optional[str] = None
    email: Optional[str] = None
    secret: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("User id is required")
        if not self.password_hash and not self.google_id:
            raise ValueError("User needs a local credential or a Google id")
        if self.password_hash and not self.username:
            raise ValueError("A local credential requires a username")

    @property
    def is_local(self) -> bool:
        return bool(self.password_hash)

    @property
    def is_external(self) -> bool:
        return bool(self.google_id)

    @property
    def kind(self) -> str:
        if self.is_local and self.is_external:
            return "linked"
        return "local" if self.is_local else "external"

    def with_secret(self, secret: Optional[str]) -> "User":
        return replace(self, secret=secret)

    def to_document(self) -> Dict[str, Any]:
        doc = asdict(self)
        doc.pop("id")
        return doc

    @classmethod
    def from_document(cls, user_id: str, doc: Dict[str, Any]) -> "User":
        def _opt(key: str) -> Optional[str]:
            v = doc.get(key)
            if v is None:
                return None
            v = str(v)
            return v if v.strip() else None

        return cls(
            id=str(user_id),
            username=_opt("username"),
            password_hash=_opt("password_hash"),
            google_id=_opt("google_id"),
            email=_opt("email"),
            secret=_opt("secret"),
        )
