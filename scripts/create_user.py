#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from secretboard.auth.local import CredentialVerifier
from secretboard.config import load_settings
from secretboard.errors import DuplicateUsernameError
from secretboard.infra.user_store import UserStore


def main() -> None:
    settings = load_settings()
    store = UserStore(settings.users_path)

    username = input("Username: ").strip()
    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    try:
        user = CredentialVerifier(store).register(username, pw1)
    except (DuplicateUsernameError, ValueError) as e:
        raise SystemExit(str(e))
    print(f"OK {user.id} -> {settings.users_path}")


if __name__ == "__main__":
    main()
