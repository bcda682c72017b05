#!/usr/bin/env python3
"""Create or reset an account in the user store.

  python scripts/create_user.py          interactive
  python scripts/create_user.py --demo   seed admin/user with password123
"""
from __future__ import annotations

import sys
from getpass import getpass

from cinema.auth.users import (
    DEFAULT_USERS_PATH,
    Role,
    Status,
    create_user,
    seed_demo_users,
    set_password,
    username_exists,
)
from cinema.core.exceptions import DuplicateError

USERS_PATH = DEFAULT_USERS_PATH


def main() -> None:
    if "--demo" in sys.argv[1:]:
        created = seed_demo_users(path=USERS_PATH)
        print(f"OK -> {USERS_PATH} ({', '.join(created) or 'nothing to create'})")
        return

    username = input("Username: ").strip()

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    if username_exists(username, path=USERS_PATH):
        set_password(username, pw1, path=USERS_PATH)
        print(f"Password reset for '{username}' -> {USERS_PATH}")
        return

    email = input("Email: ").strip()
    role_in = (input("Role [USER/ADMIN]: ").strip().upper() or "USER")
    confirmed_in = input("Confirmed? [Y/n]: ").strip().lower()
    try:
        create_user(
            username=username,
            email=email,
            password=pw1,
            first_name=input("First name: ").strip(),
            last_name=input("Last name: ").strip(),
            phone=input("Phone: ").strip(),
            role=Role(role_in),
            status=Status.NOT_CONFIRMED if confirmed_in == "n" else Status.CONFIRMED,
            path=USERS_PATH,
        )
    except DuplicateError as e:
        raise SystemExit("Already registered: " + ", ".join(err.field for err in e.errors))
    except ValueError as e:
        raise SystemExit(str(e))
    print(f"OK -> {USERS_PATH}")


if __name__ == "__main__":
    main()
