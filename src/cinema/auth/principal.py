# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass

from cinema.auth.users import Role, Status, UserRecord


@dataclass(frozen=True)
class Principal:
    """Identity attached to a session. Built once when the session is established."""

    username: str
    role: Role
    enabled: bool = True

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_user(cls, user: UserRecord) -> "Principal":
        if user.status != Status.CONFIRMED:
            raise ValueError(f"User '{user.username}' is not confirmed")
        return cls(username=user.username, role=user.role, enabled=True)
