# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Username/password check producing a Principal.

Every outcome other than SUCCESS must reach the user as the same
"sign-in failed" message; the distinction exists for logging only.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from cinema.auth.passwords import hash_password, verify_password
from cinema.auth.principal import Principal
from cinema.auth.users import DEFAULT_USERS_PATH, Status, get_user

logger = logging.getLogger(__name__)


class AuthOutcome(str, Enum):
    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_DISABLED = "account_disabled"
    USER_NOT_FOUND = "user_not_found"


@dataclass(frozen=True)
class AuthResult:
    outcome: AuthOutcome
    principal: Optional[Principal] = None

    @property
    def ok(self) -> bool:
        return self.outcome == AuthOutcome.SUCCESS


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password(secrets.token_urlsafe(16))


def _check_password(hash_value: str, password: str) -> bool:
    """Always pay for one argon2 verification, even when the inputs cannot match."""
    if not hash_value or not password:
        verify_password(_dummy_hash(), "x")
        return False
    return verify_password(hash_value, password)


def authenticate(username: str, password: str, *, path: Path = DEFAULT_USERS_PATH) -> AuthResult:
    u = get_user(username, path=path)
    if u is None:
        # Same argon2 work as a real check so unknown usernames are not cheaper
        _check_password(_dummy_hash(), password)
        result = AuthResult(AuthOutcome.USER_NOT_FOUND)
    elif not _check_password(u.password_hash, password):
        result = AuthResult(AuthOutcome.INVALID_CREDENTIALS)
    elif u.status != Status.CONFIRMED:
        result = AuthResult(AuthOutcome.ACCOUNT_DISABLED)
    else:
        result = AuthResult(AuthOutcome.SUCCESS, Principal.from_user(u))

    logger.info(
        "Sign-in attempt: %s",
        result.outcome.value,
        extra={"username": (username or "").strip(), "outcome": result.outcome.value},
    )
    return result
