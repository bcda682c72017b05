# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Remember-me tokens.

A token is a signed `{"u": username, "e": expires, "f": fingerprint}` payload.
Nothing is stored server-side: the signature covers username and expiry, and
the fingerprint ties the token to the password hash stored when it was issued,
so a password change invalidates every outstanding token for that user.
"""

from __future__ import annotations

import hashlib
import hmac
import os
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from itsdangerous import BadData, URLSafeSerializer

from cinema.auth.session import secret_key
from cinema.auth.users import DEFAULT_USERS_PATH, Status, get_user

COOKIE_NAME = os.getenv("CINEMA_REMEMBER_COOKIE", "remember-me")
DEFAULT_MAX_AGE_SECONDS = int(os.getenv("CINEMA_REMEMBER_MAX_AGE", "86400"))  # 24 hours


class TokenOutcome(str, Enum):
    VALID = "valid"
    EXPIRED = "expired"
    TAMPERED = "tampered"
    UNKNOWN_USER = "unknown_user"
    ACCOUNT_DISABLED = "account_disabled"


@dataclass(frozen=True)
class TokenCheck:
    outcome: TokenOutcome
    username: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == TokenOutcome.VALID


def _serializer() -> URLSafeSerializer:
    salt = os.getenv("CINEMA_REMEMBER_SALT", "cinema.remember-me.v1")
    return URLSafeSerializer(secret_key=secret_key(), salt=salt)


def _fingerprint(password_hash: str) -> str:
    mac = hmac.new(secret_key().encode("utf-8"), password_hash.encode("utf-8"), hashlib.sha256)
    return mac.hexdigest()[:32]


def issue_token(
    username: str,
    *,
    path: Path = DEFAULT_USERS_PATH,
    now: Optional[float] = None,
    max_age: int = DEFAULT_MAX_AGE_SECONDS,
) -> str:
    u = get_user(username, path=path)
    if u is None:
        raise LookupError(f"Unknown user '{username}'")
    issued = int(time.time() if now is None else now)
    return _serializer().dumps(
        {"u": u.username, "e": issued + int(max_age), "f": _fingerprint(u.password_hash)}
    )


def verify_token(token: str, *, path: Path = DEFAULT_USERS_PATH, now: Optional[float] = None) -> TokenCheck:
    if not token:
        return TokenCheck(TokenOutcome.TAMPERED)
    s = _serializer()
    try:
        data = s.loads(token)
    except BadData:
        return TokenCheck(TokenOutcome.TAMPERED)
    # base64 ignores trailing bits, so only the exact re-encoding is accepted
    if not hmac.compare_digest(s.dumps(data).encode("utf-8"), token.encode("utf-8")):
        return TokenCheck(TokenOutcome.TAMPERED)

    if not isinstance(data, dict):
        return TokenCheck(TokenOutcome.TAMPERED)
    username, expires, fingerprint = data.get("u"), data.get("e"), data.get("f")
    if not isinstance(username, str) or not isinstance(expires, int) or not isinstance(fingerprint, str):
        return TokenCheck(TokenOutcome.TAMPERED)

    current = time.time() if now is None else now
    if expires <= current:
        return TokenCheck(TokenOutcome.EXPIRED)

    u = get_user(username, path=path)
    if u is None:
        return TokenCheck(TokenOutcome.UNKNOWN_USER)
    if u.status != Status.CONFIRMED:
        return TokenCheck(TokenOutcome.ACCOUNT_DISABLED)
    if not hmac.compare_digest(fingerprint, _fingerprint(u.password_hash)):
        return TokenCheck(TokenOutcome.TAMPERED)

    return TokenCheck(TokenOutcome.VALID, username=u.username)
