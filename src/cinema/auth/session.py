# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from typing import Optional

from itsdangerous import BadData, URLSafeTimedSerializer

from cinema.auth.principal import Principal
from cinema.auth.users import Role

COOKIE_NAME = os.getenv("CINEMA_COOKIE_NAME", "cinema_session")
DEFAULT_MAX_AGE_SECONDS = int(os.getenv("CINEMA_SESSION_MAX_AGE", "28800"))  # 8 hours


def secret_key() -> str:
    secret = os.getenv("SECRET_KEY") or os.getenv("CINEMA_SECRET_KEY")
    if not secret:
        raise RuntimeError("Missing SECRET_KEY (or CINEMA_SECRET_KEY) in environment")
    return secret


def _serializer() -> URLSafeTimedSerializer:
    salt = os.getenv("CINEMA_SESSION_SALT", "cinema.session.v1")
    return URLSafeTimedSerializer(secret_key=secret_key(), salt=salt)


def sign_session(principal: Principal) -> str:
    s = _serializer()
    return s.dumps({"u": principal.username, "r": principal.role.value})


def verify_session(token: str, *, max_age: int = DEFAULT_MAX_AGE_SECONDS) -> Optional[Principal]:
    if not token:
        return None
    s = _serializer()
    try:
        data = s.loads(token, max_age=max_age)
    except BadData:
        return None
    if not isinstance(data, dict):
        return None
    u = str(data.get("u") or "").strip()
    if not u:
        return None
    try:
        role = Role(data.get("r"))
    except ValueError:
        return None
    return Principal(username=u, role=role, enabled=True)
