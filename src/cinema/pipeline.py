# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Per-request principal resolution.

Order: login submission (handled by the route) > session cookie >
remember-me cookie > anonymous.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fastapi import Request

from cinema.auth.principal import Principal
from cinema.auth.remember import COOKIE_NAME as REMEMBER_COOKIE_NAME
from cinema.auth.remember import verify_token
from cinema.auth.session import COOKIE_NAME as SESSION_COOKIE_NAME
from cinema.auth.session import verify_session
from cinema.auth.users import DEFAULT_USERS_PATH, get_user
from cinema.permissions import LOGIN_PAGE

logger = logging.getLogger(__name__)

SOURCE_LOGIN = "login"
SOURCE_SESSION = "session"
SOURCE_REMEMBER_ME = "remember-me"
SOURCE_ANONYMOUS = "anonymous"


@dataclass(frozen=True)
class Resolution:
    principal: Optional[Principal]
    source: str
    clear_remember_cookie: bool = False


def is_login_submission(request: Request) -> bool:
    return request.method.upper() == "POST" and request.url.path == LOGIN_PAGE


def resolve_principal(request: Request, *, path: Path = DEFAULT_USERS_PATH) -> Resolution:
    if is_login_submission(request):
        return Resolution(None, SOURCE_LOGIN)

    principal = verify_session(request.cookies.get(SESSION_COOKIE_NAME, ""))
    if principal is not None:
        return Resolution(principal, SOURCE_SESSION)

    token = request.cookies.get(REMEMBER_COOKIE_NAME, "")
    if not token:
        return Resolution(None, SOURCE_ANONYMOUS)

    check = verify_token(token, path=path)
    if check.ok:
        user = get_user(check.username or "", path=path)
        if user is not None and user.enabled:
            logger.info("Session restored from remember-me", extra={"username": user.username})
            return Resolution(Principal.from_user(user), SOURCE_REMEMBER_ME)

    logger.debug("Remember-me token rejected: %s", check.outcome.value)
    return Resolution(None, SOURCE_ANONYMOUS, clear_remember_cookie=True)
