# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Double-submit CSRF tokens: the form field must echo the cookie value."""

from __future__ import annotations

import hmac
import os
import secrets

from fastapi import Request

from cinema.core.exceptions import CsrfError

COOKIE_NAME = os.getenv("CINEMA_CSRF_COOKIE", "XSRF-TOKEN")
FORM_FIELD = "_csrf"


def csrf_token_for(request: Request) -> str:
    """Token of the current browser, or a fresh one to be set as a cookie."""
    token = request.cookies.get(COOKIE_NAME, "")
    return token or secrets.token_urlsafe(32)


def check_csrf(request: Request, submitted: str) -> None:
    expected = request.cookies.get(COOKIE_NAME, "")
    if not expected or not submitted or not hmac.compare_digest(expected, submitted):
        raise CsrfError()
