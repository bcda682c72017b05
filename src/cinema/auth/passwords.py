# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from typing import Dict

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError


def _hasher_params() -> Dict[str, int]:
    params: Dict[str, int] = {}
    for key, env in (
        ("time_cost", "CINEMA_ARGON2_TIME_COST"),
        ("memory_cost", "CINEMA_ARGON2_MEMORY_COST"),
        ("parallelism", "CINEMA_ARGON2_PARALLELISM"),
    ):
        raw = os.getenv(env)
        if raw:
            params[key] = int(raw)
    return params


_PH = PasswordHasher(**_hasher_params())


def hash_password(plain: str) -> str:
    if not plain:
        raise ValueError("Empty password")
    return _PH.hash(plain)


def verify_password(hash_value: str, plain: str) -> bool:
    """Check `plain` against an argon2 digest; False for any mismatch or bad digest."""
    if not hash_value or not plain:
        return False
    if not isinstance(hash_value, str) or not isinstance(plain, str):
        return False
    try:
        return _PH.verify(hash_value, plain)
    except (VerificationError, InvalidHashError):
        return False
