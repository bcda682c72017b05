# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Sign-up form checks and user creation.

Every new account gets role USER and is confirmed immediately; there is no
email confirmation step.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from cinema.auth.users import DEFAULT_USERS_PATH, Role, Status, UserRecord, create_user
from cinema.core.exceptions import FieldError, ValidationError

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_RE = re.compile(r"^\+?[0-9]{10,15}$")

NAME_LEN = (2, 50)
USERNAME_LEN = (3, 20)
EMAIL_MAX = 100
PASSWORD_LEN = (8, 100)


@dataclass(frozen=True)
class RegistrationForm:
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    email: str = ""
    phone: str = ""
    password: str = ""
    confirm_password: str = ""

    def values(self) -> Dict[str, str]:
        """Field values keyed by form field name, passwords left out."""
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "username": self.username,
            "email": self.email,
            "phone": self.phone,
        }


def _check_length(errors: List[FieldError], field: str, value: str, lo: int, hi: int) -> bool:
    if not (lo <= len(value) <= hi):
        errors.append(FieldError(field, "size"))
        return False
    return True


def validate_registration(form: RegistrationForm) -> List[FieldError]:
    """Return one FieldError per rejected field (first failing rule only)."""
    errors: List[FieldError] = []

    required = {
        "firstName": form.first_name.strip(),
        "lastName": form.last_name.strip(),
        "username": form.username.strip(),
        "email": form.email.strip(),
        "phone": form.phone.strip(),
        "password": form.password,
        "confirmPassword": form.confirm_password,
    }
    missing = {f for f, v in required.items() if not v}
    for f in required:
        if f in missing:
            errors.append(FieldError(f, "required"))

    for f in ("firstName", "lastName"):
        if f not in missing:
            _check_length(errors, f, required[f], *NAME_LEN)

    if "username" not in missing:
        if _check_length(errors, "username", required["username"], *USERNAME_LEN):
            if not USERNAME_RE.match(required["username"]):
                errors.append(FieldError("username", "pattern"))

    if "email" not in missing:
        if _check_length(errors, "email", required["email"], 1, EMAIL_MAX):
            if not EMAIL_RE.match(required["email"]):
                errors.append(FieldError("email", "pattern"))

    if "phone" not in missing and not PHONE_RE.match(required["phone"]):
        errors.append(FieldError("phone", "pattern"))

    if "password" not in missing:
        _check_length(errors, "password", form.password, *PASSWORD_LEN)

    if "confirmPassword" not in missing and "password" not in missing:
        if form.password != form.confirm_password:
            errors.append(FieldError("confirmPassword", "mismatch"))

    return errors


def register_user(form: RegistrationForm, *, path: Path = DEFAULT_USERS_PATH) -> UserRecord:
    """Validate and create the account.

    Raises:
        ValidationError: field-level problems with the input
        DuplicateError: username or email already registered
    """
    errors = validate_registration(form)
    if errors:
        raise ValidationError(errors)
    return create_user(
        username=form.username.strip(),
        email=form.email.strip(),
        password=form.password,
        first_name=form.first_name,
        last_name=form.last_name,
        phone=form.phone,
        role=Role.USER,
        status=Status.CONFIRMED,
        path=path,
    )
