# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""App-wide exception hierarchy.

Each exception carries the HTTP status it maps to and a short error type used
by the error page and the logs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence


@dataclass(frozen=True)
class FieldError:
    """One rejected form field and the reason code."""

    field: str
    code: str


class AppException(Exception):
    """Base exception for all application errors."""

    status_code: int = 500
    error_type: str = "internal_error"

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(message)


class ValidationError(AppException):
    """Form input rejected field by field."""

    status_code = 400
    error_type = "validation_error"

    def __init__(self, errors: Sequence[FieldError], message: str = "Validation failed"):
        self.errors: List[FieldError] = list(errors)
        super().__init__(message)


class DuplicateError(ValidationError):
    """Username or email already registered."""

    status_code = 409
    error_type = "duplicate"

    def __init__(self, errors: Sequence[FieldError], message: str = "Already registered"):
        super().__init__(errors, message)


class StoreUnavailable(AppException):
    """The credential store could not be read or written."""

    status_code = 503
    error_type = "store_unavailable"

    def __init__(self, message: str = "User store unavailable"):
        super().__init__(message)


class CsrfError(AppException):
    status_code = 403
    error_type = "csrf"

    def __init__(self, message: str = "Invalid CSRF token"):
        super().__init__(message)
