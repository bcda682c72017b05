# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication helpers.

This package provides:
- Password hashing/verification (argon2)
- User store loading from data/users.yml
- Credential checks producing a Principal
- Signed session cookies and remember-me tokens (itsdangerous)
"""
