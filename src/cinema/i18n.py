# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Message bundles (messages/<locale>.yml) and per-request locale choice.

`?lang=` switches the locale; the choice is kept in the `lang` cookie.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

import yaml
from fastapi import Request

MESSAGES_DIR = Path(__file__).resolve().parent / "messages"
SUPPORTED_LOCALES = ("en", "ru")
DEFAULT_LOCALE = os.getenv("CINEMA_DEFAULT_LOCALE", "en")
COOKIE_NAME = "lang"
QUERY_PARAM = "lang"


def _flatten(prefix: str, node, out: Dict[str, str]) -> None:
    if isinstance(node, dict):
        for k, v in node.items():
            _flatten(f"{prefix}.{k}" if prefix else str(k), v, out)
    elif node is not None:
        out[prefix] = str(node)


@lru_cache(maxsize=None)
def load_bundle(locale: str) -> Dict[str, str]:
    path = MESSAGES_DIR / f"{locale}.yml"
    if not path.exists():
        return {}
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    out: Dict[str, str] = {}
    _flatten("", raw, out)
    return out


def normalize_locale(value: Optional[str]) -> Optional[str]:
    v = (value or "").strip().lower().replace("_", "-").split("-")[0]
    return v if v in SUPPORTED_LOCALES else None


def message(locale: str, key: str, default: Optional[str] = None) -> str:
    """Look up `key` in the locale bundle, then the default locale, then `default` or the key."""
    for loc in (locale, DEFAULT_LOCALE):
        text = load_bundle(loc).get(key)
        if text is not None:
            return text
    return default if default is not None else key


def locale_switch(request: Request) -> Optional[str]:
    """Locale requested through the query string, if any and supported."""
    return normalize_locale(request.query_params.get(QUERY_PARAM))


def resolve_locale(request: Request) -> str:
    return (
        locale_switch(request)
        or normalize_locale(request.cookies.get(COOKIE_NAME))
        or normalize_locale(DEFAULT_LOCALE)
        or SUPPORTED_LOCALES[0]
    )
