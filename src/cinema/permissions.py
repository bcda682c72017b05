# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""URL access rules.

The table is evaluated top to bottom and the first matching pattern decides.
Patterns use Ant-style wildcards: `*` matches one path segment, `**` any
number of segments, and a trailing `/**` also matches the bare prefix.
Paths no rule matches require an authenticated caller.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Pattern, Sequence

from cinema.auth.principal import Principal
from cinema.auth.users import Role


class Capability(str, Enum):
    PUBLIC = "PUBLIC"
    AUTHENTICATED = "AUTHENTICATED"
    ROLE_ADMIN = "ROLE_ADMIN"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


def _ant_to_regex(pattern: str) -> Pattern[str]:
    if pattern.endswith("/**"):
        head, tail = pattern[:-3], "(?:/.*)?"
    else:
        head, tail = pattern, ""
    out = []
    i = 0
    while i < len(head):
        if head.startswith("**", i):
            out.append(".*")
            i += 2
        elif head[i] == "*":
            out.append("[^/]*")
            i += 1
        elif head[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(head[i]))
            i += 1
    return re.compile("^" + "".join(out) + tail + "$")


@dataclass(frozen=True)
class AccessRule:
    pattern: str
    capability: Capability
    methods: Optional[FrozenSet[str]] = None
    regex: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regex", _ant_to_regex(self.pattern))

    def matches(self, path: str, method: str = "GET") -> bool:
        if self.methods is not None and (method or "").upper() not in self.methods:
            return False
        return bool(self.regex.match(path or "/"))


ACCESS_RULES: Sequence[AccessRule] = (
    AccessRule("/admin/panel/halls", Capability.ROLE_ADMIN),
    AccessRule("/admin/panel/films", Capability.ROLE_ADMIN),
    AccessRule("/admin/panel/sessions", Capability.ROLE_ADMIN),
    AccessRule("/profile", Capability.AUTHENTICATED),
    AccessRule("/session/search", Capability.AUTHENTICATED),
    AccessRule("/films/*/chat/messages", Capability.AUTHENTICATED),
    AccessRule("/films/*/chat", Capability.AUTHENTICATED),
    AccessRule("/signIn", Capability.PUBLIC),
    AccessRule("/signUp", Capability.PUBLIC),
    AccessRule("/logout", Capability.PUBLIC),
    AccessRule("/css/**", Capability.PUBLIC),
    AccessRule("/js/**", Capability.PUBLIC),
    AccessRule("/images/**", Capability.PUBLIC),
)

DEFAULT_CAPABILITY = Capability.AUTHENTICATED

LOGIN_PAGE = "/signIn"
ADMIN_LANDING_PAGE = "/admin/panel/halls"
USER_LANDING_PAGE = "/profile"


def match_rule(path: str, method: str = "GET", *, rules: Sequence[AccessRule] = ACCESS_RULES) -> Optional[AccessRule]:
    for rule in rules:
        if rule.matches(path, method):
            return rule
    return None


def required_capability(path: str, method: str = "GET", *, rules: Sequence[AccessRule] = ACCESS_RULES) -> Capability:
    rule = match_rule(path, method, rules=rules)
    return rule.capability if rule else DEFAULT_CAPABILITY


def authorize(
    path: str,
    method: str,
    principal: Optional[Principal],
    *,
    rules: Sequence[AccessRule] = ACCESS_RULES,
) -> Decision:
    capability = required_capability(path, method, rules=rules)
    if capability == Capability.PUBLIC:
        return Decision.ALLOW
    if principal is None or not principal.enabled:
        return Decision.DENY
    if capability == Capability.ROLE_ADMIN and principal.role != Role.ADMIN:
        return Decision.DENY
    return Decision.ALLOW


def landing_page(principal: Principal) -> str:
    return ADMIN_LANDING_PAGE if principal.role == Role.ADMIN else USER_LANDING_PAGE


def cookie_settings() -> dict:
    secure = os.getenv("CINEMA_COOKIE_SECURE", "false").lower() in {"1", "true", "yes", "y"}
    return {"httponly": True, "samesite": "lax", "secure": secure}
