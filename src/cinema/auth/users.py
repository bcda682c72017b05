# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
import os
import tempfile
import threading
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

import yaml

from cinema.auth.passwords import hash_password
from cinema.core.exceptions import DuplicateError, FieldError, StoreUnavailable

if TYPE_CHECKING:
    from cinema.auth.principal import Principal

logger = logging.getLogger(__name__)

# IMPORTANT: do not rely on current working directory.
# Anchor the default users.yml path to the project root (works well with editable installs).
BASE_DIR = Path(__file__).resolve().parents[3]
DEFAULT_USERS_PATH = Path(
    os.getenv("CINEMA_USERS_PATH", str(BASE_DIR / "data" / "users.yml"))
).resolve()

DEMO_PASSWORD = "password123"


class Role(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class Status(str, Enum):
    NOT_CONFIRMED = "NOT_CONFIRMED"
    CONFIRMED = "CONFIRMED"


@dataclass(frozen=True)
class UserRecord:
    username: str
    email: str
    password_hash: str
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    role: Role = Role.USER
    status: Status = Status.CONFIRMED
    created_at: str = ""
    updated_at: str = ""

    @property
    def enabled(self) -> bool:
        return self.status == Status.CONFIRMED


# path -> ((mtime_ns, size), users); replaced wholesale so readers never see a partial dict
_CACHE: Dict[Path, Tuple[Tuple[int, int], Dict[str, UserRecord]]] = {}
_WRITE_LOCK = threading.Lock()


def _now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def _parse_enum(enum_cls, raw: Any, default):
    try:
        return enum_cls(str(raw or "").strip().upper())
    except ValueError:
        return default


def _record_from_yaml(username: str, udata: Dict[str, Any]) -> UserRecord:
    return UserRecord(
        username=username,
        email=str(udata.get("email") or "").strip(),
        password_hash=str(udata.get("password_hash") or "").strip(),
        first_name=str(udata.get("first_name") or "").strip(),
        last_name=str(udata.get("last_name") or "").strip(),
        phone=str(udata.get("phone") or "").strip(),
        role=_parse_enum(Role, udata.get("role"), Role.USER),
        # Unknown status values never enable an account
        status=_parse_enum(Status, udata.get("status"), Status.NOT_CONFIRMED),
        created_at=str(udata.get("created_at") or ""),
        updated_at=str(udata.get("updated_at") or ""),
    )


def _record_to_yaml(user: UserRecord) -> Dict[str, Any]:
    data = asdict(user)
    data.pop("username")
    data["role"] = user.role.value
    data["status"] = user.status.value
    return data


def _read_raw(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {"version": 1, "users": {}}
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error("Cannot read user store %s: %s", path, e)
        raise StoreUnavailable() from e
    # Wrong shape is an error, never an empty store
    if not isinstance(raw, dict):
        logger.error("User store %s is not a mapping", path)
        raise StoreUnavailable()
    if raw.get("users") is None:
        raw["users"] = {}
    elif not isinstance(raw["users"], dict):
        logger.error("User store %s: 'users' is not a mapping", path)
        raise StoreUnavailable()
    raw.setdefault("version", 1)
    return raw


def _load_users_file(path: Path) -> Dict[str, UserRecord]:
    raw = _read_raw(path)
    out: Dict[str, UserRecord] = {}
    for uname, udata in raw["users"].items():
        if not isinstance(udata, dict):
            continue
        username = str(uname).strip()
        if not username:
            continue
        out[username] = _record_from_yaml(username, udata)
    return out


def _stamp(path: Path) -> Tuple[int, int]:
    try:
        st = path.stat()
    except FileNotFoundError:
        return (0, 0)
    except OSError as e:
        raise StoreUnavailable() from e
    return (st.st_mtime_ns, st.st_size)


def get_users(*, path: Path = DEFAULT_USERS_PATH) -> Dict[str, UserRecord]:
    path = Path(path)
    stamp = _stamp(path)
    cached = _CACHE.get(path)
    if cached and stamp != (0, 0) and cached[0] == stamp:
        return cached[1]

    users = _load_users_file(path)
    _CACHE[path] = (stamp, users)
    return users


def get_user(username: str, *, path: Path = DEFAULT_USERS_PATH) -> Optional[UserRecord]:
    u = (username or "").strip()
    if not u:
        return None
    return get_users(path=path).get(u)


def username_exists(username: str, *, path: Path = DEFAULT_USERS_PATH) -> bool:
    return get_user(username, path=path) is not None


def email_exists(email: str, *, path: Path = DEFAULT_USERS_PATH) -> bool:
    e = (email or "").strip().lower()
    if not e:
        return False
    return any(u.email.lower() == e for u in get_users(path=path).values())


def _write_raw(path: Path, raw: Dict[str, Any]) -> None:
    """Write the whole file through a temp file so readers see old or new, never half."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".users-", suffix=".yml", dir=str(path.parent))
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            yaml.safe_dump(raw, fh, sort_keys=False, allow_unicode=True)
        os.replace(tmp, path)
    except OSError as e:
        logger.error("Cannot write user store %s: %s", path, e)
        raise StoreUnavailable() from e
    _CACHE.pop(path, None)


def create_user(
    *,
    username: str,
    email: str,
    password: str,
    first_name: str = "",
    last_name: str = "",
    phone: str = "",
    role: Role = Role.USER,
    status: Status = Status.CONFIRMED,
    path: Path = DEFAULT_USERS_PATH,
) -> UserRecord:
    """Insert a new user row; username and email must both be unused."""
    path = Path(path)
    username = (username or "").strip()
    email = (email or "").strip()
    if not username:
        raise ValueError("Empty username")
    password_hash = hash_password(password)

    with _WRITE_LOCK:
        raw = _read_raw(path)
        users = raw["users"]
        errors: List[FieldError] = []
        if username in users:
            errors.append(FieldError("username", "exists"))
        taken = {str((u or {}).get("email") or "").strip().lower() for u in users.values() if isinstance(u, dict)}
        if email.lower() in taken:
            errors.append(FieldError("email", "exists"))
        if errors:
            raise DuplicateError(errors)

        ts = _now()
        user = UserRecord(
            username=username,
            email=email,
            password_hash=password_hash,
            first_name=(first_name or "").strip(),
            last_name=(last_name or "").strip(),
            phone=(phone or "").strip(),
            role=role,
            status=status,
            created_at=ts,
            updated_at=ts,
        )
        users[username] = _record_to_yaml(user)
        _write_raw(path, raw)

    logger.info("User created", extra={"username": username})
    return user


def _update_user(username: str, path: Path, **changes: Any) -> UserRecord:
    path = Path(path)
    with _WRITE_LOCK:
        raw = _read_raw(path)
        udata = raw["users"].get(username)
        if not isinstance(udata, dict):
            raise LookupError(f"Unknown user '{username}'")
        user = replace(_record_from_yaml(username, udata), updated_at=_now(), **changes)
        raw["users"][username] = _record_to_yaml(user)
        _write_raw(path, raw)
    return user


def set_password(username: str, plain: str, *, path: Path = DEFAULT_USERS_PATH) -> UserRecord:
    """Operator password reset. Outstanding remember-me tokens stop verifying."""
    return _update_user(username, path, password_hash=hash_password(plain))


def _require_admin(actor: Optional["Principal"]) -> None:
    if actor is None or not actor.enabled or actor.role != Role.ADMIN:
        raise PermissionError("Role and status changes require an administrator")


def set_role(username: str, role: Role, *, actor: Optional["Principal"], path: Path = DEFAULT_USERS_PATH) -> UserRecord:
    _require_admin(actor)
    return _update_user(username, path, role=Role(role))


def set_status(username: str, status: Status, *, actor: Optional["Principal"], path: Path = DEFAULT_USERS_PATH) -> UserRecord:
    _require_admin(actor)
    return _update_user(username, path, status=Status(status))


def seed_demo_users(*, path: Path = DEFAULT_USERS_PATH) -> List[str]:
    """Create the two demo accounts (admin / user) when missing. Returns the usernames created."""
    demo = [
        ("admin", "admin@cinema.com", "Admin", "User", Role.ADMIN),
        ("user", "user@cinema.com", "Test", "User", Role.USER),
    ]
    created = []
    for username, email, first, last, role in demo:
        if username_exists(username, path=path):
            continue
        create_user(
            username=username,
            email=email,
            password=DEMO_PASSWORD,
            first_name=first,
            last_name=last,
            role=role,
            status=Status.CONFIRMED,
            path=path,
        )
        created.append(username)
    return created
