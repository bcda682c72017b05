import os
import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

# Cheap argon2 parameters and a fixed secret before any cinema module is imported
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("CINEMA_ARGON2_TIME_COST", "1")
os.environ.setdefault("CINEMA_ARGON2_MEMORY_COST", "8192")
os.environ.setdefault("CINEMA_ARGON2_PARALLELISM", "1")

import importlib
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from cinema.auth.principal import Principal
from cinema.auth.users import Role, Status, create_user, seed_demo_users


@pytest.fixture()
def users_path(tmp_path: Path) -> Path:
    """
    Fresh users.yml with the two demo accounts:
      - admin / password123 (ADMIN, CONFIRMED)
      - user  / password123 (USER, CONFIRMED)
    """
    path = tmp_path / "data" / "users.yml"
    seed_demo_users(path=path)
    return path


@pytest.fixture()
def pending_user(users_path: Path):
    return create_user(
        username="pending",
        email="pending@cinema.com",
        password="password123",
        first_name="Pending",
        last_name="User",
        phone="+12345678901",
        status=Status.NOT_CONFIRMED,
        path=users_path,
    )


@pytest.fixture()
def admin_principal() -> Principal:
    return Principal(username="admin", role=Role.ADMIN)


@pytest.fixture()
def user_principal() -> Principal:
    return Principal(username="user", role=Role.USER)


@pytest.fixture()
def app_module(users_path: Path, monkeypatch):
    monkeypatch.setenv("CINEMA_USERS_PATH", str(users_path))

    import cinema.app as app_module
    importlib.reload(app_module)
    return app_module


@pytest.fixture()
def client(app_module) -> TestClient:
    return TestClient(app_module.app)
