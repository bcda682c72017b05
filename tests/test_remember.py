import string

import pytest
from itsdangerous import URLSafeSerializer

from cinema.auth import remember
from cinema.auth.remember import TokenOutcome, issue_token, verify_token
from cinema.auth.users import Status, set_password, set_status

NOW = 1_700_000_000
B64_ALPHABET = string.ascii_letters + string.digits + "-_"


def _flip_signature(token: str) -> str:
    payload, sig = token.rsplit(".", 1)
    first = "A" if sig[0] != "A" else "B"
    return f"{payload}.{first}{sig[1:]}"


def test_token_is_valid_before_expiry(users_path):
    token = issue_token("user", path=users_path, now=NOW, max_age=86400)
    check = verify_token(token, path=users_path, now=NOW + 86399)
    assert check.ok
    assert check.username == "user"


def test_token_expires(users_path):
    token = issue_token("user", path=users_path, now=NOW, max_age=86400)
    assert verify_token(token, path=users_path, now=NOW + 86400).outcome == TokenOutcome.EXPIRED
    assert verify_token(token, path=users_path, now=NOW + 10 * 86400).outcome == TokenOutcome.EXPIRED


def test_altered_signature_is_tampered(users_path):
    token = issue_token("user", path=users_path, now=NOW)
    check = verify_token(_flip_signature(token), path=users_path, now=NOW + 1)
    assert check.outcome == TokenOutcome.TAMPERED
    assert check.username is None


def test_every_single_character_change_in_signature_is_tampered(users_path):
    token = issue_token("user", path=users_path, now=NOW)
    payload, sig = token.rsplit(".", 1)
    for i, original in enumerate(sig):
        for c in B64_ALPHABET:
            if c == original:
                continue
            altered = f"{payload}.{sig[:i]}{c}{sig[i + 1:]}"
            outcome = verify_token(altered, path=users_path, now=NOW + 1).outcome
            assert outcome == TokenOutcome.TAMPERED, (i, original, c)


def test_forged_payload_is_tampered(users_path):
    forged = URLSafeSerializer("attacker-secret", salt="cinema.remember-me.v1").dumps(
        {"u": "admin", "e": NOW + 86400, "f": "0" * 32}
    )
    assert verify_token(forged, path=users_path, now=NOW).outcome == TokenOutcome.TAMPERED


@pytest.mark.parametrize("token", ["", "junk", "a.b.c"])
def test_garbage_is_tampered(users_path, token):
    assert verify_token(token, path=users_path, now=NOW).outcome == TokenOutcome.TAMPERED


def test_wrong_payload_shape_is_tampered(users_path):
    token = remember._serializer().dumps(["user", NOW + 100])
    assert verify_token(token, path=users_path, now=NOW).outcome == TokenOutcome.TAMPERED


def test_unknown_user(users_path):
    token = remember._serializer().dumps({"u": "ghost", "e": NOW + 100, "f": "x"})
    assert verify_token(token, path=users_path, now=NOW).outcome == TokenOutcome.UNKNOWN_USER


def test_disabled_user_token_rejected(users_path, admin_principal):
    token = issue_token("user", path=users_path, now=NOW)
    set_status("user", Status.NOT_CONFIRMED, actor=admin_principal, path=users_path)
    assert verify_token(token, path=users_path, now=NOW + 1).outcome == TokenOutcome.ACCOUNT_DISABLED


def test_password_change_revokes_outstanding_tokens(users_path):
    token = issue_token("user", path=users_path, now=NOW)
    set_password("user", "another-password", path=users_path)
    assert verify_token(token, path=users_path, now=NOW + 1).outcome == TokenOutcome.TAMPERED
    fresh = issue_token("user", path=users_path, now=NOW)
    assert verify_token(fresh, path=users_path, now=NOW + 1).ok


def test_rotating_the_secret_invalidates_tokens(users_path, monkeypatch):
    token = issue_token("user", path=users_path, now=NOW)
    monkeypatch.setenv("SECRET_KEY", "rotated-secret")
    assert verify_token(token, path=users_path, now=NOW + 1).outcome == TokenOutcome.TAMPERED


def test_issue_requires_existing_user(users_path):
    with pytest.raises(LookupError):
        issue_token("ghost", path=users_path)
