import pytest

from cinema.auth.principal import Principal
from cinema.auth.users import Role
from cinema.permissions import (
    AccessRule,
    Capability,
    Decision,
    authorize,
    landing_page,
    match_rule,
    required_capability,
)

ALLOW, DENY = Decision.ALLOW, Decision.DENY


@pytest.mark.parametrize("path", ["/admin/panel/halls", "/admin/panel/films", "/admin/panel/sessions"])
def test_admin_pages(path, admin_principal, user_principal):
    assert authorize(path, "GET", admin_principal) == ALLOW
    assert authorize(path, "GET", user_principal) == DENY
    assert authorize(path, "GET", None) == DENY


@pytest.mark.parametrize(
    "path",
    ["/profile", "/session/search", "/films/7/chat", "/films/7/chat/messages"],
)
def test_authenticated_pages(path, admin_principal, user_principal):
    assert authorize(path, "GET", admin_principal) == ALLOW
    assert authorize(path, "GET", user_principal) == ALLOW
    assert authorize(path, "GET", None) == DENY


@pytest.mark.parametrize("path", ["/signIn", "/signUp", "/logout", "/css/style.css", "/js/app.js", "/images/a/b.png", "/css"])
def test_public_pages(path, user_principal):
    assert authorize(path, "GET", None) == ALLOW
    assert authorize(path, "POST", None) == ALLOW
    assert authorize(path, "GET", user_principal) == ALLOW


@pytest.mark.parametrize("path", ["/", "/admin", "/admin/panel/halls/1", "/films/7", "/films/7/8/chat", "/signIn/extra", "/cssx/a"])
def test_unmatched_paths_require_authentication(path, user_principal):
    assert match_rule(path) is None
    assert required_capability(path) == Capability.AUTHENTICATED
    assert authorize(path, "GET", None) == DENY
    assert authorize(path, "GET", user_principal) == ALLOW


def test_disabled_principal_is_denied():
    p = Principal(username="user", role=Role.USER, enabled=False)
    assert authorize("/profile", "GET", p) == DENY
    assert authorize("/signIn", "GET", p) == ALLOW


def test_first_matching_rule_wins(user_principal):
    rules = (
        AccessRule("/films/**", Capability.PUBLIC),
        AccessRule("/films/*/chat", Capability.ROLE_ADMIN),
    )
    assert authorize("/films/1/chat", "GET", None, rules=rules) == ALLOW

    reordered = tuple(reversed(rules))
    assert authorize("/films/1/chat", "GET", user_principal, rules=reordered) == DENY
    assert authorize("/films/1/other", "GET", None, rules=reordered) == ALLOW


def test_rules_can_be_limited_to_methods(user_principal):
    rules = (AccessRule("/board", Capability.PUBLIC, methods=frozenset({"GET"})),)
    assert authorize("/board", "get", None, rules=rules) == ALLOW
    assert authorize("/board", "POST", None, rules=rules) == DENY
    assert authorize("/board", "POST", user_principal, rules=rules) == ALLOW


def test_landing_page_depends_on_role(admin_principal, user_principal):
    assert landing_page(admin_principal) == "/admin/panel/halls"
    assert landing_page(user_principal) == "/profile"
