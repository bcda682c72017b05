import pytest

from cinema.auth.authenticator import authenticate
from cinema.auth.users import Role, Status
from cinema.core.exceptions import DuplicateError, FieldError, ValidationError
from cinema.services.registration_service import RegistrationForm, register_user, validate_registration


def _form(**overrides) -> RegistrationForm:
    data = dict(
        first_name="Ellen",
        last_name="Ripley",
        username="ripley",
        email="ripley@nostromo.space",
        phone="+15551234567",
        password="xenomorph42",
        confirm_password="xenomorph42",
    )
    data.update(overrides)
    return RegistrationForm(**data)


def test_valid_form_has_no_errors():
    assert validate_registration(_form()) == []


def test_empty_form_reports_every_required_field():
    errors = validate_registration(RegistrationForm())
    assert {e.field for e in errors} == {
        "firstName", "lastName", "username", "email", "phone", "password", "confirmPassword"
    }
    assert all(e.code == "required" for e in errors)


@pytest.mark.parametrize(
    "overrides, expected",
    [
        ({"first_name": "E"}, FieldError("firstName", "size")),
        ({"last_name": "R" * 51}, FieldError("lastName", "size")),
        ({"username": "ab"}, FieldError("username", "size")),
        ({"username": "ellen ripley"}, FieldError("username", "pattern")),
        ({"email": "ripley-at-nostromo"}, FieldError("email", "pattern")),
        ({"email": "r@" + "x" * 100 + ".io"}, FieldError("email", "size")),
        ({"phone": "555-1234"}, FieldError("phone", "pattern")),
        ({"phone": "+1555"}, FieldError("phone", "pattern")),
        ({"password": "short", "confirm_password": "short"}, FieldError("password", "size")),
        ({"confirm_password": "xenomorph43"}, FieldError("confirmPassword", "mismatch")),
    ],
)
def test_field_rules(overrides, expected):
    assert validate_registration(_form(**overrides)) == [expected]


def test_register_creates_confirmed_user(users_path):
    user = register_user(_form(), path=users_path)
    assert user.username == "ripley"
    assert user.role == Role.USER
    assert user.status == Status.CONFIRMED
    assert authenticate("ripley", "xenomorph42", path=users_path).ok


def test_register_rejects_invalid_input_without_writing(users_path):
    before = users_path.read_text(encoding="utf-8")
    with pytest.raises(ValidationError) as exc:
        register_user(_form(username="x"), path=users_path)
    assert not isinstance(exc.value, DuplicateError)
    assert exc.value.errors == [FieldError("username", "size")]
    assert users_path.read_text(encoding="utf-8") == before


def test_register_rejects_duplicates(users_path):
    register_user(_form(), path=users_path)
    with pytest.raises(DuplicateError) as exc:
        register_user(_form(email="other@nostromo.space"), path=users_path)
    assert exc.value.errors == [FieldError("username", "exists")]

    with pytest.raises(DuplicateError) as exc:
        register_user(_form(username="ripley2", email="Ripley@Nostromo.space"), path=users_path)
    assert exc.value.errors == [FieldError("email", "exists")]
