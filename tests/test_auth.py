import pytest

from core.auth import AuthError, login_admin, login_student
from datamodel import Role


def test_admin_login_trims_and_ignores_username_case():
    user = login_admin("  ADMIN ", " admin123 ", expected_username="admin", expected_password="admin123")
    assert user.role == Role.ADMIN
    assert user.is_admin


@pytest.mark.parametrize("username,password", [("admin", "wrong"), ("root", "admin123"), ("", "")])
def test_admin_login_rejects_bad_credentials(username, password):
    with pytest.raises(AuthError):
        login_admin(username, password, expected_username="admin", expected_password="admin123")


def test_student_login():
    user = login_student(" Asha ", "Computer Science", "2nd Year", "3rd Sem")
    assert user.name == "Asha"
    assert user.role == Role.STUDENT
    assert not user.is_admin


@pytest.mark.parametrize("args", [
    ("   ", "Computer Science", "2nd Year", "3rd Sem"),
    ("Asha", "Astrology", "2nd Year", "3rd Sem"),
    ("Asha", "Computer Science", "9th Year", "3rd Sem"),
    ("Asha", "Computer Science", "2nd Year", "13th Sem"),
])
def test_student_login_validation(args):
    with pytest.raises(ValueError):
        login_student(*args)
