from config.settings import ADMIN_PASSWORD, ADMIN_USERNAME
from datamodel import *
from logger import logger

__all__ = ["AuthError", "ADMIN_DISPLAY_NAME", "login_student", "login_admin"]

ADMIN_DISPLAY_NAME = "Admin"


class AuthError(Exception):
    """Admin credentials did not match."""


def login_student(name: str, branch: str, year: str, semester: str) -> User:
    name = (name or "").strip()
    if not name:
        raise ValueError("Please enter your name")
    if branch not in BRANCHES:
        raise ValueError(f"Unknown branch: {branch!r}")
    if year not in YEARS:
        raise ValueError(f"Unknown year: {year!r}")
    if semester not in SEMESTERS:
        raise ValueError(f"Unknown semester: {semester!r}")
    return User(name=name, role=Role.STUDENT, branch=branch, year=year, semester=semester)


def login_admin(
    username: str,
    password: str,
    expected_username: str = ADMIN_USERNAME,
    expected_password: str = ADMIN_PASSWORD,
) -> User:
    """Fixed credential check. The username is case-insensitive, both sides are trimmed."""
    if (username or "").strip().lower() != expected_username.strip().lower() or (
        (password or "").strip() != expected_password.strip()
    ):
        logger.warning(f"Rejected admin login for {username!r}")
        raise AuthError("Invalid admin credentials")
    return User(name=ADMIN_DISPLAY_NAME, role=Role.ADMIN)
