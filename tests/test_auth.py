"""
Tests for demo sign-in and role checks.
"""

from __future__ import annotations

from epustaka.domains.library.models import Role
from epustaka.services.auth import authenticate, require_role


def test_admin_and_user_accounts() -> None:
    admin = authenticate("admin", "admin")
    user = authenticate(" user ", "user")
    assert admin is not None and admin.is_admin
    assert user is not None and user.role == Role.USER
    assert not user.is_admin


def test_wrong_credentials() -> None:
    assert authenticate("admin", "user") is None
    assert authenticate("nobody", "admin") is None
    assert authenticate("", "") is None


def test_require_role() -> None:
    admin = authenticate("admin", "admin")
    user = authenticate("user", "user")
    assert require_role(admin, [Role.ADMIN])
    assert require_role(user, ["ADMIN", "USER"])
    assert not require_role(user, [Role.ADMIN])
    assert not require_role(None, [Role.USER])
