"""Static demo sign-in.

The app has two fixed accounts: a librarian (ADMIN) who can manage members,
open and close loans and write reports, and a read-only USER account for
students and teachers browsing the catalog.
"""

from __future__ import annotations

import hmac
from typing import Iterable, Optional

from epustaka.domains.library.models import Role, User

_DEMO_ACCOUNTS: dict[str, tuple[str, User]] = {
    "admin": ("admin", User(id="1", name="Library Staff", username="admin", role=Role.ADMIN)),
    "user": ("user", User(id="2", name="Student / Teacher", username="user", role=Role.USER)),
}


def authenticate(username: str, password: str) -> Optional[User]:
    """Return the user for a matching username/password pair, else None."""
    entry = _DEMO_ACCOUNTS.get((username or "").strip())
    if entry is None:
        return None
    expected, user = entry
    if not hmac.compare_digest(expected.encode("utf-8"), (password or "").encode("utf-8")):
        return None
    return user


def require_role(user: Optional[User], roles: Iterable[Role | str]) -> bool:
    """Return True if the user is signed in and has one of roles."""
    return user is not None and user.role.value in {Role(r).value for r in roles}
