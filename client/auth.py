"""Login helpers.

Passwords are stored and compared in plaintext; the login screen selects a
user by phone number among active users.
"""

import re
from typing import List, Optional, Sequence

from archive.models import ROLE_SYSTEM_ADMIN, STATUS_ACTIVE, User


# Seed account so a fresh archive can be logged into
INITIAL_USERS: List[User] = [
    User(
        id=1,
        name="ناجي احمد امجاور",
        phone="0911426106",
        password="01234",
        role=ROLE_SYSTEM_ADMIN,
        status=STATUS_ACTIVE,
    )
]

_DIGITS = re.compile(r"^\d+$")


def active_users(users: Sequence[User]) -> List[User]:
    return [user for user in users if user.status == STATUS_ACTIVE]


def authenticate(users: Sequence[User], phone: str, password: str) -> Optional[User]:
    """Return the active user matching phone and password, if any."""
    for user in users:
        if user.phone == phone and user.password == password and user.status == STATUS_ACTIVE:
            return user
    return None


def is_valid_password(password: str) -> bool:
    """New passwords must be digits only."""
    return bool(_DIGITS.match(password))
