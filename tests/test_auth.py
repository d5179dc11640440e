"""Tests for login helpers."""

from archive.models import STATUS_INACTIVE, User
from client.auth import INITIAL_USERS, active_users, authenticate, is_valid_password


class TestAuthenticate:
    def test_seed_admin_can_log_in(self):
        user = authenticate(INITIAL_USERS, "0911426106", "01234")
        assert user is not None
        assert user.id == 1

    def test_wrong_password(self):
        assert authenticate(INITIAL_USERS, "0911426106", "99999") is None

    def test_inactive_user_rejected(self):
        users = [User(id=2, name="x", phone="091", password="1", status=STATUS_INACTIVE)]
        assert authenticate(users, "091", "1") is None
        assert active_users(users) == []


class TestPasswordRules:
    def test_digits_only(self):
        assert is_valid_password("0123")
        assert not is_valid_password("12a4")
        assert not is_valid_password("")
