"""
Tests for login and registration.
"""

import pytest
from twisted.internet.defer import ensureDeferred

from conftest import result_of
from linegate import SessionState, User
from linegate.auth import (
    authenticate,
    hash_password,
    login,
    register,
    verify_password,
)
from linegate.errors import IncorrectPassword, UnknownUser


class TestPasswords:
    """Test cases for password hashing."""

    def test_hash_is_base64_sha256(self):
        assert hash_password("secret") == "K7gNU3sdo+OL0wNhqoVWhr3g6s1xYv72ol/pe/Unols="

    def test_hash_is_deterministic(self):
        assert hash_password("pw") == hash_password("pw")
        assert hash_password("pw") != hash_password("pW")

    def test_verify(self):
        stored = hash_password("secret")
        assert verify_password("secret", stored)
        assert not verify_password("wrong", stored)


class TestAuthenticate:
    """Test cases for authenticate."""

    def test_unknown_user(self, store):
        with pytest.raises(UnknownUser) as e:
            result_of(ensureDeferred(authenticate(store, "alice", "pw")))
        assert str(e.value) == "No user by that username"

    def test_incorrect_password(self, store):
        store.save(User("bob", hash_password("secret")))
        with pytest.raises(IncorrectPassword) as e:
            result_of(ensureDeferred(authenticate(store, "bob", "wrong")))
        assert str(e.value) == "Incorrect password"

    def test_success(self, store):
        bob = result_of(store.save(User("bob", hash_password("secret"))))
        assert result_of(ensureDeferred(authenticate(store, "bob", "secret"))) is bob


class TestLogin:
    """Test cases for the login flow."""

    def test_prompts(self, session, store):
        ensureDeferred(login(session, store))
        assert session.transport.value() == b"Username:\r\n> "
        session.dataReceived(b"alice\r\n")
        assert session.transport.value() == b"Username:\r\n> Password:\r\n> "
        assert session.state is SessionState.LOGIN_ATTEMPT

    def test_unknown_user(self, session, store):
        d = ensureDeferred(login(session, store))
        session.dataReceived(b"alice\r\npw\r\n")
        assert result_of(d) is None
        assert session.transport.value().endswith(b"No user by that username\r\n")
        assert session.user is None

    def test_register_then_login(self, session, store):
        d = ensureDeferred(register(session, store))
        session.dataReceived(b"bob\r\nsecret\r\n")
        bob = result_of(d)
        assert bob.username == "bob"
        assert session.user is None

        session.transport.clear()
        d = ensureDeferred(login(session, store))
        session.dataReceived(b"bob\r\nwrong\r\n")
        assert result_of(d) is None
        assert session.transport.value().endswith(b"Incorrect password\r\n")
        assert session.user is None

        session.transport.clear()
        d = ensureDeferred(login(session, store))
        session.dataReceived(b"bob\r\nsecret\r\n")
        assert result_of(d) is bob
        assert session.transport.value().endswith(b"Welcome bob!\r\n")
        assert session.user is bob
        assert session.state is SessionState.AUTHENTICATED


class TestRegister:
    """Test cases for the registration flow."""

    def test_creates_user(self, session, store):
        d = ensureDeferred(register(session, store))
        session.dataReceived(b"bob\r\nsecret\r\n")
        result_of(d)
        assert store.users["bob"].password_hash == hash_password("secret")
        assert store.users["bob"].id == 1
        assert session.transport.value().endswith(b"User bob created.\r\n")

    def test_existing_user(self, session, store):
        store.save(User("bob", hash_password("first")))
        d = ensureDeferred(register(session, store))
        session.dataReceived(b"bob\r\nsecond\r\n")
        assert result_of(d) is None
        assert session.transport.value().endswith(
            b"A user already exists with that user name\r\n"
        )
        assert verify_password("first", store.users["bob"].password_hash)
