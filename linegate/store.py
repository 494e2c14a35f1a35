"""
Provides the User class and the stores which keep users.

Every store method returns a Deferred so sessions can wait on a database
without blocking the reactor.
"""

import logging
import sqlite3
from typing import Dict, Optional

from twisted.enterprise import adbapi
from twisted.internet.defer import Deferred, fail, succeed
from twisted.python.failure import Failure

from .errors import DuplicateUser, StoreError

logger = logging.getLogger(__name__)


class User:
    """
    A user who can log in.

    username
    The unique name of this user.
    password_hash
    The output of linegate.auth.hash_password for this user's password.
    id
    The number the store gave this user, or None if it has not been saved.
    """

    def __init__(self, username: str, password_hash: str, id: Optional[int] = None):

        self.username = username
        self.password_hash = password_hash
        self.id = id

    def __repr__(self) -> str:
        return "<User %r (id=%r)>" % (self.username, self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return (self.username, self.password_hash, self.id) == (
            other.username,
            other.password_hash,
            other.id,
        )


class UserStore:
    """The interface sessions use to find and save users."""

    def find_by_username(self, username: str) -> Deferred:
        """Fire with the user named username, or None."""
        raise NotImplementedError

    def save(self, user: User) -> Deferred:
        """Save user and fire with it once it has an id."""
        raise NotImplementedError

    def close(self) -> None:
        """Release any resources held by this store."""
        pass


class MemoryUserStore(UserStore):
    """Keep users in a dictionary. Nothing survives a restart."""

    def __init__(self) -> None:

        self.users: Dict[str, User] = {}
        self.next_id = 1

    def find_by_username(self, username: str) -> Deferred:
        return succeed(self.users.get(username))

    def save(self, user: User) -> Deferred:
        existing = self.users.get(user.username)
        if existing is not None and existing.id != user.id:
            return fail(DuplicateUser("User %r already exists." % user.username))
        if user.id is None:
            user.id = self.next_id
            self.next_id += 1
        self.users[user.username] = user
        return succeed(user)


def prepare_connection(connection: sqlite3.Connection) -> None:
    """Create the users table on a new connection if it does not exist."""
    connection.execute(
        "CREATE TABLE IF NOT EXISTS users ("
        "id INTEGER PRIMARY KEY AUTOINCREMENT, "
        "username TEXT NOT NULL UNIQUE, "
        "password_hash TEXT NOT NULL)"
    )
    connection.commit()


def find_user(txn: sqlite3.Cursor, username: str) -> Optional[User]:
    """Return the user named username or None."""
    txn.execute(
        "SELECT id, username, password_hash FROM users WHERE username = ?",
        (username,),
    )
    row = txn.fetchone()
    if row is None:
        return None
    return User(row[1], row[2], id=row[0])


def save_user(txn: sqlite3.Cursor, user: User) -> User:
    """Insert or update user, setting user.id on insert."""
    try:
        if user.id is None:
            txn.execute(
                "INSERT INTO users (username, password_hash) VALUES (?, ?)",
                (user.username, user.password_hash),
            )
            user.id = txn.lastrowid
        else:
            txn.execute(
                "UPDATE users SET username = ?, password_hash = ? WHERE id = ?",
                (user.username, user.password_hash, user.id),
            )
    except sqlite3.IntegrityError as e:
        raise DuplicateUser("User %r already exists." % user.username) from e
    return user


class SQLiteUserStore(UserStore):
    """
    Keep users in an SQLite database.

    Queries run on the thread pool of a twisted.enterprise.adbapi
    ConnectionPool.

    path
    The database file.
    pool
    The ConnectionPool queries are run with.
    """

    def __init__(self, path: str) -> None:

        self.path = path
        self.pool = adbapi.ConnectionPool(
            "sqlite3",
            path,
            check_same_thread=False,
            cp_min=1,
            cp_max=1,
            cp_openfun=prepare_connection,
        )

    def _store_error(self, failure: Failure, action: str) -> Failure:
        if failure.check(StoreError):
            return failure
        logger.error(
            "Failed to %s in %s: %s", action, self.path, failure.getErrorMessage()
        )
        return Failure(StoreError("Failed to %s." % action))

    def find_by_username(self, username: str) -> Deferred:
        d = self.pool.runInteraction(find_user, username)
        return d.addErrback(self._store_error, "look up %r" % username)

    def save(self, user: User) -> Deferred:
        d = self.pool.runInteraction(save_user, user)
        return d.addErrback(self._store_error, "save %r" % user.username)

    def close(self) -> None:
        logger.info("Closing user database %s.", self.path)
        self.pool.close()
