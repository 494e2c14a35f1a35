"""Login and registration for sessions."""

import hashlib
import hmac
import logging
from base64 import b64encode
from typing import TYPE_CHECKING, Optional, Tuple

from .errors import AuthenticationError, IncorrectPassword, UnknownUser
from .protocol import SessionState
from .store import User, UserStore

if TYPE_CHECKING:
    from .protocol import Session

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Return the base64 encoded SHA-256 digest of password.

    There is no salt, so stored hashes stay comparable with existing user
    databases."""
    digest = hashlib.sha256(password.encode("utf-8")).digest()
    return b64encode(digest).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """Check password against a hash made by hash_password."""
    return hmac.compare_digest(
        hash_password(password).encode("ascii"), password_hash.encode("utf-8")
    )


async def ask(session: "Session", question: str) -> str:
    """Send question and return the next line."""
    session.send(question)
    session.show_prompt()
    return await session.next_line()


async def ask_credentials(session: "Session") -> Tuple[str, str]:
    """Ask session for a username and password."""
    username = await ask(session, "Username:")
    password = await ask(session, "Password:")
    return username, password


async def authenticate(store: UserStore, username: str, password: str) -> User:
    """Return the user with the given credentials. Raises UnknownUser or
    IncorrectPassword."""
    user = await store.find_by_username(username)
    if user is None:
        raise UnknownUser(username)
    if not verify_password(password, user.password_hash):
        raise IncorrectPassword(username)
    return user


async def login(session: "Session", store: UserStore) -> Optional[User]:
    """Log session in. Returns the user, or None if the credentials were
    wrong."""
    session.state = SessionState.LOGIN_ATTEMPT
    username, password = await ask_credentials(session)
    try:
        user = await authenticate(store, username, password)
    except AuthenticationError as e:
        session.ensure_open()
        session.logger.info("Failed login as %r: %s", username, e)
        session.send(str(e))
        return None
    session.ensure_open()
    session.send("Welcome %s!" % user.username)
    session.user = user
    session.state = SessionState.AUTHENTICATED
    session.logger.info("Logged in: %r", user)
    return user


async def register(session: "Session", store: UserStore) -> Optional[User]:
    """Create a new user. The session is not logged in."""
    session.state = SessionState.REGISTER_ATTEMPT
    username, password = await ask_credentials(session)
    existing = await store.find_by_username(username)
    session.ensure_open()
    if existing is not None:
        session.send("A user already exists with that user name")
        return None
    user = await store.save(User(username, hash_password(password)))
    logger.info("Created user %r from %s.", user, session.address)
    session.ensure_open()
    session.send("User %s created." % user.username)
    return user
