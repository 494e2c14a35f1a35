"""Contains the Server class."""

import logging
from datetime import datetime, timezone
from types import MethodType
from typing import Any, Dict, Optional

from twisted.internet import defer, reactor
from twisted.internet.interfaces import IListeningPort
from twisted.python.failure import Failure

from .auth import login, register
from .errors import ConnectionClosed, StoreError
from .factory import Factory as ServerFactory
from .framer import LineFramer
from .menu import show_menu
from .protocol import Session, SessionState
from .store import MemoryUserStore, UserStore

logger = logging.getLogger(__name__)

auth_options = [
    ("login", "Login"),
    ("create-user", "Create User"),
    ("reset-password", "Reset Password"),
]


class Server:
    """
    A line based server instance.

    port
    The port the server should run on.
    interface
    The interface the server should listen on.
    store
    The UserStore sessions log in against.
    idle_timeout
    Seconds a session may stay silent before it is disconnected. 0 or None
    disables the timeout.
    buffer_partial
    Passed to the LineFramer of each new session.
    factory
    The Twisted factory to use for dishing out connections.
    connections
    A dictionary mapping session ids to connected sessions.
    next_id
    The id which will be given to the next connection.
    started
    The time the server was started with Server.run.
    """

    def __init__(
        self,
        port: int = 8023,
        interface: str = "0.0.0.0",
        store: Optional[UserStore] = None,
        idle_timeout: Optional[int] = 600,
        buffer_partial: bool = True,
        factory: Optional[ServerFactory] = None,
        started: Optional[datetime] = None,
    ) -> None:

        self.port = port
        self.interface = interface
        self.store = store
        self.idle_timeout = idle_timeout
        self.buffer_partial = buffer_partial
        self.factory = factory
        self.started = started
        self.connections: Dict[int, Session] = {}
        self.next_id = 0
        self.listening_port: Optional[IListeningPort] = None

        if self.store is None:
            self.store = MemoryUserStore()
        if self.factory is None:
            self.factory = ServerFactory(self)

    def allocate_id(self) -> int:
        """Return a connection id which has never been used before."""
        id = self.next_id
        self.next_id += 1
        return id

    def make_framer(self) -> LineFramer:
        """Make the LineFramer for a new session."""
        return LineFramer(buffer_partial=self.buffer_partial)

    def is_banned(self, host: str) -> bool:
        """Determine if host is banned. Simply returns False by default."""
        return False

    def run(self) -> None:
        """Run the server."""
        if self.started is None:
            self.started = datetime.now(timezone.utc)
        self.listening_port = reactor.listenTCP(
            self.port, self.factory, interface=self.interface
        )
        logger.info(
            "Now listening for connections on %s:%d.", self.interface, self.port
        )
        self.on_start()
        reactor.addSystemEventTrigger("before", "shutdown", self.shutdown)
        reactor.run()

    def shutdown(self) -> Optional[defer.Deferred]:
        """Stop accepting connections and close the store."""
        logger.info("Shutting down.")
        self.on_stop()
        d = None
        if self.listening_port is not None:
            d = defer.maybeDeferred(self.listening_port.stopListening)
            self.listening_port = None
        self.store.close()
        return d

    def on_start(self) -> None:
        """The server has started. Is called from Server.run."""
        pass

    def on_stop(self) -> None:
        """The server is about to stop."""
        pass

    def on_connect(self, session: Session) -> None:
        """A connection has been established. Send the welcome message and
        start the session."""
        logger.info("Client connected: %d", session.id)
        session.notify("Welcome to the Telnet server! Your id is %d", session.id)
        d = defer.ensureDeferred(self.run_session(session))
        d.addErrback(self.session_failed, session)

    def on_disconnect(self, session: Session) -> None:
        """A client has disconnected."""
        logger.info("Client disconnected: %d", session.id)

    def on_line(self, session: Session, line: str) -> None:
        """A logged in session sent line. Simply logs it by default."""
        session.logger.info("%s: %s", session.user.username, line)

    async def run_session(self, session: Session) -> None:
        """Take session through the login menu and then the main loop."""
        await self.auth_loop(session)
        await self.main_loop(session)

    async def auth_loop(self, session: Session) -> None:
        """Show the login menu until session has logged in."""
        while session.user is None:
            session.state = SessionState.AUTH_MENU
            choice = await show_menu(session, auth_options)
            try:
                if choice == "login":
                    await login(session, self.store)
                elif choice == "create-user":
                    await register(session, self.store)
                else:
                    session.logger.info("Password reset is not available.")
            except StoreError as e:
                session.logger.error("User store failed: %s", e)
                session.notify("There was an error with your request.")

    async def main_loop(self, session: Session) -> None:
        """Pass every line from a logged in session to self.on_line."""
        session.state = SessionState.MAIN_LOOP
        while True:
            session.show_prompt()
            line = await session.next_line()
            self.on_line(session, line)

    def session_failed(self, failure: Failure, session: Session) -> None:
        """Log why session stopped and drop its connection."""
        if failure.check(ConnectionClosed):
            session.logger.debug("Session ended: %s", failure.getErrorMessage())
            return
        session.logger.error(
            "Error in session %d: %s",
            session.id,
            failure.getTraceback(),
        )
        session.disconnect()

    def format_text(self, text: str, *args: Any, **kwargs: Any) -> str:
        """Format text for use with notify and broadcast."""
        if args:
            text = text % args
        if kwargs:
            text = text % kwargs
        return text

    def notify(
        self, connection: Session, text: str, *args: Any, **kwargs: Any
    ) -> None:
        """Notify connection of text formatted with args and kwargs."""
        if connection is not None:
            connection.send(self.format_text(text, *args, **kwargs))

    def broadcast(self, text: str, *args: Any, **kwargs: Any) -> None:
        """Notify all logged in connections."""
        text = self.format_text(text, *args, **kwargs)
        for con in list(self.connections.values()):
            if con.user is not None:
                self.notify(con, text)

    def disconnect(self, connection: Session) -> None:
        """Disconnect a connection."""
        connection.disconnect()

    def event(self, func: MethodType) -> None:
        """A decorator to override methods of self."""
        name = func.__name__
        if not hasattr(self, name):
            raise AttributeError("No attribute named %s to override." % name)
        elif not isinstance(getattr(self, name), MethodType):
            raise TypeError("self.%s is not a method." % name)
        else:
            setattr(self, name, MethodType(func, self))
