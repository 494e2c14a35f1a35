"""Provides the Session class, the protocol which represents one connection."""

import logging
import re
from collections import deque
from enum import Enum
from typing import TYPE_CHECKING, Any, Deque, Optional, Tuple

from twisted.internet.defer import Deferred, fail, succeed
from twisted.internet.protocol import Protocol, connectionDone
from twisted.protocols.policies import TimeoutMixin
from twisted.python.failure import Failure

from .errors import ConnectionClosed, LineRequestPending, LineTooLong
from .framer import LineFramer

if TYPE_CHECKING:
    from .server import Server
    from .store import User

line_break = re.compile(r"\r\n|\r|\n")


class SessionState(Enum):
    """Where a session is in the connection flow."""

    CONNECTED = "connected"
    AUTH_MENU = "auth menu"
    LOGIN_ATTEMPT = "login attempt"
    REGISTER_ATTEMPT = "register attempt"
    AUTHENTICATED = "authenticated"
    MAIN_LOOP = "main loop"
    CLOSED = "closed"


class Session(Protocol, TimeoutMixin):
    """
    Session protocol

    Instances of this class represent a connection to the server.

    server
    An instance of linegate.Server.
    id
    The number the server assigned to this connection.
    host
    The IP address of the host which this connection represents.
    port
    The port number this connection is connected on.
    framer
    The LineFramer which splits incoming data into lines.
    closed
    True once the connection has been lost. A closed session never reopens.
    lines
    Lines which have arrived but have not yet been asked for.
    """

    prompt = b"> "

    def __init__(
        self,
        server: "Server",
        id: int,
        host: str,
        port: int,
        framer: Optional[LineFramer] = None,
        encode_args: Tuple[str, str] = ("utf-8", "replace"),
        decode_args: Tuple[str, str] = ("utf-8", "ignore"),
    ) -> None:

        self.server = server
        self.id = id
        self.host = host
        self.port = port
        self.address = "%s:%d" % (host, port)
        self.framer = framer or LineFramer()
        self.encode_args = encode_args
        self.decode_args = decode_args
        self.closed = False
        self._state = SessionState.CONNECTED
        self.lines: Deque[str] = deque()
        self.logger = logging.getLogger(self.address)
        self._user: Optional["User"] = None
        self._line_request: Optional[Deferred] = None

    def __repr__(self) -> str:
        return "<Session %d (%s)>" % (self.id, self.address)

    @property
    def state(self) -> SessionState:
        """Where this session is in the connection flow."""
        return self._state

    @state.setter
    def state(self, value: SessionState) -> None:
        """Set self._state. Once closed, a session stays closed."""
        if self.closed:
            return
        self._state = value

    @property
    def user(self) -> Optional["User"]:
        """The user this session has logged in as."""
        return self._user

    @user.setter
    def user(self, value: "User") -> None:
        """Set self._user. A session can only log in once."""
        if self._user is not None:
            raise RuntimeError("%r is already logged in as %r." % (self, self._user))
        self._user = value

    def connectionMade(self) -> None:
        """Register with the server and call self.server.on_connect."""
        self.setTimeout(self.server.idle_timeout or None)
        self.server.connections[self.id] = self
        self.server.on_connect(self)

    def dataReceived(self, data: bytes) -> None:
        """Split data into lines and queue them."""
        self.resetTimeout()
        try:
            lines = self.framer.feed(data)
        except LineTooLong as e:
            self.logger.warning("Dropping connection: %s", e)
            self.disconnect()
            return
        for line in lines:
            self.line_received(line.decode(*self.decode_args))

    def line_received(self, line: str) -> None:
        """Handle a line from a client."""
        self.logger.debug("Received: %r", line)
        self.lines.append(line)
        while self._line_request is not None and self.lines:
            request, self._line_request = self._line_request, None
            request.callback(self.lines.popleft())

    def next_line(self) -> Deferred:
        """Return a Deferred which fires with the next line from the client.

        Only one call may be outstanding at a time. If the connection closes
        first, the Deferred fails with ConnectionClosed."""
        if self._line_request is not None:
            raise LineRequestPending("%r is already waiting for a line." % self)
        if self.lines:
            return succeed(self.lines.popleft())
        if self.closed:
            return fail(ConnectionClosed("%r is closed." % self))
        self._line_request = Deferred(self._cancel_line_request)
        return self._line_request

    def ensure_open(self) -> None:
        """Raise ConnectionClosed if the connection has gone."""
        if self.closed:
            raise ConnectionClosed("%r is closed." % self)

    def _cancel_line_request(self, request: Deferred) -> None:
        if self._line_request is request:
            self._line_request = None

    def send(self, text: str) -> None:
        """Send text followed by CRLF, with every line break made a CRLF."""
        if self.closed:
            return
        text = line_break.sub("\r\n", text)
        self.transport.write((text + "\r\n").encode(*self.encode_args))

    def show_prompt(self) -> None:
        """Send the prompt marker without a line break."""
        if self.closed:
            return
        self.transport.write(self.prompt)

    def notify(self, *args: Any, **kwargs: Any) -> None:
        """Notify this connection of something."""
        self.server.notify(self, *args, **kwargs)

    def disconnect(self) -> None:
        """Close this connection."""
        self.transport.loseConnection()

    def timeoutConnection(self) -> None:
        self.logger.info("Client timed out: %d", self.id)
        super().timeoutConnection()

    def connectionLost(self, reason: Failure = connectionDone) -> None:
        """Fail any outstanding line request and call
        self.server.on_disconnect."""
        self.setTimeout(None)
        self._state = SessionState.CLOSED
        self.closed = True
        self.lines.clear()
        message = reason.getErrorMessage()
        self.logger.info("Disconnected: %s", message)
        request, self._line_request = self._line_request, None
        if request is not None:
            request.errback(ConnectionClosed(message))
        self.server.connections.pop(self.id, None)
        self.server.on_disconnect(self)
