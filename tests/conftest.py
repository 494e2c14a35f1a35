"""Shared fixtures for linegate tests."""

from typing import Any, List, Tuple

import pytest
from twisted.internet.address import IPv4Address
from twisted.internet.defer import Deferred
from twisted.internet.error import ConnectionDone
from twisted.internet.testing import StringTransport
from twisted.python.failure import Failure

from linegate import MemoryUserStore, Server, Session


def connect(
    server: Server, host: str = "127.0.0.1", port: int = 50000
) -> Tuple[Session, StringTransport]:
    """Connect a new session to server over a StringTransport."""
    session = server.factory.buildProtocol(IPv4Address("TCP", host, port))
    transport = StringTransport()
    session.makeConnection(transport)
    return session, transport


def disconnect(session: Session) -> None:
    """Tell session its connection has gone."""
    session.connectionLost(Failure(ConnectionDone("Connection was closed cleanly.")))


def result_of(d: Deferred) -> Any:
    """Return the result of an already fired Deferred, raising failures."""
    results: List[Any] = []
    d.addBoth(results.append)
    assert results, "Deferred has not fired."
    result = results[0]
    if isinstance(result, Failure):
        result.raiseException()
    return result


@pytest.fixture
def store() -> MemoryUserStore:
    return MemoryUserStore()


@pytest.fixture
def server(store: MemoryUserStore) -> Server:
    return Server(store=store, idle_timeout=None)


@pytest.fixture
def idle_server(store: MemoryUserStore) -> Server:
    """A server whose sessions do nothing when they connect."""
    server = Server(store=store, idle_timeout=None)

    @server.event
    def on_connect(self, session):
        pass

    return server


@pytest.fixture
def session(idle_server: Server) -> Session:
    return connect(idle_server)[0]
