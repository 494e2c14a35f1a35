"""Provides the Factory class which is a subclass of
twisted.internet.protocol.ServerFactory."""

import logging
from typing import TYPE_CHECKING, Optional, Type

from twisted.internet.interfaces import IAddress
from twisted.internet.protocol import ServerFactory

from .protocol import Session

if TYPE_CHECKING:
    from .server import Server

logger = logging.getLogger(__name__)


class Factory(ServerFactory):
    """
    The server factory.

    server
    The instance of Server which this factory is connected to.
    protocol
    The session class to use with buildProtocol.
    """

    def __init__(self, server: "Server", protocol: Type[Session] = Session) -> None:

        self.server = server
        self.protocol = protocol

    def buildProtocol(self, addr: IAddress) -> Optional[Session]:
        if self.server.is_banned(addr.host):
            logger.warning(
                "Blocked incoming connection from banned host %s.", addr.host
            )
            return None
        logger.info("Incoming connection from %s:%d.", addr.host, addr.port)
        session = self.protocol(
            self.server,
            self.server.allocate_id(),
            addr.host,
            addr.port,
            framer=self.server.make_framer(),
        )
        session.factory = self
        return session
