"""
linegate
A line based TCP server which takes each connection through a login menu
before handing its lines to application code.
"""

from . import errors
from .factory import Factory
from .framer import LineFramer
from .menu import Menu, MenuItem, show_menu
from .protocol import Session, SessionState
from .server import Server
from .store import MemoryUserStore, SQLiteUserStore, User, UserStore

__all__ = [
    "Server",
    "Session",
    "SessionState",
    "Factory",
    "LineFramer",
    "Menu",
    "MenuItem",
    "show_menu",
    "User",
    "UserStore",
    "MemoryUserStore",
    "SQLiteUserStore",
    "errors",
]
