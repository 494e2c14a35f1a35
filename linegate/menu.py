"""
Provides the Menu class and the show_menu function.

A menu is sent to a session as a title followed by numbered items. The user
picks an item by typing its number. Anything else is rejected and the user is
asked again, for as long as the connection stays open:

choice = await show_menu(session, [("login", "Login"), ("quit", "Quit")])
"""

import re
from typing import TYPE_CHECKING, Any, Iterable, List, Tuple

from .errors import InputValidationError

if TYPE_CHECKING:
    from .protocol import Session

selection = re.compile(r"^\s*\d+\s*$", re.ASCII)


class MenuItem:
    """A menu item.

    Attributes:
    text
    The Text which is printed to the client.
    value
    The value returned when this item is chosen.
    index
    The 1-based position of this item in its menu.
    """

    def __init__(self, text: str, value: Any) -> None:

        self.text = text
        self.value = value
        self.index = 0

    def __str__(self) -> str:
        """Return text suitable for printing to a connection."""
        return self.as_string()

    def as_string(self) -> str:
        """Get a string representation of this item."""
        return "{0.index}) {0.text}".format(self)


class Menu:
    """
    A menu object.

    Attributes:
    items
    A list of MenuItem instances.
    title
    The line which is sent before the options.
    invalid
    The line which is sent when the user types something other than the
    number of an item.
    """

    def __init__(
        self,
        items: List[MenuItem],
        title: str = "Select One:",
        invalid: str = "Please choose a valid option",
    ) -> None:

        self.items = items
        self.title = title
        self.invalid = invalid

        for index, item in enumerate(self.items, start=1):
            item.index = index

    def explain(self, session: "Session") -> None:
        """Explain this menu to session."""
        session.send(self.title)
        for item in self.items:
            session.send(item.as_string())

    def match(self, text: str) -> MenuItem:
        """Return the item selected by text or raise InputValidationError."""
        if not selection.match(text):
            raise InputValidationError("Not a number: %r." % text)
        num = int(text)
        if num < 1 or num > len(self.items):
            raise InputValidationError(
                "%d is not between 1 and %d." % (num, len(self.items))
            )
        return self.items[num - 1]

    async def choose(self, session: "Session") -> Any:
        """Show this menu to session and wait for a valid selection."""
        self.explain(session)
        while True:
            session.show_prompt()
            text = await session.next_line()
            try:
                item = self.match(text)
            except InputValidationError as e:
                session.logger.debug("Invalid selection: %s", e)
                session.send(self.invalid)
            else:
                return item.value


async def show_menu(session: "Session", options: Iterable[Tuple[Any, str]]) -> Any:
    """Show a menu built from (value, label) pairs and return the chosen
    value."""
    menu = Menu([MenuItem(label, value) for value, label in options])
    return await menu.choose(session)
