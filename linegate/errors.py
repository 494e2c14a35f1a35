"""Exceptions raised by linegate."""


class LinegateError(Exception):
    """Base class for all linegate errors."""

    pass


class InputValidationError(LinegateError):
    """The user typed something which is not a valid menu selection."""

    pass


class AuthenticationError(LinegateError):
    """Login failed. The message is suitable for sending to the user."""

    pass


class UnknownUser(AuthenticationError):
    """There is no user with the given username."""

    def __init__(self, username: str) -> None:
        super().__init__("No user by that username")
        self.username = username


class IncorrectPassword(AuthenticationError):
    """The password did not match the stored hash."""

    def __init__(self, username: str) -> None:
        super().__init__("Incorrect password")
        self.username = username


class ConnectionClosed(LinegateError):
    """The connection went away while a line was being waited for."""

    pass


class LineRequestPending(LinegateError):
    """Session.next_line was called while another call was outstanding."""

    pass


class LineTooLong(LinegateError):
    """A partial line grew beyond the framer's maximum length."""

    pass


class StoreError(LinegateError):
    """The user store failed to look up or save a user."""

    pass


class DuplicateUser(StoreError):
    """A user with that username has already been saved."""

    pass
