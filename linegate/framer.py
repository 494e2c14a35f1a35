"""Provides the LineFramer class which turns chunks of bytes into lines."""

import re
from typing import List

from .errors import LineTooLong

line_break = re.compile(rb"\r\n|\r|\n")


class LineFramer:
    """
    Split incoming data into lines.

    Lines may be terminated by CR, LF or CRLF. Terminators are stripped.

    buffer_partial
    If True, an unterminated tail is kept until the rest of the line arrives.
    If False, every chunk is assumed to hold whole lines and an unterminated
    tail is returned as a line of its own.
    max_length
    The largest partial line which will be buffered before LineTooLong is
    raised.
    """

    def __init__(self, buffer_partial: bool = True, max_length: int = 16384) -> None:

        self.buffer_partial = buffer_partial
        self.max_length = max_length
        self.buffer = b""
        # The last chunk ended with CR, so a leading LF belongs to it.
        self._skip_lf = False

    def feed(self, data: bytes) -> List[bytes]:
        """Add data and return every line it completes, in order."""
        if self._skip_lf and data[:1] == b"\n":
            data = data[1:]
        self._skip_lf = data[-1:] == b"\r"
        if self.buffer:
            data = self.buffer + data
            self.buffer = b""
        *lines, tail = line_break.split(data)
        if tail:
            if self.buffer_partial:
                if len(tail) > self.max_length:
                    raise LineTooLong(
                        "Line exceeds %d bytes without a terminator." % self.max_length
                    )
                self.buffer = tail
            else:
                lines.append(tail)
        return lines

    def clear(self) -> None:
        """Forget any partial line."""
        self.buffer = b""
        self._skip_lf = False
