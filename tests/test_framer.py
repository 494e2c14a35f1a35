"""
Tests for LineFramer.
"""

import pytest

from linegate.errors import LineTooLong
from linegate.framer import LineFramer


class TestLineFramer:
    """Test cases for LineFramer."""

    def setup_method(self):
        self.framer = LineFramer()

    @pytest.mark.parametrize("data", [b"hello\r\n", b"hello\n", b"hello\r"])
    def test_each_terminator_gives_one_line(self, data):
        assert self.framer.feed(data) == [b"hello"]
        assert self.framer.buffer == b""

    def test_lines_come_out_in_order(self):
        assert self.framer.feed(b"one\r\ntwo\nthree\rfour\r\n") == [
            b"one",
            b"two",
            b"three",
            b"four",
        ]

    def test_empty_lines(self):
        assert self.framer.feed(b"\r\n\n") == [b"", b""]

    def test_partial_line_is_buffered(self):
        assert self.framer.feed(b"hel") == []
        assert self.framer.feed(b"lo\r\nwor") == [b"hello"]
        assert self.framer.buffer == b"wor"
        assert self.framer.feed(b"ld\n") == [b"world"]

    def test_crlf_split_across_chunks(self):
        assert self.framer.feed(b"hello\r") == [b"hello"]
        assert self.framer.feed(b"\nworld\r\n") == [b"world"]

    def test_lf_after_cr_only_skipped_once(self):
        assert self.framer.feed(b"hello\r") == [b"hello"]
        assert self.framer.feed(b"\n") == []
        assert self.framer.feed(b"\n") == [b""]

    def test_without_buffering_tail_is_a_line(self):
        framer = LineFramer(buffer_partial=False)
        assert framer.feed(b"hello") == [b"hello"]
        assert framer.feed(b"a\nb") == [b"a", b"b"]
        assert framer.buffer == b""

    def test_line_too_long(self):
        framer = LineFramer(max_length=4)
        framer.feed(b"abcd")
        with pytest.raises(LineTooLong):
            framer.feed(b"e")

    def test_clear(self):
        self.framer.feed(b"abc\r")
        self.framer.feed(b"def")
        self.framer.clear()
        assert self.framer.feed(b"\nx\n") == [b"", b"x"]
