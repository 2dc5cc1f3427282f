"""Map character offsets to line/column positions."""

from __future__ import annotations

from sqlcover.models import OffsetPosition, Statement


def get_offsets(offset: int, length: int, text: str, line_start: int = 1) -> OffsetPosition:
    """Convert an ``offset``/``length`` range of ``text`` to lines and columns.

    Scans ``text`` one character at a time.  A newline bumps the line and
    resets the column to 0; positions are only recorded on non-newline
    characters, after which the column advances.  Scanning stops as soon
    as the end index is reached.  When it never is (the range runs to or
    past the end of the text) the end fields are left at 0.

    Example::

        get_offsets(4, 3, "ab\\ncdefg") -> start (2, 1), end (2, 4)
    """
    start_line = start_column = 0
    end = offset + length
    line = line_start
    column = 1

    for index, char in enumerate(text):
        if char == "\n":
            line += 1
            column = 0
            continue
        if index == offset:
            start_line, start_column = line, column
        if index == end:
            return OffsetPosition(start_line, start_column, line, column)
        column += 1

    return OffsetPosition(start_line, start_column, 0, 0)


def statement_offsets(statement: Statement, text: str) -> OffsetPosition:
    return get_offsets(statement.offset, statement.length, text)
