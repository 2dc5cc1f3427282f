"""Decide whether a static range and a runtime range refer to the same code."""

from __future__ import annotations

from typing import Iterable

from sqlcover.models import ExecutedEvent, Statement


def overlaps(a_offset: int, a_length: int, b_offset: int, b_length: int) -> bool:
    """Return True if the half-open ranges share at least one character.

    Empty ranges overlap nothing, themselves included, and ranges that
    only touch at a boundary do not overlap.
    """
    if a_length <= 0 or b_length <= 0:
        return False
    return a_offset < b_offset + b_length and b_offset < a_offset + a_length


def statement_overlaps_range(statement: Statement, offset: int, length: int) -> bool:
    return overlaps(statement.offset, statement.length, offset, length)


def statement_overlaps_event(statement: Statement, event: ExecutedEvent) -> bool:
    return overlaps(statement.offset, statement.length, event.offset, event.length)


def first_overlapping(
    statements: Iterable[Statement], offset: int, length: int
) -> Statement | None:
    """First statement, in declaration order, overlapping the given range."""
    for statement in statements:
        if statement_overlaps_range(statement, offset, length):
            return statement
    return None
