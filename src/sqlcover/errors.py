"""Exceptions raised by sqlcover."""

from __future__ import annotations


class SqlCoverError(Exception):
    """Base class for sqlcover errors."""


class ReferenceDataError(SqlCoverError):
    """Parsed batch data is internally inconsistent (e.g. an orphaned branch)."""


class RenderInputError(SqlCoverError):
    """A coverage result is not fit to render."""


class EventSourceError(SqlCoverError):
    """Trace data could not be read."""
