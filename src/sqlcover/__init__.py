"""Code coverage for SQL Server batches: correlation and report rendering."""

from sqlcover.correlator import correlate
from sqlcover.errors import EventSourceError, ReferenceDataError, RenderInputError, SqlCoverError
from sqlcover.models import (
    Batch,
    Branch,
    CoverageResult,
    CoverageSummary,
    ExecutedEvent,
    FileCorrection,
    OffsetPosition,
    Statement,
)
from sqlcover.positions import get_offsets

__all__ = [
    "Batch",
    "Branch",
    "CoverageResult",
    "CoverageSummary",
    "EventSourceError",
    "ExecutedEvent",
    "FileCorrection",
    "OffsetPosition",
    "ReferenceDataError",
    "RenderInputError",
    "SqlCoverError",
    "Statement",
    "correlate",
    "get_offsets",
]
