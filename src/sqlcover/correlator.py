"""Correlate runtime execution events with parsed batches."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from sqlcover.errors import ReferenceDataError
from sqlcover.models import Batch, Branch, CoverageResult, CoverageSummary, ExecutedEvent, Statement
from sqlcover.overlap import first_overlapping, statement_overlaps_event

logger = logging.getLogger(__name__)


def _index_batches(batches: list[Batch]) -> dict[int, Batch]:
    """Map object ids to batches; the first declared batch wins on duplicates."""
    by_id: dict[int, Batch] = {}
    for batch in batches:
        by_id.setdefault(batch.object_id, batch)
    return by_id


def _apply_events(by_id: dict[int, Batch], events: Iterable[ExecutedEvent]) -> int:
    """Count each event against its first overlapping statement.

    Returns the number of events that matched nothing.
    """
    unmatched = 0
    for event in events:
        batch = by_id.get(event.object_id)
        if batch is None:
            logger.debug("Discarding event for unknown object %s", event.object_id)
            unmatched += 1
            continue
        for statement in batch.statements:
            if statement_overlaps_event(statement, event):
                statement.hit_count += 1
                break
        else:
            logger.debug(
                "Discarding event at offset %s (length %s) in %s: no statement overlaps",
                event.offset,
                event.length,
                batch.object_name,
            )
            unmatched += 1
    return unmatched


def _covering_statements(batch: Batch) -> list[tuple[Branch, Statement]]:
    """Pair every branch with the statement whose hits it reports.

    That is the first statement overlapping the branch, which is not
    necessarily the statement that owns it.
    """
    pairs: list[tuple[Branch, Statement]] = []
    for statement in batch.statements:
        for branch in statement.branches:
            covering = first_overlapping(batch.statements, branch.offset, branch.length)
            if covering is None:
                raise ReferenceDataError(
                    f"Branch at offset {branch.offset} (length {branch.length}) in "
                    f"{batch.object_name!r} is not covered by any statement"
                )
            pairs.append((branch, covering))
    return pairs


def summarize_batch(batch: Batch) -> CoverageSummary:
    branches = [b for s in batch.statements for b in s.branches]
    return CoverageSummary(
        statement_count=len(batch.statements),
        covered_statement_count=sum(1 for s in batch.statements if s.hit_count > 0),
        branch_count=len(branches),
        covered_branch_count=sum(1 for b in branches if b.hit_count > 0),
        hit_count=sum(s.hit_count for s in batch.statements),
    )


def correlate(
    batches: Iterable[Batch],
    events: Iterable[ExecutedEvent],
    sql_exceptions: list[str] | None = None,
    *,
    database_name: str = "",
    data_source: str = "",
    command_detail: str = "",
) -> CoverageResult:
    """Apply an event stream to ``batches`` and build a CoverageResult.

    ``events`` is consumed lazily, one event at a time.  Hit counts are
    written into the given batches, so concurrent runs need their own
    batch objects.  Raises ReferenceDataError if a branch has no
    overlapping statement; this is checked before any event is read, and
    the batches are left untouched.
    """
    batches = list(batches)
    branch_pairs = [pair for batch in batches for pair in _covering_statements(batch)]

    for batch in batches:
        for statement in batch.statements:
            statement.hit_count = 0

    unmatched = _apply_events(_index_batches(batches), events)

    for branch, covering in branch_pairs:
        branch.hit_count = covering.hit_count
    for batch in batches:
        batch.summary = summarize_batch(batch)

    totals = CoverageSummary.of(batches)
    logger.info(
        "Correlated %d batches: %d/%d statements covered, %d hits, %d events unmatched",
        len(batches),
        totals.covered_statement_count,
        totals.statement_count,
        totals.hit_count,
        unmatched,
    )

    if command_detail:
        command_detail = f"{command_detail} at {datetime.now():%Y-%m-%d %H:%M:%S}"

    return CoverageResult(
        batches=batches,
        totals=totals,
        sql_exceptions=list(sql_exceptions or []),
        database_name=database_name,
        data_source=data_source,
        command_detail=command_detail,
        unmatched_events=unmatched,
    )
