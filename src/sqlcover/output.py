"""Raw XML dump, result validation and source export for coverage results."""

from __future__ import annotations

import os
from xml.sax.saxutils import escape

from sqlcover.correlator import summarize_batch
from sqlcover.errors import RenderInputError
from sqlcover.models import CoverageResult, CoverageSummary


def _pct(covered: int, total: int) -> float:
    """Coverage percentage, 0% when there is nothing to cover."""
    return covered / total * 100 if total > 0 else 0.0


def _attr(value: str) -> str:
    return escape(value, {'"': "&quot;"})


def check_renderable(result: CoverageResult) -> None:
    """Raise RenderInputError if ``result`` is not internally consistent.

    Checks that offsets and lengths are non-negative, that every batch
    summary agrees with its statements and that the totals agree with the
    batches.
    """
    for batch in result.batches:
        for statement in batch.statements:
            if statement.offset < 0 or statement.length < 0:
                raise RenderInputError(
                    f"{batch.object_name!r}: statement has negative range "
                    f"({statement.offset}, {statement.length})"
                )
            for branch in statement.branches:
                if branch.offset < 0 or branch.length < 0:
                    raise RenderInputError(
                        f"{batch.object_name!r}: branch has negative range "
                        f"({branch.offset}, {branch.length})"
                    )
        if batch.summary != summarize_batch(batch):
            raise RenderInputError(
                f"{batch.object_name!r}: batch summary does not match its statements"
            )
    if result.totals != CoverageSummary.of(result.batches):
        raise RenderInputError("Coverage totals do not match the sum of the batches")


def format_raw_xml(result: CoverageResult) -> str:
    """Dump every batch, statement and SQL exception as flat XML."""
    check_renderable(result)
    totals = result.totals
    parts: list[str] = []

    parts.append(
        f'<CodeCoverage StatementCount="{totals.statement_count}" '
        f'CoveredStatementCount="{totals.covered_statement_count}">\r\n'
    )

    for batch in result.batches:
        parts.append(
            f'<Batch Object="{_attr(batch.object_name)}" '
            f'StatementCount="{batch.statement_count}" '
            f'CoveredStatementCount="{batch.covered_statement_count}">'
        )
        parts.append(f"<Text>\r\n{escape(batch.text)}</Text>")
        for statement in batch.statements:
            parts.append(
                f'\t<Statement HitCount="{statement.hit_count}" Offset="{statement.offset}" '
                f'Length="{statement.length}" CanBeCovered="{statement.is_coverable}"></Statement>'
            )
        parts.append("</Batch>")

    if result.sql_exceptions:
        parts.append("<SqlExceptions>")
        for message in result.sql_exceptions:
            parts.append(f"\t<SqlException>{escape(message)}</SqlException>")
        parts.append("</SqlExceptions>")

    parts.append("\r\n</CodeCoverage>")
    return "".join(parts)


def save_source_files(result: CoverageResult, path: str) -> None:
    """Write each batch's text to ``path/<object name>``, overwriting."""
    for batch in result.batches:
        with open(os.path.join(path, batch.object_name), "w", newline="") as f:
            f.write(batch.text)
