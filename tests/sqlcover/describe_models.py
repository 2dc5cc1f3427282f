"""Tests for sqlcover.models — data models for SQL coverage."""

from unittest.mock import MagicMock

from sqlcover.models import (
    Batch,
    Branch,
    CoverageResult,
    CoverageSummary,
    ExecutedEvent,
    Statement,
)


def describe_coverage_summary():
    def describe_statement_ratio():
        def it_divides_covered_by_total():
            assert CoverageSummary(statement_count=4, covered_statement_count=1).statement_ratio == 0.25

        def it_returns_zero_without_statements():
            assert CoverageSummary().statement_ratio == 0.0

    def describe_branch_ratio():
        def it_divides_covered_by_total():
            assert CoverageSummary(branch_count=2, covered_branch_count=1).branch_ratio == 0.5

        def it_returns_zero_without_branches():
            assert CoverageSummary(statement_count=3).branch_ratio == 0.0

    def it_adds_field_by_field():
        a = CoverageSummary(1, 2, 3, 4, 5)
        b = CoverageSummary(10, 20, 30, 40, 50)
        assert a + b == CoverageSummary(11, 22, 33, 44, 55)

    def it_sums_batches():
        batches = [
            Batch(object_id=1, object_name="a", text="", summary=CoverageSummary(2, 1, 0, 0, 3)),
            Batch(object_id=2, object_name="b", text="", summary=CoverageSummary(3, 3, 1, 1, 9)),
        ]
        assert CoverageSummary.of(batches) == CoverageSummary(5, 4, 1, 1, 12)

    def it_sums_no_batches_to_zero():
        assert CoverageSummary.of([]) == CoverageSummary()


def describe_batch():
    def it_counts_statements_and_branches_from_its_structure():
        batch = Batch(
            object_id=1,
            object_name="dbo.proc",
            text="x" * 20,
            statements=[
                Statement(offset=0, length=5, branches=[Branch(0, 1), Branch(1, 1)]),
                Statement(offset=5, length=5),
            ],
        )
        assert batch.statement_count == 2
        assert batch.branch_count == 2

    def it_reads_covered_counts_from_its_summary():
        batch = Batch(
            object_id=1,
            object_name="dbo.proc",
            text="",
            summary=CoverageSummary(statement_count=3, covered_statement_count=2, hit_count=7),
        )
        assert batch.covered_statement_count == 2
        assert batch.hit_count == 7


def describe_executed_event():
    def describe_from_byte_range():
        def it_halves_utf16_byte_offsets():
            event = ExecutedEvent.from_byte_range(7, 20, 40)
            assert event == ExecutedEvent(object_id=7, offset=10, length=10)

        def it_treats_minus_one_as_running_to_the_end():
            event = ExecutedEvent.from_byte_range(7, 20, -1)
            assert event.offset == 10
            assert event.offset + event.length > 1_000_000


def describe_coverage_result():
    def it_renders_the_null_format_as_empty():
        result = CoverageResult(batches=[], totals=CoverageSummary())
        assert result.ncover_xml() == ""

    def it_delegates_open_cover_to_a_given_serializer():
        result = CoverageResult(batches=[], totals=CoverageSummary())
        serializer = MagicMock()
        serializer.serialize.return_value = "<CoverageSession/>"
        assert result.open_cover_xml(serializer) == "<CoverageSession/>"
        serializer.serialize.assert_called_once_with(result)
