"""Data models for SQL code coverage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable

if TYPE_CHECKING:
    from sqlcover.opencover import CoverageSerializer


@dataclass(frozen=True)
class CoverageSummary:
    """Aggregate counts for a batch or for a whole run."""

    statement_count: int = 0
    covered_statement_count: int = 0
    branch_count: int = 0
    covered_branch_count: int = 0
    hit_count: int = 0

    @property
    def statement_ratio(self) -> float:
        if self.statement_count == 0:
            return 0.0
        return self.covered_statement_count / self.statement_count

    @property
    def branch_ratio(self) -> float:
        if self.branch_count == 0:
            return 0.0
        return self.covered_branch_count / self.branch_count

    def __add__(self, other: CoverageSummary) -> CoverageSummary:
        return CoverageSummary(
            statement_count=self.statement_count + other.statement_count,
            covered_statement_count=self.covered_statement_count + other.covered_statement_count,
            branch_count=self.branch_count + other.branch_count,
            covered_branch_count=self.covered_branch_count + other.covered_branch_count,
            hit_count=self.hit_count + other.hit_count,
        )

    @classmethod
    def of(cls, batches: Iterable[Batch]) -> CoverageSummary:
        total = cls()
        for batch in batches:
            total = total + batch.summary
        return total


@dataclass
class Branch:
    """A conditional sub-range whose hit count mirrors its covering statement."""

    offset: int
    length: int
    hit_count: int = 0


@dataclass
class Statement:
    """The smallest independently coverable range of a batch."""

    offset: int
    length: int
    is_coverable: bool = True
    hit_count: int = 0
    branches: list[Branch] = field(default_factory=list)


@dataclass
class Batch:
    """One parsed unit of script text (a procedure, function or script)."""

    object_id: int
    object_name: str
    text: str
    statements: list[Statement] = field(default_factory=list)
    file_name: str = ""
    summary: CoverageSummary = field(default_factory=CoverageSummary)

    @property
    def statement_count(self) -> int:
        return len(self.statements)

    @property
    def branch_count(self) -> int:
        return sum(len(s.branches) for s in self.statements)

    @property
    def covered_statement_count(self) -> int:
        return self.summary.covered_statement_count

    @property
    def covered_branch_count(self) -> int:
        return self.summary.covered_branch_count

    @property
    def hit_count(self) -> int:
        return self.summary.hit_count


# SQL Server reports -1 as the end offset of the last statement in an object.
OPEN_ENDED = -1


@dataclass(frozen=True)
class ExecutedEvent:
    """One runtime "statement executed" record, in character offsets."""

    object_id: int
    offset: int
    length: int

    @classmethod
    def from_byte_range(cls, object_id: int, offset: int, offset_end: int) -> ExecutedEvent:
        """Build an event from the UTF-16 byte offsets the server reports."""
        start = offset // 2
        if offset_end == OPEN_ENDED:
            # Runs to the end of the object, whatever its length.
            return cls(object_id=object_id, offset=start, length=2**31 - 1 - start)
        return cls(object_id=object_id, offset=start, length=(offset_end - offset) // 2)


@dataclass(frozen=True)
class OffsetPosition:
    """Line/column view of an offset range; zeroed end means "not reached"."""

    start_line: int = 0
    start_column: int = 0
    end_line: int = 0
    end_column: int = 0


@dataclass(frozen=True)
class FileCorrection:
    """Per-file alignment returned by a Cobertura file hook."""

    line_correction: int = 0
    offset_correction: int = 0
    path_override: str | None = None


FileCorrectionHook = Callable[[Batch], FileCorrection | None]


@dataclass
class CoverageResult:
    """Correlated coverage for one run, plus the report renderers."""

    batches: list[Batch]
    totals: CoverageSummary
    sql_exceptions: list[str] = field(default_factory=list)
    database_name: str = ""
    data_source: str = ""
    command_detail: str = ""
    unmatched_events: int = 0

    def raw_xml(self) -> str:
        from sqlcover.output import format_raw_xml

        return format_raw_xml(self)

    def html(self) -> str:
        from sqlcover.html_report import format_html

        return format_html(self)

    def html2(self) -> str:
        from sqlcover.html_report import format_html2

        return format_html2(self)

    def cobertura(
        self,
        package_name: str = "sql",
        file_correction: FileCorrectionHook | None = None,
        timestamp: int | None = None,
    ) -> str:
        from sqlcover.cobertura import format_cobertura

        return format_cobertura(
            self, package_name=package_name, file_correction=file_correction, timestamp=timestamp
        )

    def open_cover_xml(self, serializer: CoverageSerializer | None = None) -> str:
        from sqlcover.opencover import OpenCoverSerializer

        if serializer is None:
            serializer = OpenCoverSerializer()
        return serializer.serialize(self)

    def ncover_xml(self) -> str:
        """Reserved format; always empty."""
        return ""

    def save_source_files(self, path: str) -> None:
        from sqlcover.output import save_source_files

        save_source_files(self, path)
