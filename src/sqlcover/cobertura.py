"""Cobertura XML coverage report.

Format reference:
https://raw.githubusercontent.com/jenkinsci/cobertura-plugin/master/src/test/resources/hudson/plugins/cobertura/coverage-with-data.xml
"""

from __future__ import annotations

import time
from xml.etree import ElementTree as ET

from sqlcover.models import Batch, CoverageResult, CoverageSummary, FileCorrection, FileCorrectionHook
from sqlcover.output import check_renderable
from sqlcover.positions import get_offsets

_DOCTYPE = '<!DOCTYPE coverage SYSTEM "http://cobertura.sourceforge.net/xml/coverage-04.dtd">'


def _rate(ratio: float) -> str:
    return f"{ratio:.4f}"


def _group_by_object_name(batches: list[Batch]) -> dict[str, list[Batch]]:
    """Group batches by object name, ignoring case, in first-seen order."""
    groups: dict[str, list[Batch]] = {}
    for batch in batches:
        groups.setdefault(batch.object_name.casefold(), []).append(batch)
    return groups


def _class_element(
    classes: ET.Element, group: list[Batch], correction: FileCorrection
) -> None:
    first = group[0]
    summary = CoverageSummary.of(group)

    cls = ET.SubElement(classes, "class")
    cls.set("name", first.object_name)
    cls.set("filename", correction.path_override or first.file_name)
    cls.set("lines-valid", str(summary.statement_count))
    cls.set("lines-covered", str(summary.covered_statement_count))
    cls.set("line-rate", _rate(summary.statement_ratio))
    cls.set("branch-rate", _rate(summary.branch_ratio))
    cls.set("complexity", "0")
    ET.SubElement(cls, "methods")
    lines = ET.SubElement(cls, "lines")

    for batch in group:
        for statement in batch.statements:
            position = get_offsets(
                statement.offset + correction.offset_correction,
                statement.length,
                batch.text,
                line_start=1 + correction.line_correction,
            )
            for number in range(position.start_line, position.end_line + 1):
                line = ET.SubElement(lines, "line")
                line.set("number", str(number))
                line.set("hits", str(statement.hit_count))
                line.set("branch", "false")


def format_cobertura(
    result: CoverageResult,
    package_name: str = "sql",
    file_correction: FileCorrectionHook | None = None,
    timestamp: int | None = None,
) -> str:
    """Render ``result`` as Cobertura XML.

    Batches sharing an object name (case-insensitively) become one class.
    Each statement contributes one ``<line>`` per source line it spans.
    ``file_correction`` is called with the first batch of every class and
    may shift line numbers and offsets or replace the file name, for
    aligning against a differently indexed copy of the source.
    """
    check_renderable(result)
    totals = result.totals
    if timestamp is None:
        timestamp = int(time.time() * 1000)

    coverage = ET.Element("coverage")
    coverage.set("lines-valid", str(totals.statement_count))
    coverage.set("lines-covered", str(totals.covered_statement_count))
    coverage.set("line-rate", _rate(totals.statement_ratio))
    coverage.set("branches-valid", str(totals.branch_count))
    coverage.set("branches-covered", str(totals.covered_branch_count))
    coverage.set("branch-rate", _rate(totals.branch_ratio))
    coverage.set("complexity", "0")
    coverage.set("version", "1.9")
    coverage.set("timestamp", str(timestamp))

    ET.SubElement(coverage, "sources")
    packages = ET.SubElement(coverage, "packages")
    package = ET.SubElement(packages, "package")
    package.set("name", package_name)
    package.set("line-rate", _rate(totals.statement_ratio))
    package.set("branch-rate", _rate(totals.branch_ratio))
    package.set("complexity", "0")
    classes = ET.SubElement(package, "classes")

    for group in _group_by_object_name(result.batches).values():
        correction = FileCorrection()
        if file_correction is not None:
            correction = file_correction(group[0]) or correction
        _class_element(classes, group, correction)

    ET.indent(coverage, space=" ")
    body = ET.tostring(coverage, encoding="unicode")
    return f'<?xml version="1.0" ?>\n{_DOCTYPE}\n{body}\n'
