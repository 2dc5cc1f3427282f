"""OpenCover XML serializer."""

from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Protocol
from xml.etree import ElementTree as ET

from sqlcover.models import Batch, CoverageResult, CoverageSummary
from sqlcover.output import _pct, check_renderable
from sqlcover.positions import statement_offsets


class CoverageSerializer(Protocol):
    """Anything that can turn a CoverageResult into report text."""

    def serialize(self, result: CoverageResult) -> str: ...


def _module_hash(name: str) -> str:
    digest = hashlib.sha1(name.encode("utf-8")).digest()
    return "-".join(f"{b:02X}" for b in digest)


def _summary(parent: ET.Element, summary: CoverageSummary, classes: int, visited: int) -> None:
    # One method per class, so method counts follow class counts.
    el = ET.SubElement(parent, "Summary")
    el.set("numSequencePoints", str(summary.statement_count))
    el.set("visitedSequencePoints", str(summary.covered_statement_count))
    el.set("numBranchPoints", str(summary.branch_count))
    el.set("visitedBranchPoints", str(summary.covered_branch_count))
    el.set("sequenceCoverage", f"{_pct(summary.covered_statement_count, summary.statement_count):.2f}")
    el.set("branchCoverage", f"{_pct(summary.covered_branch_count, summary.branch_count):.2f}")
    el.set("maxCyclomaticComplexity", "0")
    el.set("minCyclomaticComplexity", "0")
    el.set("visitedClasses", str(visited))
    el.set("numClasses", str(classes))
    el.set("visitedMethods", str(visited))
    el.set("numMethods", str(classes))


class OpenCoverSerializer:
    """Writes a CoverageSession with one module for the database.

    Every batch becomes a file, a class and a single method; statements
    are sequence points and branches are branch points.
    """

    def __init__(self, module_time: datetime | None = None) -> None:
        self.module_time = module_time

    def serialize(self, result: CoverageResult) -> str:
        check_renderable(result)
        module_name = result.database_name or "sql"
        module_time = self.module_time or datetime.now(timezone.utc)
        covered_batches = sum(1 for b in result.batches if b.covered_statement_count > 0)

        session = ET.Element("CoverageSession")
        _summary(session, result.totals, len(result.batches), covered_batches)

        modules = ET.SubElement(session, "Modules")
        module = ET.SubElement(modules, "Module")
        module.set("hash", _module_hash(module_name))
        ET.SubElement(module, "ModulePath").text = module_name
        ET.SubElement(module, "ModuleTime").text = module_time.isoformat()
        ET.SubElement(module, "ModuleName").text = module_name

        files = ET.SubElement(module, "Files")
        for uid, batch in enumerate(result.batches, start=1):
            file_el = ET.SubElement(files, "File")
            file_el.set("uid", str(uid))
            file_el.set("fullPath", batch.file_name or batch.object_name)

        classes = ET.SubElement(module, "Classes")
        uspid = 1
        for uid, batch in enumerate(result.batches, start=1):
            uspid = self._class(classes, batch, uid, uspid)

        ET.indent(session, space="  ")
        body = ET.tostring(session, encoding="unicode")
        return f'<?xml version="1.0" encoding="utf-8"?>\n{body}\n'

    def _class(self, classes: ET.Element, batch: Batch, file_id: int, uspid: int) -> int:
        visited = 1 if batch.covered_statement_count > 0 else 0
        cls = ET.SubElement(classes, "Class")
        _summary(cls, batch.summary, 1, visited)
        ET.SubElement(cls, "FullName").text = batch.object_name
        methods = ET.SubElement(cls, "Methods")

        method = ET.SubElement(methods, "Method")
        method.set("visited", "true" if visited else "false")
        method.set("cyclomaticComplexity", "0")
        method.set("sequenceCoverage", f"{_pct(batch.covered_statement_count, batch.statement_count):.2f}")
        method.set("branchCoverage", f"{_pct(batch.covered_branch_count, batch.branch_count):.2f}")
        method.set("isConstructor", "false")
        method.set("isStatic", "false")
        method.set("isGetter", "false")
        method.set("isSetter", "false")
        _summary(method, batch.summary, 1, visited)
        ET.SubElement(method, "MetadataToken").text = str(batch.object_id)
        ET.SubElement(method, "Name").text = batch.object_name
        ET.SubElement(method, "FileRef").set("uid", str(file_id))

        sequence_points = ET.SubElement(method, "SequencePoints")
        branch_points = ET.SubElement(method, "BranchPoints")
        for ordinal, statement in enumerate(batch.statements):
            position = statement_offsets(statement, batch.text)
            point = ET.SubElement(sequence_points, "SequencePoint")
            point.set("vc", str(statement.hit_count))
            point.set("uspid", str(uspid))
            point.set("ordinal", str(ordinal))
            point.set("offset", str(statement.offset))
            point.set("sl", str(position.start_line))
            point.set("sc", str(position.start_column))
            point.set("el", str(position.end_line))
            point.set("ec", str(position.end_column))
            point.set("bec", str(len(statement.branches)))
            point.set("bev", str(sum(1 for b in statement.branches if b.hit_count > 0)))
            point.set("fileid", str(file_id))
            uspid += 1

            for path, branch in enumerate(statement.branches):
                branch_point = ET.SubElement(branch_points, "BranchPoint")
                branch_point.set("vc", str(branch.hit_count))
                branch_point.set("uspid", str(uspid))
                branch_point.set("ordinal", str(ordinal))
                branch_point.set("path", str(path))
                branch_point.set("offset", str(branch.offset))
                branch_point.set("offsetend", str(branch.offset + branch.length))
                branch_point.set("sl", str(position.start_line))
                branch_point.set("fileid", str(file_id))
                uspid += 1

        return uspid
