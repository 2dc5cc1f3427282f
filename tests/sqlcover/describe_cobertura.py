"""Tests for sqlcover.cobertura — Cobertura XML report."""

from __future__ import annotations

from unittest.mock import MagicMock
from xml.etree import ElementTree as ET

from sqlcover.cobertura import _group_by_object_name, format_cobertura
from sqlcover.correlator import correlate
from sqlcover.models import Batch, CoverageResult, ExecutedEvent, FileCorrection, Statement

# "SELECT 1" is on line 1; the IF statement spans lines 2 and 3.
SCRIPT = "SELECT 1;\nIF @a = 1\n  SELECT 2;\n-- end"


def _make_batch(
    object_id: int = 1,
    object_name: str = "dbo.proc",
    text: str = SCRIPT,
    statements: list[Statement] | None = None,
) -> Batch:
    if statements is None:
        statements = [Statement(offset=0, length=8), Statement(offset=10, length=20)]
    return Batch(
        object_id=object_id,
        object_name=object_name,
        text=text,
        statements=statements,
        file_name=f"{object_name}.sql",
    )


def _make_result(
    batches: list[Batch] | None = None, events: list[ExecutedEvent] | None = None
) -> CoverageResult:
    if batches is None:
        batches = [_make_batch()]
    if events is None:
        events = [ExecutedEvent(1, 12, 1), ExecutedEvent(1, 12, 1)]
    return correlate(batches, events)


def _parse(xml: str) -> ET.Element:
    return ET.fromstring(xml)


def _lines(cls: ET.Element) -> list[tuple[str, str]]:
    return [(line.get("number"), line.get("hits")) for line in cls.findall("lines/line")]


def describe_format_cobertura():
    def it_starts_with_an_xml_declaration_and_doctype():
        xml = format_cobertura(_make_result(), timestamp=1)
        assert xml.startswith('<?xml version="1.0" ?>\n<!DOCTYPE coverage')

    def it_writes_totals_on_the_root():
        root = _parse(format_cobertura(_make_result(), timestamp=1700000000000))
        assert root.get("lines-valid") == "2"
        assert root.get("lines-covered") == "1"
        assert root.get("line-rate") == "0.5000"
        assert root.get("branch-rate") == "0.0000"
        assert root.get("timestamp") == "1700000000000"

    def it_names_the_package():
        root = _parse(format_cobertura(_make_result(), package_name="reporting", timestamp=1))
        assert root.find("packages/package").get("name") == "reporting"

    def it_defaults_the_package_to_sql():
        root = _parse(format_cobertura(_make_result(), timestamp=1))
        assert root.find("packages/package").get("name") == "sql"

    def it_writes_a_class_per_object():
        root = _parse(format_cobertura(_make_result(), timestamp=1))
        cls = root.find("packages/package/classes/class")
        assert cls.get("name") == "dbo.proc"
        assert cls.get("filename") == "dbo.proc.sql"
        assert cls.get("lines-valid") == "2"
        assert cls.get("lines-covered") == "1"
        assert cls.find("methods") is not None

    def it_emits_a_line_for_every_line_a_statement_spans():
        root = _parse(format_cobertura(_make_result(), timestamp=1))
        cls = root.find("packages/package/classes/class")
        assert _lines(cls) == [("1", "0"), ("2", "2"), ("3", "2")]
        assert {line.get("branch") for line in cls.findall("lines/line")} == {"false"}

    def it_emits_nothing_for_a_statement_ending_at_the_end_of_the_text():
        batch = _make_batch(text="SELECT 1", statements=[Statement(offset=0, length=8)])
        root = _parse(format_cobertura(_make_result([batch], []), timestamp=1))
        assert root.findall(".//line") == []

    def it_reports_zero_rates_for_an_empty_result():
        root = _parse(format_cobertura(_make_result([], []), timestamp=1))
        assert root.get("line-rate") == "0.0000"
        assert root.findall(".//class") == []

    def it_is_exposed_on_the_result():
        result = _make_result()
        assert result.cobertura(timestamp=5) == format_cobertura(result, timestamp=5)

    def describe_grouping():
        def it_merges_batches_whose_names_differ_only_in_case():
            a = _make_batch(object_id=1, object_name="dbo.Proc")
            b = _make_batch(object_id=2, object_name="DBO.PROC")
            root = _parse(format_cobertura(_make_result([a, b]), timestamp=1))
            classes = root.findall(".//class")
            assert len(classes) == 1
            assert classes[0].get("name") == "dbo.Proc"
            assert classes[0].get("lines-valid") == "4"
            assert classes[0].get("lines-covered") == "1"
            assert len(classes[0].findall("lines/line")) == 6

        def it_keeps_first_seen_order():
            batches = [
                _make_batch(object_name="b"),
                _make_batch(object_name="a"),
                _make_batch(object_name="B"),
            ]
            assert list(_group_by_object_name(batches)) == ["b", "a"]

    def describe_file_correction():
        def it_shifts_line_numbers():
            root = _parse(
                format_cobertura(
                    _make_result(),
                    file_correction=lambda batch: FileCorrection(line_correction=10),
                    timestamp=1,
                )
            )
            assert [n for n, _ in _lines(root.find(".//class"))] == ["11", "12", "13"]

        def it_shifts_offsets():
            # Shifting by 10 moves the first statement onto the IF line.
            root = _parse(
                format_cobertura(
                    _make_result(),
                    file_correction=lambda batch: FileCorrection(offset_correction=10),
                    timestamp=1,
                )
            )
            assert _lines(root.find(".//class"))[0] == ("2", "0")

        def it_overrides_the_file_path():
            root = _parse(
                format_cobertura(
                    _make_result(),
                    file_correction=lambda batch: FileCorrection(path_override="db/proc.sql"),
                    timestamp=1,
                )
            )
            assert root.find(".//class").get("filename") == "db/proc.sql"

        def it_falls_back_to_defaults_when_the_hook_returns_none():
            plain = format_cobertura(_make_result(), timestamp=1)
            hooked = format_cobertura(_make_result(), file_correction=lambda b: None, timestamp=1)
            assert hooked == plain

        def it_calls_the_hook_once_per_class_with_the_first_batch():
            a = _make_batch(object_id=1, object_name="x")
            b = _make_batch(object_id=2, object_name="X")
            c = _make_batch(object_id=3, object_name="y")
            hook = MagicMock(return_value=None)
            format_cobertura(_make_result([a, b, c]), file_correction=hook, timestamp=1)
            assert [call.args[0] for call in hook.call_args_list] == [a, c]
