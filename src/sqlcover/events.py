"""Read "statement starting" events from SQL Server Extended Events XML."""

from __future__ import annotations

import logging
from typing import Iterable, Iterator
from xml.etree import ElementTree as ET

from sqlcover.errors import EventSourceError
from sqlcover.models import ExecutedEvent

logger = logging.getLogger(__name__)

STATEMENT_EVENTS = ("sp_statement_starting", "sql_statement_starting")


def _data_value(event: ET.Element, name: str) -> str | None:
    for data in event.findall("data"):
        if data.get("name") == name:
            return data.findtext("value")
    return None


def _parse_event(event: ET.Element) -> ExecutedEvent | None:
    fields: dict[str, int] = {}
    for name in ("object_id", "offset", "offset_end"):
        value = _data_value(event, name)
        if value is None:
            logger.warning("Skipping %s event without %s", event.get("name"), name)
            return None
        try:
            fields[name] = int(value)
        except ValueError:
            logger.warning(
                "Skipping %s event with non-integer %s %r", event.get("name"), name, value
            )
            return None
    return ExecutedEvent.from_byte_range(**fields)


def iter_events(xml_documents: Iterable[str]) -> Iterator[ExecutedEvent]:
    """Yield executed statements from Extended Events XML documents.

    Each document may be a single ``<event>`` or any element containing
    ``<event>`` children (such as a ring buffer target dump).  Documents
    are parsed one at a time as the iterator is consumed.
    """
    for document in xml_documents:
        try:
            root = ET.fromstring(document)
        except ET.ParseError as e:
            raise EventSourceError(f"Malformed Extended Events XML: {e}") from e

        events = [root] if root.tag == "event" else root.iter("event")
        for event in events:
            if event.get("name") not in STATEMENT_EVENTS:
                continue
            parsed = _parse_event(event)
            if parsed is not None:
                yield parsed
