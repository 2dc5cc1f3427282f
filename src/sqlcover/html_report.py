"""HTML coverage reports with covered statements highlighted in the source."""

from __future__ import annotations

import html

from sqlcover.models import Batch, CoverageResult
from sqlcover.output import _pct, check_renderable

# Objects installed by the tSQLt framework are left out of the summary table.
TEST_FRAMEWORK_MARKER = "tSQLt"

STYLESHEET = "sqlcover.css"

_BASE_STYLE = """\
        html{
            font-family: "Roboto","Helvetica Neue",Arial,Sans-serif;
            font-size: 100%;
            line-height: 26px;
            word-break: break-word;
        }

        i{
            border: solid black;
            border-width: 0 3px 3px 0;
            display: inline-block;
            padding: 3px;
        }

        .up {
            transform: rotate(-135deg);
            -webkit-transform: rotate(-135deg);
        }
"""

_INLINE_HIGHLIGHT = '<span style="background-color: greenyellow">'
_CLASS_HIGHLIGHT = '<span class="covered-statement">'
_HIGHLIGHT_END = "</span>"

_BACK_TO_TOP = '<a href="#top"><i class="up"></i></a>'


def _highlight(batch: Batch, start_marker: str) -> str:
    """Return the batch text, HTML-escaped, with covered statements wrapped.

    Insertion points are worked out from the highest statement offset
    down, end marker before start marker.  Markers sharing a position are
    emitted latest-first, the order repeated splicing into the text would
    leave them in.  Ranges running past the end of the text are cut off
    at its end.
    """
    text = batch.text
    inserts: list[tuple[int, int, str]] = []
    covered = [s for s in batch.statements if s.hit_count > 0]
    for statement in sorted(covered, key=lambda s: s.offset, reverse=True):
        end = min(statement.offset + statement.length, len(text))
        inserts.append((end, len(inserts), _HIGHLIGHT_END))
        inserts.append((min(statement.offset, len(text)), len(inserts), start_marker))
    inserts.sort(key=lambda i: (i[0], -i[1]))

    out: list[str] = []
    cursor = 0
    for position, _, marker in inserts:
        out.append(html.escape(text[cursor:position], quote=False))
        out.append(marker)
        cursor = position
    out.append(html.escape(text[cursor:], quote=False))
    return "".join(out)


def _summary_table(result: CoverageResult) -> str:
    totals = result.totals
    rows = [
        "<table><thead><td>object name</td><td>statement count</td>"
        "<td>covered statement count</td><td>coverage %</td></thead>",
        f"<tr><td><b>Total</b></td><td>{totals.statement_count}</td>"
        f"<td>{totals.covered_statement_count}</td>"
        f"<td>{_pct(totals.covered_statement_count, totals.statement_count):.2f}</td></tr>",
    ]

    ranked = sorted(
        (b for b in result.batches if TEST_FRAMEWORK_MARKER not in b.object_name),
        key=lambda b: b.summary.statement_ratio,
        reverse=True,
    )
    for batch in ranked:
        name = html.escape(batch.object_name)
        rows.append(
            f'<tr><td><a href="#{name}">{name}</a></td><td>{batch.statement_count}</td>'
            f"<td>{batch.covered_statement_count}</td>"
            f"<td>{_pct(batch.covered_statement_count, batch.statement_count):.2f}</td></tr>"
        )

    rows.append("</table>")
    return "".join(rows)


def format_html(result: CoverageResult) -> str:
    """Self-contained report with inline styling."""
    check_renderable(result)

    parts = [
        "<html>\n<head>\n    <title>SQLCover Code Coverage Results</title>\n    <style>\n",
        _BASE_STYLE,
        "    </style>\n</head>\n<body id=\"top\">",
        _summary_table(result),
    ]

    for batch in result.batches:
        name = html.escape(batch.object_name)
        parts.append(f'<pre><a name="{name}"><div class="batch">')
        parts.append(_highlight(batch, _INLINE_HIGHLIGHT))
        parts.append("</div></a></pre>" + _BACK_TO_TOP)

    parts.append("</body></html>")
    return "".join(parts)


def format_html2(result: CoverageResult) -> str:
    """Report using CSS classes and an external stylesheet.

    Adds the run header, a summary line per batch and a section listing
    the SQL exceptions raised during the run.
    """
    check_renderable(result)

    parts = [
        "<html>\n<head>\n    <title>SQLCover Code Coverage Results</title>\n    <style>\n",
        _BASE_STYLE,
        "\n        .covered-statement{\n            background-color: greenyellow;\n        }\n",
        "    </style>\n",
        f'    <link media="all" rel="stylesheet" type="text/css" href="{STYLESHEET}" />\n',
        "</head>\n<body id=\"top\">",
        f'<h2 class="header">{html.escape(result.command_detail)}</h2>',
        _summary_table(result),
    ]

    if result.sql_exceptions:
        parts.append(
            '<div class="sql-exceptions">There were sql exceptions running the batch, '
            'see <a href="#sql-exceptions">here</a></div>'
        )

    for batch in result.batches:
        name = html.escape(batch.object_name)
        pct = _pct(batch.covered_statement_count, batch.statement_count)
        parts.append(f'<a name="{name}"><div class="batch">')
        parts.append(
            f"<div><p class=\"batch-summary\">'{name}' summary: "
            f"statement count: {batch.statement_count}, "
            f"covered statement count: {batch.covered_statement_count}, "
            f"coverage %: {pct:.2f}</p></div>"
        )
        parts.append("<pre>" + _highlight(batch, _CLASS_HIGHLIGHT) + "</pre>")
        parts.append("</div></a>" + _BACK_TO_TOP)

    if result.sql_exceptions:
        parts.append('<a name="sql-exceptions"><div class="sql-exceptions">')
        for message in result.sql_exceptions:
            parts.append(f'\t<pre class="sql-exception">{html.escape(message)}</pre>')
        parts.append('</div></a><a href="#top"><i class="up sql-exceptions"></i></a>')

    parts.append("</body></html>")
    return "".join(parts)
