"""Explain captured style values by tracing their custom-property tokens.

Reads a capture-record JSON and, for every authored property written with
var(), lists the tokens it went through: the ones referenced directly (in
authored order, fallbacks included), then the chain each one's definition
leads to, one token per hop. Each step shows the token's defined value, the
value it resolved to on the page, and the rule that defined it, where
recorded.

Properties authored as literals have no trace and are skipped. Missing
evidence is not an error: the step is listed with blank fields.

Use --property to trace a single property, --max-depth to bound the
number of steps (default 6; "(truncated)" marks a trace that hit it).

Example:
    ui-inventory trace capture.json
    ui-inventory trace capture.json --property backgroundColor --json
"""

from typing import Any

from ui_inventory.core.evidence import CaptureRecord, load_capture_record
from ui_inventory.core.token_trace import trace_hint
from ui_inventory.core.types import Command, Report

command = Command(
    name='trace',
    help='Trace the custom-property tokens behind each authored style value in a capture record.',
)


def trace_section(record: CaptureRecord, max_depth: int, prop: str | None = None) -> list[dict[str, Any]]:
    """Trace dicts (with a one-line hint each) for one property or all of them."""
    if prop:
        trace = record.trace(prop, max_depth)
        traces = [trace] if trace is not None else []
    else:
        traces = record.traces(max_depth)

    out = []
    for trace in traces:
        data = trace.to_dict()
        data['hint'] = trace_hint(trace, trace.authored_value)
        out.append(data)
    return out


@command.run
def run(source: str, report: Report, args) -> None:
    record = load_capture_record(source)
    report.add(record.id, 'traces', trace_section(record, args.max_depth, getattr(args, 'property', None)))
    report.record_ok(record.id)
