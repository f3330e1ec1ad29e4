"""Report builder — text and JSON output for ui-inventory results."""

import json
from typing import Any

from ui_inventory.core.types import Report


def _fmt_num(v: float) -> str:
    return f'{v:g}'


def _crop_line(data: dict[str, Any]) -> str:
    if not data.get('ok'):
        return f'  crop: capture unavailable ({data.get("error_kind", "?")}): {data.get("error", "")}  ✗'
    dim = f'{data["width"]}×{data["height"]}'
    line = f'  crop: {data["mime_type"]} {dim} ({data["size"]} bytes)'
    if data.get('file'):
        line += f' → {data["file"]}'
    return line + '  ✓'


def _trace_lines(trace: dict[str, Any]) -> list[str]:
    resolved = trace.get('resolved_value') or '—'
    lines = [f'  {trace["property"]}: {trace["authored_value"]} → {resolved}']
    if trace.get('hint'):
        lines.append(f'    {trace["hint"]}')
    for i, step in enumerate(trace['steps'], start=1):
        parts = [f'    {i}. {step["token"]}']
        if step.get('defined_value') is not None:
            parts.append(f'= {step["defined_value"]}')
        if step.get('resolved_value') is not None:
            parts.append(f'resolved {step["resolved_value"]}')
        definition = step.get('definition') or {}
        if definition.get('selector_text'):
            parts.append(f'({definition["selector_text"]})')
        lines.append('  '.join(parts))
    if trace.get('truncated'):
        lines.append('    (truncated)')
    return lines


def format_text(report: Report) -> str:
    """Format report as human-readable text."""
    lines = [f'ui-inventory: {report.source}', '']

    for name, entry in report.captures.items():
        rect = entry.get('rect')
        if rect:
            r = f'[{_fmt_num(rect[0])},{_fmt_num(rect[1])} {_fmt_num(rect[2])}×{_fmt_num(rect[3])} css px]'
        else:
            r = ''
        lines.append(f'── {name} {r}'.rstrip())

        sections = entry.get('sections', {})
        for section, data in sections.items():
            if section == 'crop':
                lines.append(_crop_line(data))
            elif section == 'traces':
                if not data:
                    lines.append('  traces: no token indirections recorded')
                for trace in data:
                    lines.extend(_trace_lines(trace))
            elif section == 'error':
                lines.append(f'  error: {data}')
            else:
                # Generic fallback
                lines.append(f'  {section}: {data}')

        lines.append('')

    total = report.ok_count + report.fail_count
    if total > 0:
        lines.append(f'OK {report.ok_count}/{total} captures  FAIL {report.fail_count}/{total} captures')
    return '\n'.join(lines)


def format_json(report: Report) -> str:
    """Format report as JSON."""
    obj: dict[str, Any] = {'source': report.source, 'captures': []}
    for name, entry in report.captures.items():
        obj['captures'].append(
            {
                'name': name,
                'rect': entry.get('rect'),
                'sections': entry.get('sections', {}),
            }
        )
    obj['summary'] = {
        'total': report.ok_count + report.fail_count,
        'ok': report.ok_count,
        'fail': report.fail_count,
    }
    return json.dumps(obj, indent=2)
