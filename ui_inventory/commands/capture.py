"""Crop and trace a batch of capture records against one page screenshot.

For every --record (a capture-record JSON), crops the record's boundingBox
from the screenshot using the record's devicePixelRatio (or --scale, if
given), writes <out_dir>/<record id>.<ext>, and traces the record's
authored style values like the `trace` command does.

Crops run concurrently; the report lists records in --record order
regardless of which finished first. The screenshot and each record file
are read once; a record listed twice (same path or same id) is cropped and
counted once. A record that cannot be read, or whose crop fails, is
reported and counted as FAIL; the others still complete.

Example:
    ui-inventory capture page.png --record button.json --record card.json
    ui-inventory capture page.png -r button.json -o ./evidence --json
"""

import asyncio
import re
import sys

from ui_inventory.commands.crop import write_crop
from ui_inventory.commands.trace import trace_section
from ui_inventory.core.asset_cache import AssetCache
from ui_inventory.core.crop import encode_crop_async
from ui_inventory.core.evidence import CaptureRecord, load_capture_record
from ui_inventory.core.transport import get_codec
from ui_inventory.core.types import Command, CropRequest, CropResult, Report

command = Command(
    name='capture',
    help='Crop each --record bounding box from a screenshot and trace its style tokens.',
)


def _read_bytes(path: str) -> bytes:
    with open(path, 'rb') as f:
        return f.read()


def _safe_stem(record_id: str) -> str:
    return re.sub(r'[^A-Za-z0-9_.-]', '_', record_id)


async def _crop_all(requests: list[CropRequest]) -> list[CropResult]:
    return await asyncio.gather(*(encode_crop_async(r) for r in requests))


@command.run
def run(source: str, report: Report, args) -> None:
    record_paths = getattr(args, 'record', None) or []
    if not record_paths:
        raise ValueError('capture: at least one --record capture.json required')

    with AssetCache() as files, AssetCache() as records:
        screenshot = files.resolve(source, _read_bytes)
        if screenshot is None:
            raise OSError(f'cannot read screenshot: {source}')

        pending: list[tuple[CaptureRecord, CropRequest | None]] = []
        seen_ids: set[str] = set()
        # a record named twice is cropped and counted once
        for path in dict.fromkeys(record_paths):
            record = records.resolve(path, load_capture_record)
            if record is None:
                print(f'ui-inventory: skipping unreadable record {path}', file=sys.stderr)
                report.add(path, 'error', 'unreadable capture record')
                report.record_fail(path)
                continue
            if record.id in seen_ids:
                print(f'ui-inventory: skipping {path}, capture {record.id} already listed', file=sys.stderr)
                continue
            seen_ids.add(record.id)
            if record.bounding_box is None:
                pending.append((record, None))
                continue
            pending.append(
                (
                    record,
                    CropRequest(
                        source_image=screenshot,
                        crop_rect_css_px=record.bounding_box,
                        pixel_scale=args.scale if args.scale is not None else record.device_pixel_ratio,
                        target_format=args.format,
                        quality=args.quality,
                        max_dim=args.max_dim,
                    ),
                )
            )

        results = iter(asyncio.run(_crop_all([r for _rec, r in pending if r is not None])))

    codec = get_codec(args.transport)
    for record, request in pending:
        if request is None:
            report.add(record.id, 'error', 'record has no boundingBox; nothing to crop')
            report.record_fail(record.id)
        else:
            report.set_rect(record.id, request.crop_rect_css_px)
            write_crop(next(results), args.out_dir, _safe_stem(record.id), codec, report, record.id, args.json)
        report.add(record.id, 'traces', trace_section(record, args.max_depth))
