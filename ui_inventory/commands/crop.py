"""Crop one region from a screenshot and re-encode it as a bounded image.

The region is given in CSS pixels with --rect left,top,width,height and
converted to device pixels with --scale (the page's devicePixelRatio,
default 1). The rect is clamped to the screenshot; a rect that no longer
overlaps it (stale geometry after a scroll or resize) reports
"capture unavailable" and exits 1 — take a fresh screenshot and retry.

The result is downscaled so neither side exceeds --max-dim, encoded as
--format at --quality, and written to <out_dir>/crop.<ext>.

With --json and a --transport other than buffer, the encoded payload is
embedded in the report in that transport's shape (bytes-array or base64).

Example:
    ui-inventory crop page.png --rect 10,10,100,50 --scale 2
    ui-inventory crop page.png --rect 10,10,100,50 --scale 2 --max-dim 150 --format image/png
    ui-inventory crop page.png --rect 0,0,300,200 --json --transport base64
"""

import os
import sys
from typing import Any

from ui_inventory.core.crop import encode_crop, extension_for
from ui_inventory.core.transport import BufferCodec, TransportCodec, get_codec, to_message
from ui_inventory.core.types import Command, CropRequest, CropResult, CssRect, Report

command = Command(
    name='crop',
    help='Crop a CSS-pixel rect from a screenshot, bound it to --max-dim and re-encode it.',
)


def write_crop(
    result: CropResult,
    out_dir: str,
    stem: str,
    codec: TransportCodec,
    report: Report,
    name: str,
    with_payload: bool = False,
) -> dict[str, Any]:
    """Write a successful crop to <out_dir>/<stem>.<ext> and record it on the report.

    Failures are recorded too, and announced on stderr as "capture unavailable".
    """
    message = to_message(result, codec)
    if not result.ok or result.image is None:
        print(
            f'ui-inventory: capture unavailable for {name} ({message["error_kind"]}): {message["error"]}',
            file=sys.stderr,
        )
        report.add(name, 'crop', message)
        report.record_fail(name)
        return message

    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, f'{stem}.{extension_for(result.image.mime_type)}')
    with open(path, 'wb') as f:
        f.write(result.image.data)

    data = {k: v for k, v in message.items() if k != 'bytes'}
    data['size'] = len(result.image.data)
    data['file'] = path
    if with_payload and codec.name != BufferCodec.name:
        data['bytes'] = message['bytes']
    report.add(name, 'crop', data)
    report.record_ok(name)
    return data


@command.run
def run(source: str, report: Report, args) -> None:
    if not getattr(args, 'rect', None):
        raise ValueError('crop: --rect left,top,width,height required')

    rect = CssRect.parse(args.rect)
    with open(source, 'rb') as f:
        payload = f.read()

    request = CropRequest(
        source_image=payload,
        crop_rect_css_px=rect,
        pixel_scale=args.scale if args.scale is not None else 1.0,
        target_format=args.format,
        quality=args.quality,
        max_dim=args.max_dim,
    )
    result = encode_crop(request)

    name = os.path.splitext(os.path.basename(source))[0]
    report.set_rect(name, rect)
    write_crop(result, args.out_dir, 'crop', get_codec(args.transport), report, name, with_payload=args.json)
