"""Capture encoding pipeline: full-page screenshot + CSS-pixel rect → bounded image.

Steps:
  1. Decode the source raster (encoded bytes or a base64 data: URL).
  2. Scale the CSS-pixel rect by the pixel scale and round to device pixels.
  3. Intersect it with the source bounds.
  4. Fail with InvalidDimensionsError if nothing is left.
  5. Crop.
  6. Downscale so neither side exceeds max_dim, keeping the aspect ratio.
  7. Encode to the target MIME type at the requested quality.

Rounding uses Python's round() everywhere (round-half-even) so no step
biases the result by a pixel in one direction.

Every intermediate image is closed on every exit path. All CaptureErrors are
returned as CropResult failures; nothing escapes encode_crop.

encode_crop_async runs decode, extraction and encoding as separate
asyncio.to_thread suspension points. Concurrent calls share no state.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
from contextlib import ExitStack

from PIL import Image, UnidentifiedImageError

from ui_inventory.core.errors import CaptureError, DecodeError, EncodeError, InvalidDimensionsError
from ui_inventory.core.types import CropRequest, CropResult, CssRect, DeviceRect, EncodedImage

# MIME type → (Pillow format name, file extension)
FORMATS: dict[str, tuple[str, str]] = {
    'image/webp': ('WEBP', 'webp'),
    'image/png': ('PNG', 'png'),
    'image/jpeg': ('JPEG', 'jpg'),
}

_LOSSY = {'WEBP', 'JPEG'}


def _owned(stack: ExitStack, image: Image.Image) -> Image.Image:
    """Close image (pixel memory and any file handle) when stack unwinds."""
    stack.callback(image.close)
    return image


def extension_for(mime_type: str) -> str:
    """File extension for a supported MIME type."""
    if mime_type not in FORMATS:
        raise KeyError(f'Unsupported format: {mime_type}. Available: {", ".join(sorted(FORMATS))}')
    return FORMATS[mime_type][1]


def to_device_rect(rect: CssRect, pixel_scale: float) -> DeviceRect:
    """Convert a CSS-pixel rect to native pixels (multiply, then round)."""
    return DeviceRect(
        left=round(rect.left * pixel_scale),
        top=round(rect.top * pixel_scale),
        width=round(rect.width * pixel_scale),
        height=round(rect.height * pixel_scale),
    )


def clamp_rect(rect: DeviceRect, width: int, height: int) -> DeviceRect:
    """Intersect rect with [0, width] x [0, height].

    The result may be empty (width or height <= 0) when the rect lies
    entirely outside the source.
    """
    left = min(max(rect.left, 0), width)
    top = min(max(rect.top, 0), height)
    right = min(max(rect.right, 0), width)
    bottom = min(max(rect.bottom, 0), height)
    return DeviceRect(left=left, top=top, width=right - left, height=bottom - top)


def fit_within(width: int, height: int, max_dim: int) -> tuple[int, int]:
    """Uniformly downscale (width, height) so the larger side equals max_dim.

    Sizes already within max_dim are returned unchanged.
    """
    if width <= max_dim and height <= max_dim:
        return width, height
    scale = max_dim / max(width, height)
    return max(1, round(width * scale)), max(1, round(height * scale))


def _read_payload(source: bytes | str) -> bytes:
    """Raw encoded bytes from bytes or a base64 data: URL."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if isinstance(source, str) and source.startswith('data:'):
        header, sep, body = source.partition(',')
        if not sep or ';base64' not in header:
            raise DecodeError('data: URL is not base64-encoded')
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f'data: URL payload is not valid base64: {e}') from e
    raise DecodeError(f'Unsupported source image type: {type(source).__name__}')


def _decode(source: bytes | str) -> Image.Image:
    """Decode and fully load the source raster. Caller owns the returned image."""
    payload = _read_payload(source)
    try:
        image = Image.open(io.BytesIO(payload))
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f'Source is not a readable image: {e}') from e
    try:
        image.load()
    except (OSError, ValueError, SyntaxError) as e:
        image.close()
        raise DecodeError(f'Source image is truncated or corrupt: {e}') from e
    return image


def _extract(source: Image.Image, request: CropRequest) -> Image.Image:
    """Crop the clamped device rect and fit it within max_dim. Caller owns the result."""
    rect = clamp_rect(to_device_rect(request.crop_rect_css_px, request.pixel_scale), source.width, source.height)
    if rect.is_empty:
        raise InvalidDimensionsError(
            f'Crop rect is empty after clamping: {rect.width}x{rect.height} '
            f'within {source.width}x{source.height} source'
        )
    cropped = source.crop(rect.box)
    final_size = fit_within(rect.width, rect.height, request.max_dim)
    if final_size == cropped.size:
        return cropped
    try:
        return cropped.resize(final_size, Image.Resampling.LANCZOS)
    except (OSError, ValueError, MemoryError) as e:
        raise EncodeError(f'Failed to scale crop to {final_size[0]}x{final_size[1]}: {e}') from e
    finally:
        cropped.close()


def _encode(image: Image.Image, mime_type: str, quality: float) -> EncodedImage:
    """Render image onto a target surface and encode it."""
    if mime_type not in FORMATS:
        raise EncodeError(f'Unsupported target format: {mime_type}')
    pil_format, _ext = FORMATS[mime_type]

    options: dict = {}
    if pil_format in _LOSSY:
        options['quality'] = round(quality * 100)

    buf = io.BytesIO()
    with ExitStack() as stack:
        try:
            surface = image
            if pil_format == 'JPEG' and surface.mode != 'RGB':
                surface = _owned(stack, surface.convert('RGB'))
            elif surface.mode not in ('RGB', 'RGBA'):
                surface = _owned(stack, surface.convert('RGBA'))
            surface.save(buf, format=pil_format, **options)
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f'Failed to encode {mime_type}: {e}') from e

        return EncodedImage(data=buf.getvalue(), mime_type=mime_type, width=surface.width, height=surface.height)


def encode_crop(request: CropRequest) -> CropResult:
    """Crop, bound and re-encode a screenshot region."""
    try:
        with ExitStack() as stack:
            source = _owned(stack, _decode(request.source_image))
            region = _owned(stack, _extract(source, request))
            image = _encode(region, request.target_format, request.quality)
    except CaptureError as e:
        return CropResult.failure(e)
    return CropResult.success(image)


async def encode_crop_async(request: CropRequest) -> CropResult:
    """encode_crop, suspending at decode, extraction and encoding."""
    try:
        with ExitStack() as stack:
            source = _owned(stack, await asyncio.to_thread(_decode, request.source_image))
            region = _owned(stack, await asyncio.to_thread(_extract, source, request))
            image = await asyncio.to_thread(_encode, region, request.target_format, request.quality)
    except CaptureError as e:
        return CropResult.failure(e)
    return CropResult.success(image)
