"""Pluggable codecs for moving encoded crop bytes across a process boundary.

Pick the codec by what the boundary can carry:
  buffer       raw bytes, when the channel moves binary buffers directly
  bytes-array  ordered list of ints 0-255, for JSON-only channels that
               cannot carry binary (the browser extension message bus)
  base64       ASCII string, a compact text fallback

to_message / from_message wrap a CropResult in the plain-dict wire shape:
  {'ok': True, 'bytes': <payload>, 'mime_type', 'width', 'height', 'transport'}
  {'ok': False, 'error': <message>, 'error_kind': <CaptureError.kind>}
"""

from __future__ import annotations

import base64
from typing import Any

from ui_inventory.core.errors import CaptureError
from ui_inventory.core.types import CropResult, EncodedImage


class TransportCodec:
    """Turns encoded bytes into a payload the boundary can carry, and back."""

    name = ''

    def encode(self, data: bytes) -> Any:
        raise NotImplementedError

    def decode(self, payload: Any) -> bytes:
        raise NotImplementedError


class BufferCodec(TransportCodec):
    name = 'buffer'

    def encode(self, data: bytes) -> bytes:
        return data

    def decode(self, payload: Any) -> bytes:
        return bytes(payload)


class ByteArrayCodec(TransportCodec):
    name = 'bytes-array'

    def encode(self, data: bytes) -> list[int]:
        return list(data)

    def decode(self, payload: Any) -> bytes:
        # bytes() rejects values outside 0..255 with ValueError
        return bytes(payload)


class Base64Codec(TransportCodec):
    name = 'base64'

    def encode(self, data: bytes) -> str:
        return base64.b64encode(data).decode('ascii')

    def decode(self, payload: Any) -> bytes:
        return base64.b64decode(payload, validate=True)


_CODECS: dict[str, TransportCodec] = {c.name: c for c in (BufferCodec(), ByteArrayCodec(), Base64Codec())}


def get_codec(name: str) -> TransportCodec:
    """Get a codec by name."""
    if name not in _CODECS:
        raise KeyError(f'Unknown transport: {name}. Available: {", ".join(sorted(_CODECS))}')
    return _CODECS[name]


def available() -> list[str]:
    return sorted(_CODECS)


def to_message(result: CropResult, codec: TransportCodec) -> dict[str, Any]:
    """Serialize a crop result for transport."""
    if not result.ok or result.image is None:
        error = result.error or CaptureError('unknown failure')
        return {'ok': False, 'error': error.message, 'error_kind': error.kind}
    image = result.image
    return {
        'ok': True,
        'bytes': codec.encode(image.data),
        'mime_type': image.mime_type,
        'width': image.width,
        'height': image.height,
        'transport': codec.name,
    }


def from_message(message: dict[str, Any]) -> CropResult:
    """Rebuild a CropResult on the receiving side of the boundary."""
    if not message.get('ok'):
        kind = message.get('error_kind', CaptureError.kind)
        return CropResult.failure(CaptureError.from_kind(kind, message.get('error', 'unknown failure')))
    codec = get_codec(message.get('transport', BufferCodec.name))
    image = EncodedImage(
        data=codec.decode(message['bytes']),
        mime_type=message['mime_type'],
        width=int(message['width']),
        height=int(message['height']),
    )
    return CropResult.success(image)
