"""Typed failures of the capture encoding pipeline.

Every error carries a short machine-readable `kind` so it can travel across a
process boundary as plain data and be rebuilt on the other side.
"""

from __future__ import annotations


class CaptureError(Exception):
    """Base class for crop/encode failures."""

    kind = 'capture'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @staticmethod
    def from_kind(kind: str, message: str) -> CaptureError:
        """Rebuild the matching error subclass from its `kind` tag."""
        for cls in (DecodeError, InvalidDimensionsError, EncodeError):
            if cls.kind == kind:
                return cls(message)
        return CaptureError(message)


class DecodeError(CaptureError):
    """The source raster is not a readable image."""

    kind = 'decode'


class InvalidDimensionsError(CaptureError):
    """The crop rectangle is empty once scaled and clamped to the source.

    Usually means the region was measured against stale page geometry
    (scroll, resize). Recapturing with fresh geometry fixes it.
    """

    kind = 'invalid_dimensions'


class EncodeError(CaptureError):
    """The target surface could not be created or encoded."""

    kind = 'encode'
