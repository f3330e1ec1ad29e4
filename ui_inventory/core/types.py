"""Shared types for ui-inventory: crop requests/results, token evidence and traces, Command, Report."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from typing import Any

from ui_inventory.core.errors import CaptureError

DEFAULT_FORMAT = 'image/webp'
DEFAULT_QUALITY = 0.8
DEFAULT_MAX_DIM = 1200
DEFAULT_MAX_DEPTH = 6

# Style properties the browser side records authored/token evidence for.
AUTHOR_STYLE_PROPERTIES: tuple[str, ...] = (
    'color',
    'backgroundColor',
    'borderColor',
    'boxShadow',
    'fontFamily',
    'fontSize',
    'fontWeight',
    'lineHeight',
    'opacity',
    'paddingTop',
    'paddingRight',
    'paddingBottom',
    'paddingLeft',
    'marginTop',
    'marginRight',
    'marginBottom',
    'marginLeft',
    'borderTopWidth',
    'borderRightWidth',
    'borderBottomWidth',
    'borderLeftWidth',
    'radiusTopLeft',
    'radiusTopRight',
    'radiusBottomRight',
    'radiusBottomLeft',
    'rowGap',
    'columnGap',
)


# ── Capture encoding ─────────────────────────────────────────


@dataclass(frozen=True)
class CssRect:
    """Region of interest in CSS pixels."""

    left: float
    top: float
    width: float
    height: float

    @classmethod
    def parse(cls, text: str) -> CssRect:
        """Parse 'left,top,width,height'."""
        parts = [p.strip() for p in text.split(',')]
        if len(parts) != 4:
            raise ValueError(f'Expected left,top,width,height, got {text!r}')
        left, top, width, height = (float(p) for p in parts)
        return cls(left, top, width, height)


@dataclass(frozen=True)
class DeviceRect:
    """Rectangle in the raster's native pixels."""

    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    @property
    def box(self) -> tuple[int, int, int, int]:
        """(x1, y1, x2, y2) as PIL expects it."""
        return (self.left, self.top, self.right, self.bottom)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class CropRequest:
    """One crop of a captured screenshot. Built once per capture, consumed once."""

    source_image: bytes | str  # encoded raster bytes or a data: URL
    crop_rect_css_px: CssRect
    pixel_scale: float
    target_format: str = DEFAULT_FORMAT  # MIME type
    quality: float = DEFAULT_QUALITY  # 0..1
    max_dim: int = DEFAULT_MAX_DIM

    def __post_init__(self) -> None:
        if not self.pixel_scale > 0:
            raise ValueError(f'pixel_scale must be positive, got {self.pixel_scale}')
        if not 0.0 <= self.quality <= 1.0:
            raise ValueError(f'quality must be within [0, 1], got {self.quality}')
        if self.max_dim <= 0:
            raise ValueError(f'max_dim must be positive, got {self.max_dim}')


@dataclass(frozen=True)
class EncodedImage:
    """Encoded crop. width/height are those of the encoded raster."""

    data: bytes
    mime_type: str
    width: int
    height: int


@dataclass(frozen=True)
class CropResult:
    """Outcome of encode_crop: an image, or the error that prevented one."""

    ok: bool
    image: EncodedImage | None = None
    error: CaptureError | None = None

    @classmethod
    def success(cls, image: EncodedImage) -> CropResult:
        return cls(ok=True, image=image)

    @classmethod
    def failure(cls, error: CaptureError) -> CropResult:
        return cls(ok=False, error=error)


# ── Token evidence and traces ────────────────────────────────


@dataclass(frozen=True)
class TokenUsageEvidence:
    """Token `token` was used for `property` and resolved to `resolved_value`."""

    property: str
    token: str  # --token-name
    resolved_value: str | None = None


@dataclass(frozen=True)
class TokenDefinitionEvidence:
    """Token `token` is declared as `defined_value` by a rule."""

    token: str
    defined_value: str | None = None  # right-hand side, may contain var() chains
    selector_text: str | None = None
    source_id: str | None = None  # declaring stylesheet URL


@dataclass
class TokenTraceStep:
    token: str
    resolved_value: str | None = None
    defined_value: str | None = None
    definition: TokenDefinitionEvidence | None = None


@dataclass
class TokenTrace:
    """Ordered explanation of how an authored value resolves through tokens."""

    property: str
    authored_value: str | None
    resolved_value: str | None
    steps: list[TokenTraceStep] = field(default_factory=list)
    truncated: bool = False

    @property
    def tokens(self) -> list[str]:
        return [s.token for s in self.steps]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ── CLI plumbing ─────────────────────────────────────────────


class Command:
    """A self-registering CLI command.

    Usage in a command module:

        command = Command(name='crop', help='Crop a region from a screenshot')

        @command.run
        def run(source, report, args):
            ...
    """

    def __init__(self, name: str, help: str = ''):
        self.name = name
        self.help = help
        self._run_fn: Callable | None = None

    def run(self, fn: Callable) -> Callable:
        """Decorator to register the run function."""
        self._run_fn = fn
        return fn

    def execute(self, source: str, report: Report, args: Any) -> None:
        """Execute the command's run function."""
        if self._run_fn is None:
            raise RuntimeError(f'Command {self.name} has no run function')
        self._run_fn(source, report, args)


@dataclass
class Report:
    """Accumulates per-capture results for text/JSON output."""

    source: str = ''
    captures: dict[str, dict[str, Any]] = field(default_factory=dict)
    ok_count: int = 0
    fail_count: int = 0

    def _entry(self, name: str) -> dict[str, Any]:
        if name not in self.captures:
            self.captures[name] = {'rect': None, 'sections': {}}
        return self.captures[name]

    def add(self, name: str, section: str, data: Any) -> None:
        """Add a result section (crop, traces, ...) for a capture."""
        self._entry(name)['sections'][section] = data

    def set_rect(self, name: str, rect: CssRect) -> None:
        self._entry(name)['rect'] = [rect.left, rect.top, rect.width, rect.height]

    def record_ok(self, name: str) -> None:
        self.ok_count += 1

    def record_fail(self, name: str) -> None:
        self.fail_count += 1
