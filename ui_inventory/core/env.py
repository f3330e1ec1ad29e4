"""Configuration for ui-inventory: .env loading plus typed Settings.

Load order (first wins):
  1. Existing OS environment variables — never overwritten.
  2. .env file at --env-file path (if explicitly provided).
  3. .env file walking up from cwd, stopping at .git (file or dir).

Settings read (defaults in brackets):
  UI_INVENTORY_FORMAT      target MIME type for crops [image/webp]
  UI_INVENTORY_QUALITY     lossy encode quality, 0..1 [0.8]
  UI_INVENTORY_MAX_DIM     longest side of an encoded crop, px [1200]
  UI_INVENTORY_MAX_DEPTH   max steps in a token trace [6]
  UI_INVENTORY_TRANSPORT   codec for --json crop payloads [buffer]
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from ui_inventory.core.types import DEFAULT_FORMAT, DEFAULT_MAX_DEPTH, DEFAULT_MAX_DIM, DEFAULT_QUALITY

ENV_PREFIX = 'UI_INVENTORY_'


def _find_dotenv(start: Path) -> Path | None:
    """Walk up from start, return first .env found, stop at .git boundary."""
    current = start.resolve()
    while True:
        candidate = current / '.env'
        if candidate.is_file():
            return candidate
        # .git is a dir in a clone, a file in a worktree
        if (current / '.git').exists():
            return None
        if current.parent == current:
            return None
        current = current.parent


def _parse_dotenv(path: Path) -> dict[str, str]:
    """Parse KEY=value lines. Quotes around values are stripped, # lines skipped."""
    result: dict[str, str] = {}
    for raw in path.read_text(encoding='utf-8').splitlines():
        line = raw.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        if line.startswith('export '):
            line = line[len('export ') :]
        key, _, value = line.partition('=')
        key = key.strip()
        if key:
            result[key] = value.strip().strip('"').strip("'")
    return result


def load_env(env_file: str | None = None) -> Path | None:
    """Load .env into os.environ for keys not already set.

    Returns the path that was loaded, or None if no .env was found/used.
    """
    if env_file:
        path: Path | None = Path(env_file)
        if not path.is_file():
            return None
    else:
        path = _find_dotenv(Path.cwd())
        if path is None:
            return None

    for key, value in _parse_dotenv(path).items():
        os.environ.setdefault(key, value)
    return path


def _number(environ: Mapping[str, str], name: str, default: float, cast: type) -> float:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return cast(raw.strip())
    except ValueError as e:
        raise ValueError(f'{ENV_PREFIX}{name} must be a {cast.__name__}, got {raw!r}') from e


@dataclass(frozen=True)
class Settings:
    target_format: str = DEFAULT_FORMAT
    quality: float = DEFAULT_QUALITY
    max_dim: int = DEFAULT_MAX_DIM
    max_depth: int = DEFAULT_MAX_DEPTH
    transport: str = 'buffer'

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        return cls(
            target_format=env.get(ENV_PREFIX + 'FORMAT') or DEFAULT_FORMAT,
            quality=_number(env, 'QUALITY', DEFAULT_QUALITY, float),
            max_dim=_number(env, 'MAX_DIM', DEFAULT_MAX_DIM, int),
            max_depth=_number(env, 'MAX_DEPTH', DEFAULT_MAX_DEPTH, int),
            transport=env.get(ENV_PREFIX + 'TRANSPORT') or 'buffer',
        )
