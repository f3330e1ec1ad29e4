"""Cache of materialised assets (decoded screenshots, blob payloads), keyed by id.

An explicit object with a bounded lifetime, injected into whatever needs it,
rather than a module-level map. Failed keys are remembered so a broken asset
is not fetched again until it is invalidated.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable
from typing import Any


class AssetCache:
    def __init__(self, dispose: Callable[[Any], None] | None = None):
        self._values: dict[Hashable, Any] = {}
        self._failed: set[Hashable] = set()
        self._dispose = dispose

    def __enter__(self) -> AssetCache:
        return self

    def __exit__(self, *exc: object) -> None:
        self.dispose_all()

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._values

    def get(self, key: Hashable) -> Any | None:
        return self._values.get(key)

    def put(self, key: Hashable, value: Any) -> None:
        """Store value, releasing any previous value under the same key."""
        old = self._values.get(key)
        if old is not None and old is not value:
            self._release(old)
        self._values[key] = value
        self._failed.discard(key)

    def invalidate(self, key: Hashable) -> None:
        """Forget a key, value and failure alike."""
        value = self._values.pop(key, None)
        if value is not None:
            self._release(value)
        self._failed.discard(key)

    def dispose_all(self) -> None:
        values = list(self._values.values())
        self._values.clear()
        self._failed.clear()
        for value in values:
            self._release(value)

    def is_failed(self, key: Hashable) -> bool:
        return key in self._failed

    def mark_failed(self, key: Hashable) -> None:
        self._failed.add(key)

    def resolve(self, key: Hashable, loader: Callable[[Hashable], Any]) -> Any | None:
        """Cached value for key, loading it on first use.

        Returns None without calling loader when key already failed. A loader
        that raises OSError or ValueError marks the key failed.
        """
        if key in self._values:
            return self._values[key]
        if key in self._failed:
            return None
        try:
            value = loader(key)
        except (OSError, ValueError):
            self._failed.add(key)
            return None
        self._values[key] = value
        return value

    def _release(self, value: Any) -> None:
        if self._dispose is not None:
            self._dispose(value)
