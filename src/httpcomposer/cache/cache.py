"""Cache port protocol and a :mod:`diskcache` backend.

Values stored through the port are the raw dicts of
:class:`~httpcomposer.models.CanonicalResponse` (``code``, ``body`` and,
optionally, ``headers``).  Keys come from
:func:`~httpcomposer.keys.derive_cache_key`.  TTL enforcement belongs to
the backend: :class:`DiskCache` hands it to :meth:`diskcache.Cache.set`
as ``expire``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

import diskcache


@runtime_checkable
class CachePort(Protocol):
    """Protocol for key-value cache backends used by the composer.

    Any object with these three methods satisfies the protocol; no
    inheritance is needed.
    """

    def has(self, key: str) -> bool:
        """Return ``True`` if *key* holds a live entry."""
        ...

    def get(self, key: str) -> Any:
        """Return the value stored under *key*, or ``None``."""
        ...

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Store *value* under *key*, expiring after *ttl* seconds if given."""
        ...


class DiskCache:
    """Disk-backed :class:`CachePort` implementation.

    Stores entries in a :class:`diskcache.Cache` directory.  Entries
    written with a TTL expire after that many seconds; entries written
    without one live until evicted or cleared.

    Args:
        cache_dir: Root directory for the cache.  A ``responses/``
            subdirectory is created inside it.

    Example::

        from httpcomposer.cache import DiskCache

        with DiskCache("/tmp/composer-cache") as cache:
            cache.set(key, {"code": 200, "body": [1, 2]}, ttl=300)
            cache.get(key)
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self._cache_dir = Path(cache_dir)
        self._cache = diskcache.Cache(str(self._cache_dir / "responses"))

    def __enter__(self) -> DiskCache:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def directory(self) -> Path:
        """Directory the entries are stored in."""
        return self._cache_dir / "responses"

    def has(self, key: str) -> bool:
        # ``in`` honours expiry, unlike a bare directory lookup.
        return key in self._cache

    def get(self, key: str) -> Any:
        return self._cache.get(key)

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        self._cache.set(key, value, expire=ttl)

    def delete(self, key: str) -> None:
        """Remove a single entry.  Missing keys are ignored."""
        self._cache.delete(key)

    def clear(self) -> None:
        """Remove all entries from the cache."""
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()
