"""Response cache port and its disk-backed implementation.

The composer talks to any object satisfying :class:`CachePort` -- three
methods, ``has``, ``get`` and ``set`` -- and leaves expiry to the backend.
:class:`DiskCache` is the bundled implementation, built on
:mod:`diskcache`.  Passing no cache to the composer disables caching.
"""

from httpcomposer.cache.cache import CachePort, DiskCache

__all__ = ["CachePort", "DiskCache"]
