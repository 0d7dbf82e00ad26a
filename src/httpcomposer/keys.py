"""Cache key derivation.

A cache key is a SHA-256 hex digest of ``URI|METHOD|headers|params`` where
headers and params are serialised as JSON with sorted keys.  Header names
are lower-cased before sorting, so two requests that differ only in
header spelling or insertion order share a key.  The same key addresses
both the cache backend and the seed directory.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping, Optional


def canonical_headers(headers: Optional[Mapping[str, str]]) -> dict[str, str]:
    """Return *headers* with lower-cased names, sorted by name."""
    if not headers:
        return {}
    ordered = sorted(headers.items(), key=lambda item: item[0].lower())
    return {name.lower(): str(value) for name, value in ordered}


def derive_cache_key(
    uri: str,
    method: str,
    headers: Optional[Mapping[str, str]] = None,
    params: Optional[Mapping[str, Any]] = None,
) -> str:
    """Generate a stable fingerprint for a request.

    Args:
        uri: The request URI.
        method: HTTP method; compared case-insensitively.
        headers: Effective request headers, including any auth header.
        params: Request parameters sent as the JSON body.

    Returns:
        A 64-character hexadecimal SHA-256 digest.
    """
    parts = [
        uri,
        method.upper(),
        json.dumps(canonical_headers(headers), sort_keys=True),
        json.dumps(dict(params) if params is not None else None, sort_keys=True, default=str),
    ]
    raw = "|".join(parts)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()
