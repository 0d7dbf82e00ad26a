"""Response shaping for the three result formats.

:func:`format_response` is applied to every response the composer returns,
whether it came from the transport, the cache or a seed file, so callers
cannot tell the sources apart.

* :attr:`~httpcomposer.models.ResultFormat.RAW` -- the plain dict.
* :attr:`~httpcomposer.models.ResultFormat.STRUCTURED` -- a
  :class:`StructuredView` giving read-only attribute access.
* :attr:`~httpcomposer.models.ResultFormat.JSON` -- JSON text.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Iterator

from httpcomposer.models import CanonicalResponse, ResultFormat


class StructuredView:
    """Read-only nested view over a JSON object.

    Keys are reachable both as attributes and by subscription; nested
    objects become views and arrays become tuples.  Assignment raises
    :class:`AttributeError`.

    The view carries no public methods, so every key of the response,
    ``items`` and ``keys`` included, resolves to data.  Use
    :func:`to_plain` for a mutable copy.

    Example::

        view = StructuredView({"code": 200, "body": {"a": 1}})
        view.body.a        # 1
        view["code"]       # 200
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[str, Any]) -> None:
        object.__setattr__(self, "_data", {key: _freeze(value) for key, value in data.items()})

    def __getattr__(self, name: str) -> Any:
        if name == "_data":
            raise AttributeError(name)
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is read-only")

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StructuredView):
            return self._data == other._data
        if isinstance(other, Mapping):
            return to_plain(self) == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"


def to_plain(value: Any) -> Any:
    """Return a plain, mutable copy of a view: dicts and lists all the way down."""
    if isinstance(value, StructuredView):
        return {key: to_plain(value[key]) for key in value}
    if isinstance(value, tuple):
        return [to_plain(item) for item in value]
    return value


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return StructuredView(value)
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def format_response(response: CanonicalResponse | Mapping[str, Any], mode: ResultFormat) -> Any:
    """Shape a response for the caller.

    Args:
        response: A :class:`~httpcomposer.models.CanonicalResponse` or its
            raw dict form.
        mode: The requested output shape.

    Returns:
        A ``dict`` (raw), a :class:`StructuredView` (structured) or a
        ``str`` of JSON text (json).  Parsing the JSON text yields the raw
        dict.
    """
    if isinstance(response, CanonicalResponse):
        raw = response.to_raw()
    else:
        raw = dict(response)

    if mode == ResultFormat.STRUCTURED:
        return StructuredView(raw)
    if mode == ResultFormat.JSON:
        return json.dumps(raw, ensure_ascii=False)
    return raw
