from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional


class LookupStatus(enum.Enum):
    FOUND = "found"
    MISSING = "missing"
    NOT_CALLABLE = "not_callable"


@dataclass(slots=True, frozen=True)
class Lookup:
    status: LookupStatus
    value: Optional[Callable[..., Any]] = None
    path: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


_MISSING = object()


def _step(node: Any, segment: str) -> Any:
    # private and dunder names are never updates (e.g. "__init__" on a registry instance)
    if not segment or segment.startswith("_"):
        return _MISSING
    if isinstance(node, Mapping):
        return node.get(segment, _MISSING)
    return getattr(node, segment, _MISSING)


def resolve_path(registry: Any, path: str) -> Any:
    """Walk `registry` along a dot-separated path. Returns _MISSING at the first absent segment."""
    node = registry
    for segment in path.split("."):
        if node is None:
            return _MISSING
        node = _step(node, segment)
        if node is _MISSING:
            return _MISSING
    return node


def resolve_update(registry: Any, update: Any) -> Lookup:
    """
    Resolve an update descriptor into a callable.

    Callables pass through. Strings are looked up in the registry
    (mapping keys or attributes, one segment at a time); bound methods of a
    registry instance keep that instance as their context. A miss is a
    normal outcome, never an exception.
    """
    if update is None:
        return Lookup(LookupStatus.MISSING)
    if not isinstance(update, str):
        if callable(update):
            return Lookup(LookupStatus.FOUND, update)
        return Lookup(LookupStatus.NOT_CALLABLE)

    if registry is None:
        return Lookup(LookupStatus.MISSING, path=update)
    value = resolve_path(registry, update)
    if value is _MISSING or value is None:
        return Lookup(LookupStatus.MISSING, path=update)
    if not callable(value):
        return Lookup(LookupStatus.NOT_CALLABLE, path=update)
    return Lookup(LookupStatus.FOUND, value, path=update)
