from __future__ import annotations

import inspect
import time
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union


__all__ = [
    "Update",
    "UpOptions",
    "Chain",
    "Frame",
    "LogEntry",
    "Terminal",
    "Continue",
    "ContinueWith",
    "Fork",
    "Pending",
    "Outcome",
    "TERMINAL",
    "classify_result",
    "update_name",
]


# --------- Primitive / aliases ---------
UpdateFn = Callable[[Any, Any], Any]
Update = Union[UpdateFn, str]


def update_name(update: Any) -> str:
    """Name used in log entries: the registry path, or the callable's __name__."""
    if isinstance(update, str):
        return update
    name = getattr(update, "__name__", None)
    if name:
        return name
    return type(update).__name__


@dataclass(slots=True, frozen=True)
class UpOptions:
    """Per-dispatch event handling options."""
    do_default: bool = False
    propagate: bool = False


@dataclass(slots=True)
class Chain:
    """An update paired with data/event overrides, returned from an update to continue the chain."""
    update: Update
    data: Any = None
    event: Any = None


# --------- Dispatch frame & log entry ---------
@dataclass(slots=True)
class Frame:
    update: Optional[Update]
    data: Any = None
    event: Any = None
    is_chained: bool = False


@dataclass(slots=True)
class LogEntry:
    """Snapshot recorded right before an update executes."""
    name: str
    data: Any
    event: Any
    model: Any
    is_chained: bool
    update: Any
    time: float = field(default_factory=time.time)  # UNIX epoch seconds

    def refreshed(self) -> "LogEntry":
        """Same entry with an advanced timestamp (emitted after an async update settles)."""
        return replace(self, time=time.time())

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "data": self.data,
            "event": self.event,
            "model": self.model,
            "time": self.time,
            "is_chained": self.is_chained,
            "update": self.update,
        }


# --------- Tagged update results ---------
@dataclass(slots=True, frozen=True)
class Terminal:
    pass


@dataclass(slots=True, frozen=True)
class Continue:
    update: Update


@dataclass(slots=True, frozen=True)
class ContinueWith:
    update: Update
    # only the overrides that were actually supplied
    overrides: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True, frozen=True)
class Fork:
    branches: List["Outcome"] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class Pending:
    awaitable: Awaitable[Any]


Outcome = Union[Terminal, Continue, ContinueWith, Fork, Pending]

TERMINAL = Terminal()


def classify_result(result: Any) -> Outcome:
    """
    Map whatever an update returned onto a tagged outcome:
    - None / non-chaining values  -> Terminal
    - callable or registry path   -> Continue
    - Chain / {"update": ...}     -> ContinueWith
    - list / tuple                -> Fork (nested sequences flattened)
    - awaitable                   -> Pending
    """
    if result is None:
        return TERMINAL
    if isinstance(result, (Terminal, Continue, ContinueWith, Fork, Pending)):
        return result
    if isinstance(result, Chain):
        overrides = {"data": result.data}
        if result.event is not None:
            overrides["event"] = result.event
        return ContinueWith(result.update, overrides)
    if isinstance(result, Mapping):
        if "update" not in result:
            return TERMINAL
        overrides = {k: result[k] for k in ("data", "event") if k in result}
        return ContinueWith(result["update"], overrides)
    if isinstance(result, (list, tuple)):
        branches: List[Outcome] = []
        for item in result:
            outcome = classify_result(item)
            if isinstance(outcome, Fork):
                branches.extend(outcome.branches)
            elif not isinstance(outcome, Terminal):
                branches.append(outcome)
        return Fork(branches)
    if inspect.isawaitable(result):
        return Pending(result)
    if isinstance(result, str) or callable(result):
        return Continue(result)
    return TERMINAL
