from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from litup.core import log
from litup.core.contracts import UpOptions

l = log.get("litup.events")


@runtime_checkable
class EventController(Protocol):
    """What the dispatch core needs from a host event."""
    def suppress_default(self) -> None: ...
    def suppress_propagation(self) -> None: ...


@dataclass
class HostEvent:
    """Minimal host event: carries a payload and records what was suppressed."""
    type: str = "event"
    target: Any = None
    detail: Dict[str, Any] = field(default_factory=dict)
    default_prevented: bool = False
    propagation_stopped: bool = False

    def suppress_default(self) -> None:
        self.default_prevented = True

    def suppress_propagation(self) -> None:
        self.propagation_stopped = True


def apply_event_policy(event: Any, options: Optional[UpOptions] = None) -> None:
    """
    Suppress the host default action unless options.do_default, and
    propagation unless options.propagate. No-op without an event.
    """
    if event is None:
        return
    opts = options or UpOptions()
    if not isinstance(event, EventController):
        l.debug("event policy skipped: %s has no controller interface", type(event).__name__)
        return
    if not opts.do_default:
        event.suppress_default()
    if not opts.propagate:
        event.suppress_propagation()
