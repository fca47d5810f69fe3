from types import SimpleNamespace

from litup.core.contracts import UpOptions
from litup.core.events import EventController, HostEvent, apply_event_policy


class StubEvent:
    def __init__(self):
        self.calls = []

    def suppress_default(self):
        self.calls.append("default")

    def suppress_propagation(self):
        self.calls.append("propagation")


def test_default_policy_suppresses_both():
    ev = StubEvent()
    assert isinstance(ev, EventController)
    apply_event_policy(ev)
    assert ev.calls == ["default", "propagation"]


def test_options_opt_out():
    ev = StubEvent()
    apply_event_policy(ev, UpOptions(do_default=True, propagate=True))
    assert ev.calls == []

    ev = StubEvent()
    apply_event_policy(ev, UpOptions(do_default=True))
    assert ev.calls == ["propagation"]


def test_absent_or_foreign_event_is_untouched():
    apply_event_policy(None)
    plain = SimpleNamespace(target={"value": 1})
    apply_event_policy(plain)
    assert vars(plain) == {"target": {"value": 1}}


def test_host_event_flags():
    ev = HostEvent(type="click")
    apply_event_policy(ev, UpOptions(propagate=True))
    assert ev.default_prevented is True
    assert ev.propagation_stopped is False
