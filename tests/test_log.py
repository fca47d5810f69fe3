import io
import json
import logging

from litup.core import log
from litup.core.contracts import LogEntry


def _entry(**kw):
    base = dict(name="ping", data=1, event=None, model={}, is_chained=False, update=None)
    base.update(kw)
    return LogEntry(**base)


def test_make_logger_variants():
    seen = []
    hook = log.make_logger(seen.append)
    hook(_entry())
    assert [e.name for e in seen] == ["ping"]

    for config in (False, None, "yes", 1):
        log.make_logger(config)(_entry())  # no-op, no error

    assert log.make_logger(True).wrapped is log.default_sink


def test_hook_failure_is_reported_not_raised(caplog):
    def broken(entry):
        raise RuntimeError("sink down")

    with caplog.at_level(logging.ERROR, logger=log.UP_LOGGER):
        log.make_logger(broken)(_entry())
    assert any("logger hook failed" in r.getMessage() for r in caplog.records)


def test_json_handler_includes_entry():
    handler = log.JsonHandler()
    handler.stream = io.StringIO()
    lg = logging.getLogger("litup.test.json")
    lg.addHandler(handler)
    lg.propagate = False
    try:
        lg.warning("hello %s", "world", extra={"up_entry": _entry().as_dict()})
    finally:
        lg.removeHandler(handler)
    obj = json.loads(handler.stream.getvalue())
    assert obj["msg"] == "hello world"
    assert obj["lvl"] == "WARNING"
    assert obj["up"]["name"] == "ping"


def test_setup_force_and_set_level():
    log.setup("DEBUG", json_mode=True, force=True)
    try:
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0], log.JsonHandler)
        log.set_level("nonsense")
        assert root.level == logging.INFO
    finally:
        log.setup(force=True)
