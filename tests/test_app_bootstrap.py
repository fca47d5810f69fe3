import asyncio

import pytest

from litup.adapters.text_surface import TextSurface, render_text
from litup.app import NO_VIEW, app
from litup.core.dispatcher import Dispatcher


@pytest.mark.asyncio
async def test_app_renders_warning_without_view():
    seen = []
    await app(render=lambda value, element: seen.append(value))
    assert seen == [NO_VIEW]


@pytest.mark.asyncio
async def test_app_requires_render():
    with pytest.raises(ValueError):
        await app(view=lambda m: "x")


@pytest.mark.asyncio
async def test_simple_view_with_no_model():
    surface = TextSurface()
    up = await app(view=lambda m: "Hello, World!", render=render_text, element=surface)
    assert isinstance(up, Dispatcher)
    assert surface.body == "Hello, World!"
    assert up.ctx.model == {}


@pytest.mark.asyncio
async def test_async_bootstrap_is_settled_before_app_returns():
    model = {"loaded": False}
    surface = TextSurface()

    async def bootstrap(up, event):
        await asyncio.sleep(0.05)
        model["loaded"] = True

    await app(
        model=model,
        view=lambda m: f"Loaded: {'Yes' if m['loaded'] else 'No'}",
        render=render_text,
        element=surface,
        bootstrap=bootstrap,
    )
    assert surface.body == "Loaded: Yes"
    assert surface.frames == ["Loaded: No", "Loaded: Yes"]


@pytest.mark.asyncio
async def test_bootstrap_receives_dispatch_factory():
    captured = {}

    def bootstrap(up, event):
        captured["up"] = up

    up = await app(view=lambda m: "", render=lambda v, e: None, bootstrap=bootstrap)
    assert captured["up"] is up


@pytest.mark.asyncio
async def test_registry_bootstrap_is_used_when_none_given():
    class Updates:
        def __init__(self):
            self.up = None

        def bootstrap(self, up, event=None):
            self.up = up

    updates = Updates()
    up = await app(view=lambda m: "", render=lambda v, e: None, updates=updates)
    assert updates.up is up


@pytest.mark.asyncio
async def test_customisable_logging():
    model = {"text": ""}
    log_entries = []

    def set_text(text, event):
        model["text"] = text

    def logger(entry):
        data = entry.data
        data = "up" if isinstance(data, Dispatcher) else data
        log_entries.append(f"Update name: {entry.name}, Data: {data}")

    up = await app(model=model, view=lambda m: "", render=lambda v, e: None, logger=logger)
    await up(set_text, "first")()
    await up(set_text, "second")()
    assert log_entries == [
        "Update name: bootstrap, Data: up",
        "Update name: set_text, Data: first",
        "Update name: set_text, Data: second",
    ]


@pytest.mark.asyncio
async def test_logger_true_writes_to_logging(caplog):
    caplog.set_level("INFO", logger="litup.up")
    up = await app(view=lambda m: "", render=lambda v, e: None, logger=True)

    def ping(data, event):
        pass

    await up(ping, 7)()
    messages = [r.getMessage() for r in caplog.records if r.name == "litup.up"]
    assert any("name=ping" in m and "data=7" in m for m in messages)
