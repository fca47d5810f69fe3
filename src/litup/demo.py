from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from litup.adapters.text_surface import TextSurface, render_text
from litup.app import app
from litup.core import log
from litup.core.contracts import Chain
from litup.core.events import HostEvent

l = log.get("litup.demo")


def make_model() -> Dict[str, Any]:
    return {
        "input_text": "",
        "remote_data": "",
        "options": [{"label": "Mars"}, {"label": "Jupiter"}, {"label": "Venus"}],
        "selected": None,
    }


def view(model: Dict[str, Any]) -> List[str]:
    selected = model["selected"]
    options = " ".join(
        f"[{o['label']}]" if o is selected else o["label"] for o in model["options"]
    )
    return [
        f"Input: {model['input_text'] or 'No input value entered'}\n",
        f"Remote: {model['remote_data'] or 'No data fetched yet'}\n",
        f"Options: {options}\n",
        f"Selected: {selected['label'] if selected else 'No selection made'}\n",
    ]


class DemoUpdates:
    """Registry for the demo app; its methods are addressed by name, e.g. up("fetch")."""

    def __init__(self, model: Dict[str, Any], delay: float = 0.1, source: Optional[Dict[str, Any]] = None):
        self.model = model
        self.delay = delay
        self.source = source or {"value": "Hello from the remote side"}
        self.up = None

    def bootstrap(self, up, event=None):
        l.info("starting litup demo")
        self.up = up

    def mirror(self, data, event):
        """Copy the value of the event's input target into the model."""
        self.model["input_text"] = event.target["value"]

    async def fetch(self, data=None, event=None):
        self.model["remote_data"] = "Fetching remote data now..."
        return "continue_fetch"

    async def continue_fetch(self, data=None, event=None):
        await asyncio.sleep(self.delay)
        self.model["remote_data"] = self.source["value"]

    def select(self, option, event=None):
        self.model["selected"] = option

    def select_label(self, label, event=None):
        for option in self.model["options"]:
            if option["label"] == label:
                return Chain("select", option)
        return None


async def run_demo(delay: float = 0.1, logger: Any = True) -> TextSurface:
    """Drive every demo interaction once, headless, and return the surface."""
    model = make_model()
    surface = TextSurface()
    updates = DemoUpdates(model, delay=delay)
    up = await app(model=model, view=view, render=render_text, element=surface, updates=updates, logger=logger)

    await up("mirror")(HostEvent(type="input", target={"value": "typed text"}))
    await up("fetch")(HostEvent(type="click"))
    await up("select_label", "Jupiter")()
    return surface
