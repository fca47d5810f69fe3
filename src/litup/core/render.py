from __future__ import annotations

import inspect
from typing import Any, Callable

from litup.core import log
from litup.core.metrics import Timer, inc_counter

l = log.get("litup.render")

View = Callable[[Any], Any]
Render = Callable[[Any, Any], Any]


class RenderScheduler:
    """Paints view(model) into element. Stateless: every call paints the current model in full."""

    def __init__(self, view: View, render: Render, model: Any, element: Any = None):
        self.view = view
        self.render = render
        self.model = model
        self.element = element

    async def paint(self) -> None:
        try:
            with Timer("render_ms"):
                result = self.render(self.view(self.model), self.element)
                if inspect.isawaitable(result):
                    await result
        except Exception:
            inc_counter("render_errors_total")
            l.error("render failed model=%s", type(self.model).__name__, exc_info=True)
            raise
        inc_counter("render_total")
        l.debug("painted %s", type(self.model).__name__)
