from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, List


@dataclass
class TextSurface:
    """Headless render target: keeps the latest painted text and every frame painted so far."""
    body: str = ""
    frames: List[str] = field(default_factory=list)

    def paint(self, text: str) -> None:
        self.body = text
        self.frames.append(text)


def to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "".join(to_text(v) for v in value)
    return str(value)


def render_text(value: Any, surface: TextSurface) -> None:
    surface.paint(to_text(value))


async def render_text_async(value: Any, surface: TextSurface) -> None:
    # yield once so the paint lands after a suspension point, like a real async renderer
    await asyncio.sleep(0)
    surface.paint(to_text(value))
