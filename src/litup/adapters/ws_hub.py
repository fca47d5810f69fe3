from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import websockets

from litup.adapters.text_surface import to_text
from litup.core.events import HostEvent

log = logging.getLogger(__name__)


@dataclass
class WSBridgeConfig:
    url: str = "ws://127.0.0.1:8765"
    render_topic: str = "render"
    events_topic: str = "events"
    reconnect_delay: float = 1.0
    max_attempts: int = 0  # 0 = retry forever


@dataclass
class WSRenderBridge:
    """
    Connects an app to a pub/sub WebSocket hub.

    - render(value, element) publishes {"body": text} on the render topic
      (element, when given, names the topic)
    - bind(up) subscribes to the events topic; every message
      {"update", "data", "event", "options"} becomes one dispatch
    """
    cfg: WSBridgeConfig = field(default_factory=WSBridgeConfig)
    _ws: Any = None
    _up: Any = None
    _task_recv: Optional[asyncio.Task] = None
    _closed: bool = False
    # set when reconnecting gave up; the bridge stays closed afterwards
    error: Optional[BaseException] = None

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._closed

    async def connect(self) -> None:
        attempt = 0
        while not self._closed:
            attempt += 1
            try:
                log.info("ws connect %s", self.cfg.url)
                self._ws = await websockets.connect(self.cfg.url)
                self._task_recv = asyncio.create_task(self._recv_loop())
                if self._up is not None:
                    await self._send({"type": "sub", "topic": self.cfg.events_topic})
                return
            except OSError as e:
                if self.cfg.max_attempts and attempt >= self.cfg.max_attempts:
                    raise
                log.warning("ws connect failed: %s; retry in %.1fs", e, self.cfg.reconnect_delay)
                await asyncio.sleep(self.cfg.reconnect_delay)

    async def close(self) -> None:
        self._closed = True
        if self._task_recv:
            self._task_recv.cancel()
            await asyncio.gather(self._task_recv, return_exceptions=True)
        if self._ws:
            await self._ws.close()

    async def _send(self, msg: Dict[str, Any]) -> None:
        if not self._ws:
            raise RuntimeError("ws not connected")
        await self._ws.send(json.dumps(msg, default=str))

    async def render(self, value: Any, element: Any = None) -> None:
        topic = element or self.cfg.render_topic
        await self._send({"type": "pub", "topic": topic, "data": {"body": to_text(value)}})

    async def bind(self, up: Any) -> None:
        self._up = up
        await self._send({"type": "sub", "topic": self.cfg.events_topic})

    async def _dispatch(self, data: Dict[str, Any]) -> None:
        update = data.get("update")
        if not isinstance(update, str):
            log.warning("ws event without an update name: %r", data)
            return
        ev = data.get("event") or {}
        event = HostEvent(
            type=ev.get("type", "message"),
            target=ev.get("target"),
            detail=ev.get("detail") or {},
        )
        await self._up(update, data.get("data"), data.get("options"))(event)

    async def _recv_loop(self) -> None:
        ws = self._ws
        try:
            async for raw in ws:
                try:
                    msg = json.loads(raw)
                    if msg.get("topic") == self.cfg.events_topic and self._up is not None:
                        await self._dispatch(msg.get("data") or {})
                except Exception as e:
                    log.exception("ws dispatch err: %s", e)
        except websockets.ConnectionClosed:
            pass
        finally:
            self._ws = None
        if self._closed:
            return
        log.info("ws disconnected; will reconnect")
        try:
            await self.connect()
        except OSError as e:
            # retries exhausted: nobody awaits this task, so record the failure on the bridge
            self._closed = True
            self.error = e
            log.exception("ws reconnect to %s gave up: %s", self.cfg.url, e)
