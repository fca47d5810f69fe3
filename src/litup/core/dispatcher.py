from __future__ import annotations

import asyncio
import inspect
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from litup.core import log
from litup.core.contracts import (
    ContinueWith,
    Fork,
    Frame,
    LogEntry,
    Outcome,
    Pending,
    Terminal,
    UpOptions,
    Update,
    classify_result,
    update_name,
)
from litup.core.events import apply_event_policy
from litup.core.log import LoggerHook, make_logger
from litup.core.metrics import Timer, add_gauge, inc_counter
from litup.core.render import RenderScheduler
from litup.core.resolver import resolve_update

l = log.get("litup.dispatcher")

Handler = Callable[..., Awaitable[None]]


@dataclass
class ApplicationContext:
    """Everything one application instance shares; closed over by its Dispatcher."""
    model: Any
    renderer: RenderScheduler
    registry: Any = None
    logger: LoggerHook = field(default_factory=lambda: make_logger(False))
    # fan-out failure policy: cancel still-pending siblings when one branch fails
    cancel_on_error: bool = True


async def join(aws: Iterable[Awaitable[Any]], *, cancel_on_error: bool = True) -> List[Any]:
    """
    Run awaitables concurrently and wait for all of them.

    On failure the first exception is re-raised unchanged, but only after
    every task has finished: pending siblings are cancelled first when
    cancel_on_error, otherwise they are allowed to run to completion.
    """
    tasks = [asyncio.ensure_future(a) for a in aws]
    if not tasks:
        return []
    if cancel_on_error:
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for r in results:
        if isinstance(r, BaseException):
            raise r
    return results


def _as_options(options: Any, do_default: bool, propagate: bool) -> UpOptions:
    if options is None:
        return UpOptions(do_default=do_default, propagate=propagate)
    if isinstance(options, UpOptions):
        return options
    if isinstance(options, Mapping):
        return UpOptions(
            do_default=bool(options.get("do_default", do_default)),
            propagate=bool(options.get("propagate", propagate)),
        )
    raise TypeError(f"options must be UpOptions or a mapping, got {type(options).__name__}")


class Dispatcher:
    """
    The dispatch factory (`up`).

    `up(update, data)` returns an async event handler; awaiting
    `handler(event)` runs the update, renders, and follows whatever the
    update returned until every branch of the chain has terminated.
    """

    def __init__(self, ctx: ApplicationContext):
        self.ctx = ctx

    def __call__(
        self,
        update: Update,
        data: Any = None,
        options: Optional[UpOptions] = None,
        *,
        do_default: bool = False,
        propagate: bool = False,
    ) -> Handler:
        opts = _as_options(options, do_default, propagate)

        async def handler(event: Any = None) -> None:
            apply_event_policy(event, opts)
            await self.run(Frame(update, data, event))

        handler.__name__ = f"up[{update_name(update)}]"
        return handler

    async def run(self, frame: Optional[Frame]) -> None:
        """Run a frame and its single-update continuations; forks are joined inside."""
        add_gauge("frames_inflight", 1)
        try:
            while frame is not None:
                frame = await self._step(frame)
        finally:
            add_gauge("frames_inflight", -1)

    async def _step(self, frame: Frame) -> Optional[Frame]:
        ctx = self.ctx
        lookup = resolve_update(ctx.registry, frame.update)
        if not lookup.found:
            inc_counter("up_misses_total", path=str(frame.update))
            l.debug("no update for %r (%s); chain ends", frame.update, lookup.status.value)
            return None

        fn = lookup.value
        name = update_name(frame.update)
        entry = LogEntry(
            name=name,
            data=frame.data,
            event=frame.event,
            model=ctx.model,
            is_chained=frame.is_chained,
            update=fn,
        )
        ctx.logger(entry)
        inc_counter("up_frames_total", update=name)
        if frame.is_chained:
            inc_counter("up_chained_total")

        try:
            with Timer("update_ms", update=name):
                result = fn(frame.data, frame.event)
        except Exception:
            self._fault(name, frame)
            raise

        if inspect.isawaitable(result):
            # start the update first so mutations made before its first await are painted
            pending = asyncio.ensure_future(self._settle(result, name, frame))
            _, result = await join(
                [ctx.renderer.paint(), pending], cancel_on_error=ctx.cancel_on_error
            )
            ctx.logger(entry.refreshed())

        await ctx.renderer.paint()
        return await self._next(classify_result(result), frame)

    async def _settle(self, awaitable: Awaitable[Any], name: str, frame: Frame) -> Any:
        try:
            with Timer("update_ms", update=name):
                return await awaitable
        except Exception:
            self._fault(name, frame)
            raise

    def _fault(self, name: str, frame: Frame) -> None:
        inc_counter("up_errors_total", update=name)
        l.error("update %s failed data=%r event=%r", name, frame.data, frame.event, exc_info=True)

    async def _next(self, outcome: Outcome, parent: Frame) -> Optional[Frame]:
        while isinstance(outcome, Pending):
            outcome = classify_result(await outcome.awaitable)
        if isinstance(outcome, Terminal):
            return None
        if isinstance(outcome, Fork):
            await join(
                [self._branch(b, parent) for b in outcome.branches],
                cancel_on_error=self.ctx.cancel_on_error,
            )
            return None
        if isinstance(outcome, ContinueWith):
            return Frame(
                outcome.update,
                outcome.overrides.get("data", parent.data),
                outcome.overrides.get("event", parent.event),
                is_chained=True,
            )
        return Frame(outcome.update, parent.data, parent.event, is_chained=True)

    async def _branch(self, outcome: Outcome, parent: Frame) -> None:
        await self.run(await self._next(outcome, parent))
