from __future__ import annotations

from typing import Any, Optional

from litup.core import log
from litup.core.dispatcher import ApplicationContext, Dispatcher
from litup.core.log import make_logger
from litup.core.render import Render, RenderScheduler, View
from litup.core.resolver import resolve_update

l = log.get("litup.app")

NO_VIEW = "lit-up: No view specified"


def _no_view(model: Any) -> str:
    return NO_VIEW


def bootstrap(data: Any = None, event: Any = None) -> None:
    """Default bootstrap: nothing to initialise."""


DEFAULT_BOOTSTRAP = bootstrap


def pick_bootstrap(explicit: Any, updates: Any) -> Any:
    """Explicit bootstrap, else the registry's "bootstrap" entry, else the no-op default."""
    if explicit is not None:
        return explicit
    if resolve_update(updates, "bootstrap").found:
        return "bootstrap"
    return DEFAULT_BOOTSTRAP


async def app(
    *,
    model: Any = None,
    view: Optional[View] = None,
    render: Optional[Render] = None,
    element: Any = None,
    updates: Any = None,
    bootstrap: Any = None,
    logger: Any = False,
    cancel_on_error: bool = True,
) -> Dispatcher:
    """
    Start an application and return its dispatch factory (`up`).

    The bootstrap update is dispatched once with `up` as its data and
    awaited before `up` is returned, so an async bootstrap has settled
    (and been painted) by the time the caller gets control back.
    """
    if render is None:
        raise ValueError("app() needs a render function")

    model = {} if model is None else model
    ctx = ApplicationContext(
        model=model,
        renderer=RenderScheduler(view or _no_view, render, model, element),
        registry=updates,
        logger=make_logger(logger),
        cancel_on_error=cancel_on_error,
    )
    up = Dispatcher(ctx)

    l.info("app start model=%s registry=%s", type(model).__name__, type(updates).__name__)
    await up(pick_bootstrap(bootstrap, updates), up)()
    return up
