"""
================================================================================
Actor
================================================================================

Test-facing facade: every helper step called on the actor is queued on the
recorder instead of running immediately, so a scenario reads as a plain
sequence of steps and still executes strictly in order.

    I = Actor(actions, recorder)
    I.fill_field("Email", "demo@example.com")
    with I.within("#login-form"):
        I.click("Sign in")
    await I.done()

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import inspect
import json
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from loguru import logger

from stepchain.common import get_config

from .element_actions import ElementActions
from .locator import Locator
from .recorder import Recorder


class Actor:
    """Queues ElementActions coroutines on a Recorder."""

    def __init__(self, actions: ElementActions, recorder: Recorder):
        self.actions = actions
        self.recorder = recorder

    def __getattr__(self, name: str) -> Callable[..., Any]:
        if name.startswith("_"):
            raise AttributeError(name)
        method = getattr(self.actions, name, None)
        if method is None or not inspect.iscoroutinefunction(method):
            raise AttributeError(f"{type(self.actions).__name__} has no step {name!r}")

        def step(*args: Any, **kwargs: Any):
            return self.recorder.add(step_title(name, args, kwargs), lambda: method(*args, **kwargs))

        step.__name__ = name
        step.__doc__ = method.__doc__
        return step

    @contextmanager
    def within(self, locator: Any) -> Iterator["Actor"]:
        """
        Run the steps of the block inside an element or frame chain.

        The block is queued as one recorder session: enter scope, the
        block's steps, leave scope.
        """
        self.recorder.session.start("within")
        self.recorder.add(f"within {_quote(locator)}", lambda: self.actions.within_begin(locator))
        try:
            yield self
        finally:
            self.recorder.add("finish within block", self.actions.within_end, force=True)
            self.recorder.session.restore("within")

    async def done(self, timeout: Optional[float] = None) -> Any:
        """
        Wait until every queued step has settled.

        Args:
            timeout: Seconds to wait, defaults to recorder.step_timeout;
                on expiry pending steps are dropped and TaskTimeoutError raised
        """
        if timeout is None:
            timeout = get_config("recorder.step_timeout")
        return await self.recorder.wait(timeout)

    def say(self, message: str) -> Optional[Any]:
        return self.recorder.add(f"say {message}", lambda: logger.info(message))


def step_title(name: str, args: tuple = (), kwargs: Optional[dict] = None) -> str:
    """Human-readable step name: step_title("fill_field", ("Email", "x")) -> 'I fill field "Email", "x"'."""
    parts = [_quote(arg) for arg in args]
    parts += [f"{key}={_quote(value)}" for key, value in (kwargs or {}).items()]
    title = f"I {name.replace('_', ' ')}"
    return f"{title} {', '.join(parts)}" if parts else title


def _quote(value: Any) -> str:
    if isinstance(value, Locator):
        return f'"{value.stringify()}"'
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, dict):
        return json.dumps(value, sort_keys=True)
    return repr(value)


__all__ = ["Actor", "step_title"]
