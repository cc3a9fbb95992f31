"""
================================================================================
Context Stack
================================================================================

Search scope for element queries: the whole document, a single element
("within" block) or a chain of nested frames.

State machine:
    ROOT    --begin(element)-->  SCOPED (element handle)
    ROOT    --begin(frames)--->  SCOPED (frame chain)
    SCOPED  --end()----------->  ROOT
    SCOPED  --begin(...)------>  UsageError, scope unchanged
    ROOT    --end()----------->  ROOT (no-op)

Each ElementActions instance owns its own ContextStack, so independent
sessions never share scope.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, List, Optional, Tuple

from loguru import logger

from .errors import ElementNotFoundError, UsageError
from .locator import Locator
from .resolver import Role, SemanticResolver


class ContextState(str, Enum):
    ROOT = "root"
    SCOPED = "scoped"


class ContextStack:
    """
    Tracks the active search root for a single browser session.

    Usage:
        >>> stack = ContextStack(resolver)
        >>> await stack.begin("#login-form")
        >>> await resolver.find_fields("Email", scope=stack.scope)
        >>> await stack.end()
    """

    def __init__(self, resolver: SemanticResolver):
        self.resolver = resolver
        self._element: Optional[Any] = None
        self._element_locator: Optional[Locator] = None
        self._frames: List[Locator] = []

    @property
    def capabilities(self):
        return self.resolver.capabilities

    @property
    def state(self) -> ContextState:
        if self._element is not None or self._frames:
            return ContextState.SCOPED
        return ContextState.ROOT

    @property
    def scope(self) -> Optional[Any]:
        """Element handle all queries are relative to, None for the document/frame root."""
        return self._element

    @property
    def frames(self) -> Tuple[Locator, ...]:
        return tuple(self._frames)

    @property
    def locator(self) -> Optional[Locator]:
        """Locator of the current scope, for messages."""
        if self._element_locator is not None:
            return self._element_locator
        if self._frames:
            return self._frames[-1]
        return None

    async def begin(self, locator: Any) -> None:
        """
        Scope subsequent queries to an element or a frame chain.

        Raises:
            UsageError: Already scoped
            ElementNotFoundError: Element or frame does not exist
        """
        if self.state is ContextState.SCOPED:
            raise UsageError(
                f"Can't start within block inside another within block "
                f"(currently inside {self.locator})"
            )

        chain = frame_chain(locator)
        if chain:
            await self.capabilities.switch_frame(None)
            try:
                for frame in chain:
                    await self._enter_frame(frame)
            except Exception:
                self._frames.clear()
                await self.capabilities.switch_frame(None)
                raise
            logger.debug(f"Within frames: {' > '.join(str(f) for f in chain)}")
            return

        element_locator = Locator(locator, "css")
        elements = await self.resolver.resolve(Role.ELEMENT, element_locator)
        self._element = elements[0]
        self._element_locator = element_locator
        logger.debug(f"Within element: {element_locator}")

    async def end(self) -> None:
        """Return to the document root, leaving frames innermost first."""
        if self.state is ContextState.ROOT:
            return

        if self._element is not None:
            logger.debug(f"Leaving element scope: {self._element_locator}")
            self._element = None
            self._element_locator = None
            return

        for frame in reversed(self._frames):
            logger.debug(f"Leaving frame: {frame}")
            await self.capabilities.switch_to_parent_frame()
        self._frames.clear()

    async def switch_to(self, locator: Any = None) -> None:
        """
        Enter a (nested) frame, or return to the top document with None.

        Successive calls nest: switch_to("#outer") then switch_to("#inner").
        """
        if locator is None:
            if self._frames:
                await self.capabilities.switch_frame(None)
            self.clear()
            logger.debug("Switched to top document")
            return

        if self._element is not None:
            raise UsageError(
                f"Can't switch frames inside within block {self._element_locator}; end it first"
            )

        chain = frame_chain(locator) or [Locator({"frame": Locator(locator, "css").simplify()})]
        for frame in chain:
            await self._enter_frame(frame)

    def clear(self) -> None:
        """Forget the scope without talking to the backend (teardown)."""
        self._element = None
        self._element_locator = None
        self._frames.clear()

    async def _enter_frame(self, frame: Locator) -> None:
        frame_query = Locator(frame.value, "css")
        elements = await self.capabilities.find_elements(None, frame_query)
        if not elements:
            raise ElementNotFoundError(frame, prefix="Frame")
        await self.capabilities.switch_frame(elements[0])
        self._frames.append(frame)
        logger.debug(f"Switched into frame: {frame}")


def frame_chain(locator: Any) -> Optional[List[Locator]]:
    """
    Frame locators described by `locator`, or None when it is not a frame.

    Accepts {"frame": "#f"}, {"frame": ["#outer", "#inner"]} and lists whose
    items are frame locators or plain frame selectors.
    """
    if isinstance(locator, (list, tuple)):
        return [_as_frame(item) for item in locator]
    if isinstance(locator, Mapping) and isinstance(locator.get("frame"), (list, tuple)):
        return [_as_frame(item) for item in locator["frame"]]
    parsed = locator if isinstance(locator, Locator) else Locator(locator)
    if parsed.is_frame():
        return [parsed]
    return None


def _as_frame(item: Any) -> Locator:
    parsed = item if isinstance(item, Locator) else Locator(item, "css")
    if parsed.is_frame():
        return parsed
    return Locator({"frame": parsed.simplify()})


__all__ = [
    "ContextState",
    "ContextStack",
    "frame_chain",
]
