"""
Capability interface consumed by the resolver, context stack and element actions.

A backend adapter implements these primitives for one automation engine. All
queries take an explicit `scope` (an element handle, or None for the current
document/frame) instead of relying on hidden "within" state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from .locator import Locator


class Capabilities(ABC):
    """
    Element-query and interaction primitives of one browser backend.

    Element handles are opaque to the core: whatever find_elements returns is
    passed back unchanged to the other primitives.
    """

    @abstractmethod
    async def find_elements(self, scope: Optional[Any], locator: Locator) -> List[Any]:
        """Return all elements matching a typed locator inside `scope`."""

    @abstractmethod
    async def click(self, handle: Any) -> None:
        """Click an element."""

    @abstractmethod
    async def fill(self, handle: Any, text: str) -> None:
        """Replace the value of an input-like element."""

    @abstractmethod
    async def get_attribute(self, handle: Any, name: str) -> Optional[str]:
        """Read an attribute, None when absent."""

    @abstractmethod
    async def is_displayed(self, handle: Any) -> bool:
        """Whether the element is visible."""

    @abstractmethod
    async def switch_frame(self, handle: Optional[Any]) -> None:
        """Enter the frame of `handle`; None returns to the top document."""

    async def switch_to_parent_frame(self) -> None:
        """Leave the innermost frame. Backends without frame nesting go to the top."""
        await self.switch_frame(None)

    async def double_click(self, handle: Any) -> None:
        await self.click(handle)
        await self.click(handle)

    @abstractmethod
    async def get_text(self, handle: Any) -> str:
        """Visible text of an element."""

    async def get_value(self, handle: Any) -> Optional[str]:
        return await self.get_attribute(handle, "value")

    async def is_checked(self, handle: Any) -> bool:
        return (await self.get_attribute(handle, "checked")) is not None

    @abstractmethod
    async def select_option(self, handle: Any, values: Sequence[str]) -> None:
        """Select the options with the given values in a <select>."""


__all__ = ["Capabilities"]
