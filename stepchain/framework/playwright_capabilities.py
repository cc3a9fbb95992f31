"""
================================================================================
Playwright Capabilities
================================================================================

Capability adapter for Playwright's async API.

Element handles are Playwright Locator objects. Frames are tracked as a stack
of FrameLocators; queries with no scope run against the innermost frame (or
the page when no frame is active).

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, List, Optional, Sequence, Union

from loguru import logger
from playwright.async_api import FrameLocator, Locator as PlaywrightLocator, Page

from .capabilities import Capabilities
from .locator import Locator


def build_selector(locator: Locator) -> str:
    """
    Playwright selector string for a typed locator.

    Examples:
        {"xpath": "//a"}       -> "xpath=//a"
        {"id": "user"}         -> "#user"
        {"name": "email"}      -> '[name="email"]'
        "~Back"                -> '[aria-label="Back"]'
        {"css": "form input"}  -> "form input"
    """
    if locator.is_xpath():
        return f"xpath={locator.value}"
    if locator.is_accessibility_id():
        value = locator.value.replace("\\", "\\\\").replace('"', '\\"')
        return f'[aria-label="{value}"]'
    if locator.is_custom():
        return f"{locator.type}={locator.value}"
    return locator.simplify()


class PlaywrightCapabilities(Capabilities):
    """
    Capabilities backed by a Playwright Page.

    Usage:
        capabilities = PlaywrightCapabilities(page)
        actions = ElementActions(capabilities)
    """

    def __init__(self, page: Page):
        self.page = page
        self._frames: List[FrameLocator] = []

    @property
    def root(self) -> Union[Page, FrameLocator]:
        """Innermost frame, or the page."""
        return self._frames[-1] if self._frames else self.page

    async def find_elements(self, scope: Optional[PlaywrightLocator], locator: Locator) -> List[PlaywrightLocator]:
        container = scope if scope is not None else self.root
        selector = build_selector(locator)
        elements = await container.locator(selector).all()
        logger.debug(f"Query {selector!r} matched {len(elements)} element(s)")
        return elements

    async def click(self, handle: PlaywrightLocator) -> None:
        await handle.click()

    async def double_click(self, handle: PlaywrightLocator) -> None:
        await handle.dblclick()

    async def fill(self, handle: PlaywrightLocator, text: str) -> None:
        await handle.fill(text)

    async def get_attribute(self, handle: PlaywrightLocator, name: str) -> Optional[str]:
        return await handle.get_attribute(name)

    async def get_text(self, handle: PlaywrightLocator) -> str:
        return await handle.inner_text()

    async def get_value(self, handle: PlaywrightLocator) -> Optional[str]:
        return await handle.input_value()

    async def is_displayed(self, handle: PlaywrightLocator) -> bool:
        return await handle.is_visible()

    async def is_checked(self, handle: PlaywrightLocator) -> bool:
        return await handle.is_checked()

    async def select_option(self, handle: PlaywrightLocator, values: Sequence[str]) -> None:
        await handle.select_option(list(values))

    async def switch_frame(self, handle: Optional[PlaywrightLocator]) -> None:
        if handle is None:
            self._frames.clear()
            return
        self._frames.append(handle.content_frame)

    async def switch_to_parent_frame(self) -> None:
        if self._frames:
            self._frames.pop()


__all__ = ["PlaywrightCapabilities", "build_selector"]
