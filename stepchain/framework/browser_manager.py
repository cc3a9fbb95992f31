"""
================================================================================
Browser Manager
================================================================================

Browser lifecycle management for step execution.

Features:
    - One browser per manager, isolated contexts per session
    - Local launch or remote connection (ws endpoint)
    - Settings from config (browser.type, browser.headless,
      browser.default_timeout)
    - Ready-to-use ElementActions for a new page

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from loguru import logger
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    BrowserType,
    Error as PlaywrightError,
    Page,
    Playwright,
)

from stepchain.common import get_config

from .element_actions import ElementActions
from .errors import BackendConnectionError, UsageError
from .playwright_capabilities import PlaywrightCapabilities


SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")


class BrowserManager:
    """
    Manages the browser used by one test run.

    Usage:
        async with BrowserManager() as manager:
            page, actions = await manager.new_actions()
            await page.goto("https://example.com")

        # Remote browser
        async with BrowserManager(ws_endpoint="ws://grid:3000/") as manager:
            page = await manager.new_page()
    """

    # Default browser launch options
    DEFAULT_LAUNCH_OPTIONS: Dict[str, Any] = {
        "headless": True,
        "args": [
            "--ignore-certificate-errors",
        ],
    }

    # Default context options
    DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
        "viewport": {"width": 1280, "height": 720},
        "ignore_https_errors": True,
    }

    def __init__(
        self,
        headless: Optional[bool] = None,
        browser_type: Optional[str] = None,
        ws_endpoint: Optional[str] = None,
        default_timeout: Optional[float] = None,
    ):
        """
        Initialize browser manager.

        Args:
            headless: Run browser in headless mode (default: browser.headless)
            browser_type: 'chromium', 'firefox' or 'webkit' (default: browser.type)
            ws_endpoint: Connect to a running browser instead of launching one
            default_timeout: Per-action timeout in ms (default: browser.default_timeout)
        """
        self.headless = get_config("browser.headless", True) if headless is None else headless
        self.browser_type = browser_type or get_config("browser.type", "chromium")
        self.ws_endpoint = ws_endpoint
        self.default_timeout = default_timeout or get_config("browser.default_timeout", 30000)

        if self.browser_type not in SUPPORTED_BROWSERS:
            raise UsageError(
                f"Unsupported browser type {self.browser_type!r}, "
                f"expected one of {', '.join(SUPPORTED_BROWSERS)}"
            )

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: List[BrowserContext] = []

    async def __aenter__(self) -> "BrowserManager":
        """Async context manager entry - start browser."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit - close browser."""
        await self.close()

    async def start(self) -> None:
        """
        Start Playwright and launch (or connect to) the browser.

        Raises:
            BackendConnectionError: Browser can't be launched or reached
        """
        self._playwright = await async_playwright().start()
        launcher: BrowserType = getattr(self._playwright, self.browser_type)

        try:
            if self.ws_endpoint:
                self._browser = await launcher.connect(self.ws_endpoint)
            else:
                launch_options = {**self.DEFAULT_LAUNCH_OPTIONS, "headless": self.headless}
                self._browser = await launcher.launch(**launch_options)
        except PlaywrightError as e:
            await self._playwright.stop()
            self._playwright = None
            if self.ws_endpoint:
                raise BackendConnectionError(
                    f"Could not connect to {self.browser_type} at {self.ws_endpoint}: {e.message}"
                ) from e
            raise BackendConnectionError(
                f"Could not launch {self.browser_type}: {e.message}. "
                f"Is it installed? Try `playwright install {self.browser_type}`"
            ) from e

        logger.debug(
            f"Browser started: {self.browser_type} "
            f"(headless={self.headless}, remote={bool(self.ws_endpoint)})"
        )

    async def close(self) -> None:
        """Close all contexts and browser."""
        for context in self._contexts:
            try:
                await context.close()
            except PlaywrightError as e:
                logger.debug(f"Context already closed: {e.message}")
        self._contexts.clear()

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.debug("Browser closed")

    async def new_context(self, **options: Any) -> BrowserContext:
        """
        Create new browser context.

        Each context is isolated - separate cookies, localStorage, etc.
        """
        if not self._browser:
            raise UsageError("Browser not started. Call start() first.")

        context = await self._browser.new_context(**{**self.DEFAULT_CONTEXT_OPTIONS, **options})
        context.set_default_timeout(self.default_timeout)
        self._contexts.append(context)
        return context

    async def new_page(self, context: Optional[BrowserContext] = None, **context_options: Any) -> Page:
        """Create new page in a new or existing context."""
        if context is None:
            context = await self.new_context(**context_options)
        return await context.new_page()

    async def new_actions(self, **context_options: Any) -> Tuple[Page, ElementActions]:
        """Fresh page and the ElementActions bound to it."""
        page = await self.new_page(**context_options)
        return page, ElementActions(capabilities(page))

    @property
    def browser(self) -> Optional[Browser]:
        """Get browser instance."""
        return self._browser


def capabilities(page: Page) -> PlaywrightCapabilities:
    """Capability adapter for an existing Playwright page."""
    return PlaywrightCapabilities(page)


__all__ = [
    "BrowserManager",
    "SUPPORTED_BROWSERS",
    "capabilities",
]
