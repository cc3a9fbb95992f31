"""
================================================================================
E2E Pytest Configuration
================================================================================

Fixtures that drive a real browser through PlaywrightCapabilities. Tests are
skipped when no browser can be launched (run `playwright install chromium`).

================================================================================
"""

from typing import AsyncGenerator, Tuple

import pytest
from playwright.async_api import Page

from stepchain.framework import BackendConnectionError, ElementActions
from stepchain.framework.browser_manager import BrowserManager


@pytest.fixture
async def browser_manager() -> AsyncGenerator[BrowserManager, None]:
    manager = BrowserManager(headless=True)
    try:
        await manager.start()
    except BackendConnectionError as e:
        pytest.skip(str(e))
    yield manager
    await manager.close()


@pytest.fixture
async def page_actions(browser_manager: BrowserManager) -> Tuple[Page, ElementActions]:
    """Blank page plus the ElementActions bound to it."""
    return await browser_manager.new_actions()
