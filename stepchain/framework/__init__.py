"""
================================================================================
stepchain Framework
================================================================================

Semantic locators, scoping and sequential step execution.

Components:
    - locator: Locator model, XPath helpers and locator DSL
    - resolver: Fuzzy locator cascades over the capability interface
    - context_stack: within / frame scoping
    - recorder: FIFO step queue with sessions, retries and timeouts
    - element_actions: Helper steps (click, fill_field, see_element, ...)
    - actor: Facade queuing helper steps on the recorder
    - playwright_capabilities / browser_manager: Playwright backend

Author: Automation Team
License: MIT
================================================================================
"""

from .errors import (
    AssertionFailedError,
    BackendConnectionError,
    ConfigurationError,
    ElementNotFoundError,
    StepchainError,
    TaskTimeoutError,
    UsageError,
)
from .locator import Locator, combine, xpath_literal
from .capabilities import Capabilities
from .resolver import Role, SemanticResolver, resolve
from .context_stack import ContextStack, ContextState
from .recorder import Recorder, RecorderEvent, RetryPolicy
from .element_actions import ElementActions
from .actor import Actor

__all__ = [
    "Actor",
    "AssertionFailedError",
    "BackendConnectionError",
    "Capabilities",
    "ConfigurationError",
    "ContextStack",
    "ContextState",
    "ElementActions",
    "ElementNotFoundError",
    "Locator",
    "Recorder",
    "RecorderEvent",
    "RetryPolicy",
    "Role",
    "SemanticResolver",
    "StepchainError",
    "TaskTimeoutError",
    "UsageError",
    "combine",
    "resolve",
    "xpath_literal",
]
