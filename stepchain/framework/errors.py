"""
Error taxonomy for the step framework.

Every error raised by the core derives from StepchainError so test code can
catch framework failures without swallowing unrelated exceptions.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from stepchain.common.config_loader import ConfigurationError


class StepchainError(Exception):
    """Base class for framework errors."""
    pass


class ElementNotFoundError(StepchainError):
    """
    Raised when a locator resolves to zero elements.

    Attributes:
        locator: The locator (raw value or Locator) that was looked up
        prefix: Leading part of the message, e.g. "Clickable element"
        suffix: Trailing part of the message, e.g. "was not found inside element #form"
    """

    def __init__(
        self,
        locator: Any,
        prefix: str = "Element",
        suffix: str = "was not found by text|CSS|XPath",
    ):
        self.locator = locator
        self.prefix = prefix
        self.suffix = suffix
        super().__init__(f"{prefix} {_describe(locator)} {suffix}")


class AssertionFailedError(StepchainError, AssertionError):
    """Raised when a semantic check on the page fails (element visible, field value...)."""

    def __init__(self, subject: str, expectation: str, actual: Optional[Any] = None):
        self.subject = subject
        self.expectation = expectation
        self.actual = actual
        message = f"expected {subject} {expectation}"
        if actual is not None:
            message += f", got {actual!r}"
        super().__init__(message)


class UsageError(StepchainError):
    """Raised on framework misuse: nested within blocks, bad retry policies, bad DSL arguments."""
    pass


class BackendConnectionError(StepchainError):
    """Raised when the automation backend could not be started or reached."""
    pass


class TaskTimeoutError(StepchainError, TimeoutError):
    """Raised when the recorder queue does not settle within its deadline."""
    pass


def _describe(locator: Any) -> str:
    if isinstance(locator, dict):
        return json.dumps(locator)
    return str(locator)


__all__ = [
    "StepchainError",
    "ElementNotFoundError",
    "AssertionFailedError",
    "UsageError",
    "BackendConnectionError",
    "TaskTimeoutError",
    "ConfigurationError",
]
