"""
================================================================================
Semantic Resolver
================================================================================

Turns human-readable locators into element handles.

A fuzzy locator ("Submit", "Email") is resolved by trying a fixed, ordered
list of XPath strategies for the requested role and stopping at the first
strategy that matches at least one element. Typed locators (css, xpath, id,
name, accessibility, frame) are queried directly.

Cascades:
    clickable: narrow -> wide -> self -> verbatim CSS/XPath
    checkable: label text -> name -> verbatim
    field:     label equals -> label contains -> name -> verbatim
    element:   verbatim

A verbatim selector the backend can't parse counts as no match.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Union

from loguru import logger

from .capabilities import Capabilities
from .errors import ElementNotFoundError
from .locator import Locator, xpath_literal


class Role(str, Enum):
    """What kind of element a locator is expected to describe."""
    ELEMENT = "element"
    CLICKABLE = "clickable"
    CHECKABLE = "checkable"
    FIELD = "field"


NOT_FOUND_PREFIX = {
    Role.ELEMENT: "Element",
    Role.CLICKABLE: "Clickable element",
    Role.CHECKABLE: "Checkable",
    Role.FIELD: "Field",
}


@dataclass(frozen=True)
class Strategy:
    """
    One step of a cascade.

    Attributes:
        name: Strategy name used in logs ("narrow", "label_equals", ...)
        locator: Typed locator sent to the backend
        optional: Backend errors skip the step instead of failing the lookup
    """
    name: str
    locator: Locator
    optional: bool = False


def build_strategies(role: Union[Role, str], locator: Locator) -> List[Strategy]:
    """
    Ordered cascade for a fuzzy locator.

    Kept free of I/O so the order can be inspected without a backend.
    """
    role = Role(role)
    literal = xpath_literal(locator.value)
    # fuzzy text is rarely a valid selector; a query error there means no match
    verbatim = Strategy("verbatim", Locator(locator.value, "css"), optional=True)

    def xpath(name: str, expression: str, optional: bool = False) -> Strategy:
        return Strategy(name, Locator({"xpath": expression}), optional)

    if role is Role.CLICKABLE:
        return [
            xpath("narrow", Locator.clickable.narrow(literal)),
            xpath("wide", Locator.clickable.wide(literal)),
            xpath("self", Locator.clickable.self_(literal), optional=True),
            verbatim,
        ]
    if role is Role.CHECKABLE:
        return [
            xpath("by_text", Locator.checkable.by_text(literal)),
            xpath("by_name", Locator.checkable.by_name(literal)),
            verbatim,
        ]
    if role is Role.FIELD:
        return [
            xpath("label_equals", Locator.field.label_equals(literal)),
            xpath("label_contains", Locator.field.label_contains(literal)),
            xpath("by_name", Locator.field.by_name(literal)),
            verbatim,
        ]
    return [verbatim]


class SemanticResolver:
    """
    Backend-agnostic locator resolution.

    Usage:
        >>> resolver = SemanticResolver(capabilities)
        >>> buttons = await resolver.find_clickable("Sign in")
        >>> field = (await resolver.resolve(Role.FIELD, "Email"))[0]
    """

    def __init__(self, capabilities: Capabilities):
        self.capabilities = capabilities

    async def find(
        self,
        role: Union[Role, str],
        locator: Any,
        scope: Optional[Any] = None,
    ) -> List[Any]:
        """
        Run the cascade for `role` and return the first non-empty result.

        Returns an empty list when nothing matches; use resolve() to raise.
        """
        locator = locator if isinstance(locator, Locator) else Locator(locator)

        if not locator.is_fuzzy():
            return await self.capabilities.find_elements(scope, locator)

        for strategy in build_strategies(role, locator):
            try:
                elements = await self.capabilities.find_elements(scope, strategy.locator)
            except Exception as e:
                if not strategy.optional:
                    raise
                logger.debug(f"Strategy '{strategy.name}' skipped for {locator}: {e}")
                continue

            if elements:
                if strategy.name == "verbatim" and Role(role) is not Role.ELEMENT:
                    logger.debug(f"{locator} matched only as a raw CSS/XPath selector")
                else:
                    logger.debug(f"{locator} matched by '{strategy.name}' ({len(elements)} element(s))")
                return elements

        return []

    async def resolve(
        self,
        role: Union[Role, str],
        locator: Any,
        scope: Optional[Any] = None,
        prefix: Optional[str] = None,
        suffix: Optional[str] = None,
    ) -> List[Any]:
        """
        Like find(), but raises ElementNotFoundError when nothing matches.

        Args:
            role: Cascade to use
            locator: Raw locator or Locator
            scope: Element handle to search within (None for the document)
            prefix: Message prefix, defaults to the role's noun
            suffix: Message suffix, e.g. "was not found inside element #form"
        """
        elements = await self.find(role, locator, scope)
        if not elements:
            kwargs = {"prefix": prefix or NOT_FOUND_PREFIX[Role(role)]}
            if suffix:
                kwargs["suffix"] = suffix
            raise ElementNotFoundError(locator, **kwargs)
        return elements

    async def find_elements(self, locator: Any, scope: Optional[Any] = None) -> List[Any]:
        return await self.find(Role.ELEMENT, locator, scope)

    async def find_clickable(self, locator: Any, scope: Optional[Any] = None) -> List[Any]:
        return await self.find(Role.CLICKABLE, locator, scope)

    async def find_checkable(self, locator: Any, scope: Optional[Any] = None) -> List[Any]:
        return await self.find(Role.CHECKABLE, locator, scope)

    async def find_fields(self, locator: Any, scope: Optional[Any] = None) -> List[Any]:
        return await self.find(Role.FIELD, locator, scope)


async def resolve(
    role: Union[Role, str],
    locator: Any,
    capabilities: Capabilities,
    scope: Optional[Any] = None,
) -> List[Any]:
    """Resolve `locator` for `role` against `capabilities`, raising ElementNotFoundError on no match."""
    return await SemanticResolver(capabilities).resolve(role, locator, scope)


__all__ = [
    "Role",
    "Strategy",
    "SemanticResolver",
    "build_strategies",
    "resolve",
]
