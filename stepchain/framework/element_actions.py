# ================================================================================
# Element Actions Module
# ================================================================================
#
# Backend-agnostic helper steps built on the semantic resolver and the context
# stack. Every method resolves its locator inside the current scope (document,
# within element or frame) and then talks to the backend through the
# capability interface.
#
# Key Features:
#   - Fuzzy locators for clicks, fields and checkboxes
#   - Optional `context` locator to search inside one element
#   - within / frame scoping
#   - Allure step integration
#
# Example:
#   actions = ElementActions(PlaywrightCapabilities(page))
#   await actions.fill_field("Email", "demo@example.com")
#   await actions.click("Sign in")
#
# ================================================================================

from typing import Any, List, Optional, Sequence, Tuple, Union

import allure
from loguru import logger

from .capabilities import Capabilities
from .context_stack import ContextStack
from .errors import AssertionFailedError, ElementNotFoundError
from .locator import Locator
from .resolver import Role, SemanticResolver


class ElementActions:
    """
    Helper steps for one browser session.

    Owns the session's resolver and context stack; create one instance per
    page/session so scopes never leak between sessions.

    Example:
        actions = ElementActions(capabilities)
        await actions.within_begin("#login-form")
        await actions.fill_field("Username", "demo")
        await actions.within_end()
    """

    def __init__(self, capabilities: Capabilities):
        """
        Initialize ElementActions with a backend.

        Args:
            capabilities: Backend adapter implementing the capability interface
        """
        self.capabilities = capabilities
        self.resolver = SemanticResolver(capabilities)
        self.context = ContextStack(self.resolver)

    # =========================================================================
    # Interactions
    # =========================================================================

    async def click(self, locator: Any, context: Any = None) -> None:
        """
        Click a link, button or any element described by `locator`.

        Args:
            locator: Fuzzy text ("Sign in") or typed locator
            context: Optional locator of an element to search inside
        """
        with allure.step(f"Click: {_text(locator)}"):
            element = await self._clickable(locator, context)
            logger.info(f"Clicking element: {_text(locator)}")
            await self.capabilities.click(element)

    async def double_click(self, locator: Any, context: Any = None) -> None:
        """Double-click an element."""
        with allure.step(f"Double click: {_text(locator)}"):
            element = await self._clickable(locator, context)
            logger.info(f"Double clicking element: {_text(locator)}")
            await self.capabilities.double_click(element)

    async def fill_field(self, field: Any, value: Any) -> None:
        """
        Fill a text field located by label, name, placeholder or selector.

        Args:
            field: Field locator
            value: Text to enter
        """
        shown = _masked(field, str(value))
        with allure.step(f"Fill {_text(field)}: {shown}"):
            elements = await self.resolver.resolve(Role.FIELD, field, self.context.scope)
            logger.info(f"Filling field: {_text(field)} with '{shown[:50]}'")
            await self.capabilities.fill(elements[0], str(value))

    async def clear_field(self, field: Any) -> None:
        """Empty a text field."""
        with allure.step(f"Clear field: {_text(field)}"):
            elements = await self.resolver.resolve(Role.FIELD, field, self.context.scope)
            await self.capabilities.fill(elements[0], "")

    async def check_option(self, field: Any, context: Any = None) -> None:
        """Select a checkbox or radio button if it is not selected yet."""
        with allure.step(f"Check option: {_text(field)}"):
            element = await self._checkable(field, context)
            if not await self.capabilities.is_checked(element):
                await self.capabilities.click(element)
            logger.info(f"Checked option: {_text(field)}")

    async def uncheck_option(self, field: Any, context: Any = None) -> None:
        """Unselect a checkbox if it is selected."""
        with allure.step(f"Uncheck option: {_text(field)}"):
            element = await self._checkable(field, context)
            if await self.capabilities.is_checked(element):
                await self.capabilities.click(element)
            logger.info(f"Unchecked option: {_text(field)}")

    async def select_option(self, select: Any, option: Union[str, Sequence[str]]) -> None:
        """
        Select option(s) of a <select> by visible text or value.

        Args:
            select: Field locator of the select element
            option: Option text/value, or a list of them for multi-selects
        """
        options = [option] if isinstance(option, str) else list(option)
        with allure.step(f"Select {options} in {_text(select)}"):
            elements = await self.resolver.resolve(Role.FIELD, select, self.context.scope)
            element = elements[0]

            values: List[str] = []
            for opt in options:
                found = await self.capabilities.find_elements(
                    element, Locator({"xpath": Locator.select.by_visible_text(opt)})
                )
                if not found:
                    found = await self.capabilities.find_elements(
                        element, Locator({"xpath": Locator.select.by_value(opt)})
                    )
                if not found:
                    raise ElementNotFoundError(
                        opt, prefix="Option", suffix=f"was not found in {_text(select)}"
                    )
                value = await self.capabilities.get_attribute(found[0], "value")
                values.append(value if value is not None else opt)

            logger.info(f"Selecting {values} in {_text(select)}")
            await self.capabilities.select_option(element, values)

    # =========================================================================
    # Assertions
    # =========================================================================

    async def see_element(self, locator: Any) -> None:
        """Assert that at least one matching element is visible."""
        with allure.step(f"See element: {_text(locator)}"):
            if not await self._visible(locator):
                raise AssertionFailedError(f'element "{_text(locator)}"', "to be visible")

    async def dont_see_element(self, locator: Any) -> None:
        """Assert that no matching element is visible."""
        with allure.step(f"Don't see element: {_text(locator)}"):
            if await self._visible(locator):
                raise AssertionFailedError(f'element "{_text(locator)}"', "not to be visible")

    async def see_in_field(self, field: Any, value: Any) -> None:
        """Assert the current value of a field."""
        with allure.step(f"See in field {_text(field)}: {value}"):
            elements = await self.resolver.resolve(Role.FIELD, field, self.context.scope)
            actual = await self.capabilities.get_value(elements[0])
            if actual != str(value):
                raise AssertionFailedError(f'field "{_text(field)}"', f"to have value {str(value)!r}", actual)

    async def see_checkbox_is_checked(self, field: Any) -> None:
        with allure.step(f"See checkbox is checked: {_text(field)}"):
            if not await self._any_checked(field):
                raise AssertionFailedError(f'checkable "{_text(field)}"', "to be checked")

    async def dont_see_checkbox_is_checked(self, field: Any) -> None:
        with allure.step(f"Don't see checkbox is checked: {_text(field)}"):
            if await self._any_checked(field):
                raise AssertionFailedError(f'checkable "{_text(field)}"', "not to be checked")

    # =========================================================================
    # Grabbers
    # =========================================================================

    async def grab_text_from(self, locator: Any) -> str:
        """Text of the first matching element."""
        elements = await self.resolver.resolve(Role.ELEMENT, locator, self.context.scope)
        if len(elements) > 1:
            logger.warning(f"{len(elements)} elements match {_text(locator)}, using the first one")
        text = await self.capabilities.get_text(elements[0])
        logger.debug(f"Got text from {_text(locator)}: '{text}'")
        return text

    async def grab_attribute_from(self, locator: Any, attribute: str) -> Optional[str]:
        """Attribute value of the first matching element."""
        elements = await self.resolver.resolve(Role.ELEMENT, locator, self.context.scope)
        value = await self.capabilities.get_attribute(elements[0], attribute)
        logger.debug(f"Got attribute {attribute} from {_text(locator)}: '{value}'")
        return value

    async def grab_number_of_visible_elements(self, locator: Any) -> int:
        elements = await self.resolver.find(Role.ELEMENT, locator, self.context.scope)
        count = 0
        for element in elements:
            if await self.capabilities.is_displayed(element):
                count += 1
        return count

    # =========================================================================
    # Scope
    # =========================================================================

    async def within_begin(self, locator: Any) -> None:
        """Scope following steps to an element or frame chain."""
        await self.context.begin(locator)

    async def within_end(self) -> None:
        """Leave the current within scope."""
        await self.context.end()

    async def switch_to(self, locator: Any = None) -> None:
        """Enter an iframe, or go back to the top document with no locator."""
        with allure.step(f"Switch to: {_text(locator) if locator else 'main document'}"):
            await self.context.switch_to(locator)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _scope_for(self, context: Any) -> Tuple[Optional[Any], Optional[str]]:
        if context is None:
            return self.context.scope, None
        context_locator = Locator(context, "css")
        elements = await self.resolver.resolve(Role.ELEMENT, context_locator, self.context.scope)
        return elements[0], f"was not found inside element {context_locator}"

    async def _clickable(self, locator: Any, context: Any) -> Any:
        scope, suffix = await self._scope_for(context)
        elements = await self.resolver.resolve(Role.CLICKABLE, locator, scope, suffix=suffix)
        if len(elements) == 1:
            return elements[0]
        for element in elements:
            if await self.capabilities.is_displayed(element):
                return element
        return elements[0]

    async def _checkable(self, field: Any, context: Any) -> Any:
        scope, suffix = await self._scope_for(context)
        elements = await self.resolver.resolve(Role.CHECKABLE, field, scope, suffix=suffix)
        return elements[0]

    async def _visible(self, locator: Any) -> bool:
        elements = await self.resolver.find(Role.ELEMENT, locator, self.context.scope)
        for element in elements:
            if await self.capabilities.is_displayed(element):
                return True
        return False

    async def _any_checked(self, field: Any) -> bool:
        elements = await self.resolver.resolve(Role.CHECKABLE, field, self.context.scope)
        for element in elements:
            if await self.capabilities.is_checked(element):
                return True
        return False


def _text(locator: Any) -> str:
    if isinstance(locator, Locator):
        return locator.stringify()
    if isinstance(locator, dict):
        return Locator(locator).stringify()
    return str(locator)


def _masked(field: Any, value: str) -> str:
    if "password" in _text(field).lower():
        return "*" * len(value)
    return value


__all__ = ["ElementActions"]
