"""In-memory capability backend for unit tests."""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from stepchain.framework.capabilities import Capabilities
from stepchain.framework.locator import Locator


class FakeElement:
    def __init__(self, name: str, text: str = "", visible: bool = True, checked: bool = False,
                 value: str = "", attributes: Optional[Dict[str, str]] = None):
        self.name = name
        self.text = text
        self.visible = visible
        self.checked = checked
        self.value = value
        self.attributes = attributes or {}

    def __repr__(self) -> str:
        return f"<{self.name}>"


class FakeCapabilities(Capabilities):
    """
    Answers find_elements from registered rules and records every call.

    Rules are matched in registration order; a rule matches on locator
    equality (type and value) and, when given, on scope identity.
    """

    def __init__(self):
        self.rules: List[Tuple[Callable[[Optional[Any], Locator], bool], List[Any]]] = []
        self.queries: List[Tuple[Optional[Any], Locator]] = []
        self.calls: List[Tuple[str, Any]] = []
        self.frame_depth = 0

    def on(self, locator: Any, elements: Sequence[Any], scope: Any = None) -> None:
        expected = locator if isinstance(locator, Locator) else Locator(locator)

        def matches(query_scope, query_locator):
            if scope is not None and query_scope is not scope:
                return False
            return query_locator == expected

        self.rules.append((matches, list(elements)))

    def on_xpath(self, expression: str, elements: Sequence[Any], scope: Any = None) -> None:
        self.on(Locator({"xpath": expression}), elements, scope)

    def fail_on(self, locator: Any, error: Exception) -> None:
        expected = locator if isinstance(locator, Locator) else Locator(locator)

        def matches(query_scope, query_locator):
            if query_locator == expected:
                raise error
            return False

        self.rules.append((matches, []))

    async def find_elements(self, scope, locator):
        self.queries.append((scope, locator))
        for matches, elements in self.rules:
            if matches(scope, locator):
                return list(elements)
        return []

    async def click(self, handle):
        self.calls.append(("click", handle))
        if hasattr(handle, "checked") and self._is_checkable(handle):
            handle.checked = not handle.checked

    async def fill(self, handle, text):
        self.calls.append(("fill", handle, text))
        handle.value = text

    async def get_attribute(self, handle, name):
        if name == "value":
            return handle.attributes.get("value", handle.value or None)
        return handle.attributes.get(name)

    async def get_text(self, handle):
        return handle.text

    async def get_value(self, handle):
        return handle.value

    async def is_displayed(self, handle):
        return handle.visible

    async def is_checked(self, handle):
        return handle.checked

    async def select_option(self, handle, values):
        self.calls.append(("select", handle, list(values)))
        handle.value = values[0] if values else ""

    async def switch_frame(self, handle):
        self.calls.append(("switch_frame", handle))
        self.frame_depth = 0 if handle is None else self.frame_depth + 1

    async def switch_to_parent_frame(self):
        self.calls.append(("parent_frame", None))
        self.frame_depth = max(0, self.frame_depth - 1)

    @staticmethod
    def _is_checkable(handle) -> bool:
        return handle.attributes.get("type") in ("checkbox", "radio")
