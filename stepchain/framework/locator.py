"""
================================================================================
Locator
================================================================================

Typed locator descriptor parsed from a raw string or mapping.

Provides:
    - Deterministic typing (css / xpath / id / name / accessibility / frame / fuzzy)
    - Backend-facing rendering via simplify()
    - XPath literal escaping and strategy builders used by the resolver
    - A small builder DSL (find, with_text, at, inside, ...)

Parsing priority:
    1. Mapping keys, in order: css, xpath, id, name, accessibility, the
       platform variant (android / ios / web) for the current platform, frame
    2. "~text"          -> accessibility id
    3. "//..." / "./.." -> xpath
    4. "#ident"         -> id; other "#", "." or "[" prefixes -> css
    5. anything else    -> default type, or fuzzy text

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any, Callable, ClassVar, Dict, List, Optional, Sequence, Tuple

from cssselect import GenericTranslator, SelectorError

from stepchain.common import get_config

from .errors import UsageError


# frame stays last: platform variants take precedence over it
STRICT_KEYS: Tuple[str, ...] = ("css", "xpath", "id", "name", "accessibility", "frame")
PLATFORM_KEYS: Tuple[str, ...] = ("android", "ios", "web")
LOCATOR_TYPES: Tuple[str, ...] = STRICT_KEYS + ("fuzzy",)

_ID_SHORTCUT = re.compile(r"^#[A-Za-z_][\w-]*$")
_XPATH_PREFIX = re.compile(r"^\(*(//|\./)")

# (raw input, parsed type, parsed value) -> replacement (type, value) or None
LocatorFilter = Callable[[Any, Optional[str], Optional[str]], Optional[Tuple[str, str]]]


# =============================================================================
# XPath helpers
# =============================================================================

def xpath_literal(text: str) -> str:
    """
    Build an XPath 1.0 string literal for arbitrary text.

    XPath 1.0 has no escape sequence, so text containing a single quote is
    split on it and reassembled with concat().

    Examples:
        Submit  -> 'Submit'
        Don't   -> concat('Don',"'",'t')
    """
    if "'" in text:
        parts = ",\"'\",".join(f"'{part}'" for part in text.split("'"))
        return f"concat({parts})"
    return f"'{text}'"


def combine(xpaths: Sequence[str]) -> str:
    """Join XPath expressions into one union expression."""
    return " | ".join(xpaths)


_NOT_BUTTON = "not(./@type = 'submit' or ./@type = 'image' or ./@type = 'hidden')"
_FORM_CONTROL = "*[self::input | self::textarea | self::select]"
_BUTTON_INPUT = "input[./@type = 'submit' or ./@type = 'image' or ./@type = 'button']"


class ClickableStrategies:
    """XPath strategies for links, buttons and other clickable elements."""

    @staticmethod
    def narrow(literal: str) -> str:
        return combine([
            f".//a[normalize-space(.)={literal}]",
            f".//button[normalize-space(.)={literal}]",
            f".//a/img[normalize-space(@alt)={literal}]/ancestor::a",
            f".//{_BUTTON_INPUT}[normalize-space(@value)={literal}]",
        ])

    @staticmethod
    def wide(literal: str) -> str:
        return combine([
            f".//a[./@href][((contains(normalize-space(string(.)), {literal})) or .//img[contains(./@alt, {literal})])]",
            f".//{_BUTTON_INPUT}[contains(./@value, {literal})]",
            f".//input[./@type = 'image'][contains(./@alt, {literal})]",
            f".//button[contains(normalize-space(string(.)), {literal})]",
            f".//label[contains(normalize-space(string(.)), {literal})]",
            f".//{_BUTTON_INPUT}[./@name = {literal}]",
            f".//button[./@name = {literal}]",
            f".//*[@aria-label = {literal}]",
            f".//*[@title = {literal}]",
            f".//*[@aria-labelledby = //*[@id][normalize-space(string(.)) = {literal}]/@id ]",
        ])

    @staticmethod
    def self_(literal: str) -> str:
        return (
            f"./self::*[contains(normalize-space(string(.)), {literal}) "
            f"or contains(normalize-space(@value), {literal})]"
        )


class FieldStrategies:
    """XPath strategies for inputs, textareas and selects."""

    @staticmethod
    def label_equals(literal: str) -> str:
        return combine([
            f".//{_FORM_CONTROL}[{_NOT_BUTTON}][((./@name = {literal}) or "
            f"./@id = //label[@for][normalize-space(string(.)) = {literal}]/@for or "
            f"./@placeholder = {literal})]",
            f".//label[normalize-space(string(.)) = {literal}]//.//{_FORM_CONTROL}[{_NOT_BUTTON}]",
        ])

    @staticmethod
    def label_contains(literal: str) -> str:
        return combine([
            f".//{_FORM_CONTROL}[{_NOT_BUTTON}][(((./@name = {literal}) or "
            f"./@id = //label[@for][contains(normalize-space(string(.)), {literal})]/@for) or "
            f"./@placeholder = {literal})]",
            f".//label[contains(normalize-space(string(.)), {literal})]//.//{_FORM_CONTROL}[{_NOT_BUTTON}]",
            f".//*[@aria-label = {literal}]",
            f".//*[@title = {literal}]",
            f".//*[@aria-labelledby = //*[@id][normalize-space(string(.)) = {literal}]/@id ]",
        ])

    @staticmethod
    def by_name(literal: str) -> str:
        return f".//{_FORM_CONTROL}[@name = {literal}]"

    @staticmethod
    def by_text(literal: str) -> str:
        return combine([
            f".//{_FORM_CONTROL}[{_NOT_BUTTON}][(((./@name = {literal}) or "
            f"./@id = //label[@for][contains(normalize-space(string(.)), {literal})]/@for) or "
            f"./@placeholder = {literal})]",
            f".//label[contains(normalize-space(string(.)), {literal})]//.//{_FORM_CONTROL}[{_NOT_BUTTON}]",
        ])


class CheckableStrategies:
    """XPath strategies for checkboxes and radio buttons."""

    @staticmethod
    def by_text(literal: str) -> str:
        return combine([
            f".//input[@type = 'checkbox' or @type = 'radio']"
            f"[(@id = //label[@for][contains(normalize-space(string(.)), {literal})]/@for) "
            f"or @placeholder = {literal}]",
            f".//label[contains(normalize-space(string(.)), {literal})]//input[@type = 'radio' or @type = 'checkbox']",
        ])

    @staticmethod
    def by_name(literal: str) -> str:
        return f".//input[@type = 'checkbox' or @type = 'radio'][@name = {literal}]"


class SelectStrategies:
    """XPath strategies for <option> lookup relative to a <select>."""

    @staticmethod
    def by_visible_text(option: str) -> str:
        normalized = f"[normalize-space(.) = {xpath_literal(option.strip())}]"
        return f"./option{normalized}|./optgroup/option{normalized}"

    @staticmethod
    def by_value(option: str) -> str:
        normalized = f"[normalize-space(@value) = {xpath_literal(option.strip())}]"
        return f"./option{normalized}|./optgroup/option{normalized}"


# =============================================================================
# Locator
# =============================================================================

class Locator:
    """
    Immutable, typed locator.

    Usage:
        >>> Locator({"css": "#foo"}).simplify()
        '#foo'
        >>> Locator("Submit").is_fuzzy()
        True
        >>> Locator("//button").find("span").value
        '//button//span'
    """

    __slots__ = ("_raw", "_type", "_value", "_output", "_strict")

    filters: ClassVar[List[LocatorFilter]] = []

    clickable: ClassVar = ClickableStrategies
    field: ClassVar = FieldStrategies
    checkable: ClassVar = CheckableStrategies
    select: ClassVar = SelectStrategies

    def __init__(
        self,
        raw: Any = None,
        default_type: str = "",
        platform: Optional[str] = None,
    ):
        if isinstance(raw, Locator):
            for slot in self.__slots__:
                object.__setattr__(self, slot, getattr(raw, slot))
            return

        platform = platform or get_config("locator.platform", "web")
        locator_type, value, strict = _parse(raw, default_type, platform)
        output = raw if isinstance(raw, str) and raw else None

        for locator_filter in self.filters:
            replacement = locator_filter(raw, locator_type, value)
            if replacement:
                locator_type, value = replacement

        object.__setattr__(self, "_raw", raw)
        object.__setattr__(self, "_type", locator_type)
        object.__setattr__(self, "_value", value)
        object.__setattr__(self, "_output", output)
        object.__setattr__(self, "_strict", strict)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Locator is immutable, cannot set {name!r}")

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def raw(self) -> Any:
        return self._raw

    @property
    def type(self) -> Optional[str]:
        return self._type

    @property
    def value(self) -> Optional[str]:
        return self._value

    # -------------------------------------------------------------------------
    # Predicates
    # -------------------------------------------------------------------------

    def is_null(self) -> bool:
        return self._type is None

    def is_fuzzy(self) -> bool:
        return self._type == "fuzzy"

    def is_css(self) -> bool:
        return self._type == "css"

    def is_xpath(self) -> bool:
        return self._type == "xpath"

    def is_frame(self) -> bool:
        return self._type == "frame"

    def is_accessibility_id(self) -> bool:
        return self._type == "accessibility"

    def is_basic(self) -> bool:
        return self.is_css() or self.is_xpath()

    def is_strict(self) -> bool:
        """True when the locator was built from a mapping like {"css": ...}."""
        return self._strict

    def is_custom(self) -> bool:
        """True for types introduced by a filter rather than the built-in set."""
        return self._type is not None and self._type not in LOCATOR_TYPES

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def simplify(self) -> Optional[str]:
        """
        Render the backend-facing selector string.

        Parsing the result again and simplifying yields the same string.
        """
        if self.is_null():
            return None
        if self._type == "id":
            return f"#{self._value}"
        if self._type == "name":
            return f'[name="{self._value}"]'
        if self._type == "accessibility":
            return f"~{self._value}"
        return self._value

    def stringify(self) -> str:
        """Human-readable form used in logs and error messages."""
        if self._output:
            return self._output
        if self.is_null():
            return ""
        return f"{{{self._type}: {self._value}}}"

    __str__ = stringify

    def to_strict(self) -> Optional[Dict[str, str]]:
        if self.is_null():
            return None
        return {self._type: self._value}

    def to_xpath(self) -> str:
        """Convert css / xpath / id / name locators to an XPath expression."""
        if self.is_xpath():
            return self._value
        if self.is_css():
            try:
                return GenericTranslator().css_to_xpath(self._value, prefix=".//")
            except SelectorError as e:
                raise UsageError(f"Can't convert CSS {self._value!r} to XPath: {e}") from e
        if self._type == "id":
            return f".//*[@id = {xpath_literal(self._value)}]"
        if self._type == "name":
            return f".//*[@name = {xpath_literal(self._value)}]"
        raise UsageError(f"Locator {self} can't be converted to XPath")

    def __repr__(self) -> str:
        return f"Locator(type={self._type!r}, value={self._value!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Locator):
            return NotImplemented
        return (self._type, self._value) == (other._type, other._value)

    def __hash__(self) -> int:
        return hash((self._type, self._value))

    # -------------------------------------------------------------------------
    # DSL
    # -------------------------------------------------------------------------

    def named(self, output: str) -> "Locator":
        """Return a copy displayed as `output` in logs and errors."""
        copy = Locator(self)
        object.__setattr__(copy, "_output", output)
        return copy

    def or_(self, locator: Any) -> "Locator":
        xpath = combine([self.to_xpath(), Locator(locator, "css").to_xpath()])
        return Locator({"xpath": xpath})

    def find(self, locator: Any) -> "Locator":
        return Locator({"xpath": f"{self.to_xpath()}//{_sub_selector(locator)}"})

    def with_child(self, locator: Any) -> "Locator":
        return Locator({"xpath": f"{self.to_xpath()}[./child::{_sub_selector(locator)}]"})

    def with_descendant(self, locator: Any) -> "Locator":
        return Locator({"xpath": f"{self.to_xpath()}[./descendant::{_sub_selector(locator)}]"})

    def at(self, position: int) -> "Locator":
        """Select by 1-based position; negative positions count from the end (-1 is last)."""
        if position == 0:
            raise UsageError(
                "0 is not valid element position. XPath expects first element to have index 1"
            )
        if position > 0:
            xpath_position = str(position)
        else:
            xpath_position = f"last()-{abs(position + 1)}"
        return Locator({"xpath": f"({self.to_xpath()})[position()={xpath_position}]"})

    def first(self) -> "Locator":
        return self.at(1)

    def last(self) -> "Locator":
        return self.at(-1)

    def with_text(self, text: str) -> "Locator":
        return Locator({"xpath": f"{self.to_xpath()}[contains(., {xpath_literal(text)})]"})

    def with_attr(self, attributes: Dict[str, str]) -> "Locator":
        operands = " and ".join(
            f"@{name} = {xpath_literal(value)}" for name, value in attributes.items()
        )
        return Locator({"xpath": f"{self.to_xpath()}[{operands}]"})

    def inside(self, locator: Any) -> "Locator":
        return Locator({"xpath": f"{self.to_xpath()}[ancestor::{_sub_selector(locator)}]"})

    def after(self, locator: Any) -> "Locator":
        return Locator({"xpath": f"{self.to_xpath()}[preceding-sibling::{_sub_selector(locator)}]"})

    def before(self, locator: Any) -> "Locator":
        return Locator({"xpath": f"{self.to_xpath()}[following-sibling::{_sub_selector(locator)}]"})

    # -------------------------------------------------------------------------
    # Class helpers
    # -------------------------------------------------------------------------

    @classmethod
    def build(cls, raw: Any = None) -> "Locator":
        """Build a locator defaulting plain strings to CSS; empty input matches everything."""
        if not raw:
            return cls({"xpath": "//*"})
        return cls(raw, "css")

    @classmethod
    def add_filter(cls, locator_filter: LocatorFilter) -> int:
        """Register a filter applied to every new locator; returns the filter count."""
        cls.filters.append(locator_filter)
        return len(cls.filters)


# =============================================================================
# Parsing
# =============================================================================

def _parse(raw: Any, default_type: str, platform: str) -> Tuple[Optional[str], Optional[str], bool]:
    if raw is None or raw == "" or raw == {}:
        return None, None, False

    if isinstance(raw, Mapping):
        for key in STRICT_KEYS[:-1]:
            value = raw.get(key)
            if isinstance(value, str) and value:
                return key, value, True

        if any(key in raw for key in PLATFORM_KEYS):
            selected = raw.get(platform)
            if isinstance(selected, (str, Mapping)) and selected:
                return _parse(selected, default_type, platform)

        frame = raw.get("frame")
        if isinstance(frame, str) and frame:
            return "frame", frame, True

        return "fuzzy", json.dumps(raw, sort_keys=True, default=str), False

    if not isinstance(raw, str):
        return "fuzzy", str(raw), False

    if raw.startswith("~"):
        return "accessibility", raw[1:], False
    if _XPATH_PREFIX.match(raw):
        return "xpath", raw, False
    if _ID_SHORTCUT.match(raw):
        return "id", raw[1:], False
    if raw[0] in "#.[":
        return "css", raw, False
    return default_type or "fuzzy", raw, False


def _sub_selector(locator: Any) -> str:
    """XPath of `locator` without its leading ./ or // so it can be nested in an axis."""
    xpath = Locator(locator, "css").to_xpath()
    if xpath.startswith("("):
        raise UsageError(
            "XPath with round brackets is not possible here! "
            "May be a nested locator with at() last() or first() causes this error."
        )
    return re.sub(r"^[./]+", "", xpath)


__all__ = [
    "Locator",
    "LocatorFilter",
    "LOCATOR_TYPES",
    "ClickableStrategies",
    "FieldStrategies",
    "CheckableStrategies",
    "SelectStrategies",
    "xpath_literal",
    "combine",
]
