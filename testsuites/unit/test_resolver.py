import pytest

from stepchain.framework.errors import ElementNotFoundError
from stepchain.framework.locator import Locator
from stepchain.framework.resolver import Role, SemanticResolver, build_strategies, resolve

from testsuites.unit.fakes import FakeCapabilities, FakeElement


SUBMIT = "'Submit'"


def _queried(capabilities):
    return [locator for _, locator in capabilities.queries]


def test_clickable_cascade_order():
    strategies = build_strategies(Role.CLICKABLE, Locator("Submit"))
    assert [s.name for s in strategies] == ["narrow", "wide", "self", "verbatim"]
    assert [s.optional for s in strategies] == [False, False, True, True]
    assert strategies[-1].locator == Locator("Submit", "css")


def test_field_and_checkable_cascade_order():
    assert [s.name for s in build_strategies(Role.FIELD, Locator("Email"))] == [
        "label_equals", "label_contains", "by_name", "verbatim",
    ]
    assert [s.name for s in build_strategies(Role.CHECKABLE, Locator("Agree"))] == [
        "by_text", "by_name", "verbatim",
    ]
    assert [s.name for s in build_strategies(Role.ELEMENT, Locator("h1"))] == ["verbatim"]


async def test_button_matched_by_name_through_wide_strategy():
    # <button name="Submit">Go</button>: narrow finds nothing, wide finds the button
    capabilities = FakeCapabilities()
    button = FakeElement("button", text="Go")
    capabilities.on_xpath(Locator.clickable.wide(SUBMIT), [button])

    elements = await resolve(Role.CLICKABLE, "Submit", capabilities)

    assert elements == [button]
    assert _queried(capabilities) == [
        Locator({"xpath": Locator.clickable.narrow(SUBMIT)}),
        Locator({"xpath": Locator.clickable.wide(SUBMIT)}),
    ]


async def test_earlier_stage_wins_over_later_stages():
    capabilities = FakeCapabilities()
    link = FakeElement("a", text="Submit")
    capabilities.on_xpath(Locator.clickable.narrow(SUBMIT), [link])
    capabilities.on_xpath(Locator.clickable.wide(SUBMIT), [FakeElement("label")])

    elements = await SemanticResolver(capabilities).find_clickable("Submit")

    assert elements == [link]
    assert len(capabilities.queries) == 1


async def test_failing_self_stage_is_skipped():
    capabilities = FakeCapabilities()
    capabilities.fail_on(Locator({"xpath": Locator.clickable.self_(SUBMIT)}), RuntimeError("no root"))
    verbatim = FakeElement("input")
    capabilities.on(Locator("Submit", "css"), [verbatim])

    assert await SemanticResolver(capabilities).find_clickable("Submit") == [verbatim]


async def test_text_that_is_not_valid_css_is_not_found():
    capabilities = FakeCapabilities()
    capabilities.fail_on(
        Locator("Don't save", "css"),
        RuntimeError("Unexpected token \"'\" while parsing selector \"Don't save\""),
    )

    with pytest.raises(ElementNotFoundError):
        await resolve(Role.CLICKABLE, "Don't save", capabilities)
    with pytest.raises(ElementNotFoundError):
        await resolve(Role.ELEMENT, "Don't save", capabilities)


async def test_strict_locator_skips_cascade():
    capabilities = FakeCapabilities()
    element = FakeElement("div")
    capabilities.on({"css": "#foo"}, [element])

    locator = Locator({"css": "#foo"})
    assert not locator.is_fuzzy()
    assert locator.simplify() == "#foo"
    assert await SemanticResolver(capabilities).find_clickable(locator) == [element]
    assert _queried(capabilities) == [locator]


async def test_accessibility_id_is_queried_directly():
    capabilities = FakeCapabilities()
    back = FakeElement("button")
    capabilities.on("~Back", [back])

    assert await SemanticResolver(capabilities).find_fields("~Back") == [back]
    assert len(capabilities.queries) == 1


async def test_field_label_equals_tried_before_name():
    capabilities = FakeCapabilities()
    by_label = FakeElement("input#email")
    by_name = FakeElement("input[name=Email]")
    capabilities.on_xpath(Locator.field.label_equals("'Email'"), [by_label])
    capabilities.on_xpath(Locator.field.by_name("'Email'"), [by_name])

    assert await SemanticResolver(capabilities).find_fields("Email") == [by_label]
    assert _queried(capabilities)[0] == Locator({"xpath": Locator.field.label_equals("'Email'")})


async def test_field_falls_back_to_name():
    capabilities = FakeCapabilities()
    by_name = FakeElement("input[name=Email]")
    capabilities.on_xpath(Locator.field.by_name("'Email'"), [by_name])

    assert await SemanticResolver(capabilities).find_fields("Email") == [by_name]
    assert len(capabilities.queries) == 3


async def test_checkable_by_name():
    capabilities = FakeCapabilities()
    box = FakeElement("checkbox")
    capabilities.on_xpath(Locator.checkable.by_name("'terms'"), [box])

    assert await SemanticResolver(capabilities).find_checkable("terms") == [box]


async def test_query_runs_inside_scope():
    capabilities = FakeCapabilities()
    form = FakeElement("form")
    button = FakeElement("button")
    capabilities.on_xpath(Locator.clickable.narrow(SUBMIT), [button], scope=form)

    assert await SemanticResolver(capabilities).find_clickable("Submit") == []
    assert await SemanticResolver(capabilities).find_clickable("Submit", scope=form) == [button]


async def test_no_match_raises_element_not_found():
    resolver = SemanticResolver(FakeCapabilities())

    with pytest.raises(ElementNotFoundError) as error:
        await resolver.resolve(Role.CLICKABLE, "Sign in")
    assert str(error.value) == "Clickable element Sign in was not found by text|CSS|XPath"
    assert error.value.locator == "Sign in"

    with pytest.raises(ElementNotFoundError, match="Field Email was not found inside element #form"):
        await resolver.resolve(Role.FIELD, "Email", suffix="was not found inside element #form")


async def test_cascade_does_not_touch_page_state():
    capabilities = FakeCapabilities()
    await SemanticResolver(capabilities).find_clickable("Anything")
    assert capabilities.calls == []
