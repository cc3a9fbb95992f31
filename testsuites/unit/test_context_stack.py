import pytest

from stepchain.framework.context_stack import ContextStack, ContextState, frame_chain
from stepchain.framework.errors import ElementNotFoundError, UsageError
from stepchain.framework.locator import Locator
from stepchain.framework.resolver import SemanticResolver

from testsuites.unit.fakes import FakeCapabilities, FakeElement


@pytest.fixture
def stack(capabilities):
    return ContextStack(SemanticResolver(capabilities))


async def test_begin_scopes_to_element(stack, capabilities):
    form = FakeElement("form")
    capabilities.on(Locator("#login", "css"), [form])

    await stack.begin("#login")

    assert stack.state is ContextState.SCOPED
    assert stack.scope is form

    await stack.end()
    assert stack.state is ContextState.ROOT
    assert stack.scope is None


async def test_nested_begin_raises_and_keeps_scope(stack, capabilities):
    form = FakeElement("form")
    capabilities.on(Locator("#login", "css"), [form])
    capabilities.on(Locator("#other", "css"), [FakeElement("div")])

    await stack.begin("#login")
    with pytest.raises(UsageError):
        await stack.begin("#other")

    assert stack.scope is form
    assert str(stack.locator) == "#login"


async def test_begin_missing_element(stack):
    with pytest.raises(ElementNotFoundError):
        await stack.begin(".missing")
    assert stack.state is ContextState.ROOT


async def test_end_from_root_is_noop(stack, capabilities):
    await stack.end()
    assert stack.state is ContextState.ROOT
    assert capabilities.calls == []


async def test_frame_chain_entered_in_order_and_left_in_reverse(stack, capabilities):
    outer, inner = FakeElement("iframe#outer"), FakeElement("iframe#inner")
    capabilities.on(Locator("#outer", "css"), [outer])
    capabilities.on(Locator("#inner", "css"), [inner])

    await stack.begin([{"frame": "#outer"}, {"frame": "#inner"}])

    assert capabilities.calls == [("switch_frame", None), ("switch_frame", outer), ("switch_frame", inner)]
    assert [f.value for f in stack.frames] == ["#outer", "#inner"]
    assert stack.scope is None

    capabilities.calls.clear()
    await stack.end()
    assert capabilities.calls == [("parent_frame", None), ("parent_frame", None)]
    assert stack.frames == ()


async def test_missing_frame_rolls_back(stack, capabilities):
    capabilities.on(Locator("#outer", "css"), [FakeElement("iframe")])

    with pytest.raises(ElementNotFoundError, match="Frame"):
        await stack.begin({"frame": ["#outer", "#nope"]})

    assert stack.state is ContextState.ROOT
    assert capabilities.frame_depth == 0


async def test_switch_to_nests_frames_and_returns_to_top(stack, capabilities):
    capabilities.on(Locator("#outer", "css"), [FakeElement("iframe")])
    capabilities.on(Locator("#inner", "css"), [FakeElement("iframe")])

    await stack.switch_to("#outer")
    await stack.switch_to("#inner")
    assert len(stack.frames) == 2
    assert capabilities.frame_depth == 2

    await stack.switch_to()
    assert stack.state is ContextState.ROOT
    assert capabilities.frame_depth == 0


async def test_switch_to_inside_within_block(stack, capabilities):
    capabilities.on(Locator("#login", "css"), [FakeElement("form")])
    await stack.begin("#login")

    with pytest.raises(UsageError):
        await stack.switch_to("#frame")


def test_frame_chain_forms():
    assert frame_chain("#login") is None
    assert [f.value for f in frame_chain({"frame": "#f"})] == ["#f"]
    assert [f.value for f in frame_chain(["#a", {"frame": "#b"}])] == ["#a", "#b"]
    assert all(f.is_frame() for f in frame_chain({"frame": ["#a", "#b"]}))
