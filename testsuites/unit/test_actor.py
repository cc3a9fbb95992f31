import pytest

from stepchain.framework.actor import Actor, step_title
from stepchain.framework.errors import ElementNotFoundError
from stepchain.framework.locator import Locator
from stepchain.framework.recorder import RecorderEvent

from testsuites.unit.fakes import FakeElement


@pytest.fixture
def actor(actions, recorder):
    return Actor(actions, recorder)


def test_step_title():
    assert step_title("click", ("Submit",)) == 'I click "Submit"'
    assert step_title("fill_field", ("Email", "a@b.c")) == 'I fill field "Email", "a@b.c"'
    assert step_title("see_element", ({"css": "#x"},)) == 'I see element {"css": "#x"}'
    assert step_title("click", (Locator("#x").named("close"),), {"context": "#dialog"}) == (
        'I click "close", context="#dialog"'
    )


def test_unknown_step(actor):
    with pytest.raises(AttributeError):
        actor.fly_away("now")
    with pytest.raises(AttributeError):
        actor._private


async def test_steps_are_queued_in_order(actor, recorder, capabilities):
    email = FakeElement("input")
    button = FakeElement("button")
    capabilities.on_xpath(Locator.field.label_equals("'Email'"), [email])
    capabilities.on_xpath(Locator.clickable.narrow("'Sign in'"), [button])
    names = []
    recorder.on(RecorderEvent.STARTED, lambda task: names.append(task.name))

    actor.fill_field("Email", "demo@example.com")
    actor.click("Sign in")
    await actor.done()

    assert names == ['I fill field "Email", "demo@example.com"', 'I click "Sign in"']
    assert capabilities.calls == [("fill", email, "demo@example.com"), ("click", button)]


async def test_step_returns_result_future(actor, capabilities):
    capabilities.on(Locator("h1", "css"), [FakeElement("h1", text="Welcome")])

    assert await actor.grab_text_from({"css": "h1"}) == "Welcome"


async def test_within_block(actor, recorder, capabilities):
    form = FakeElement("form")
    inside = FakeElement("button")
    outside = FakeElement("button")
    capabilities.on(Locator("#login", "css"), [form])
    capabilities.on_xpath(Locator.clickable.narrow("'Go'"), [inside], scope=form)
    capabilities.on_xpath(Locator.clickable.narrow("'Go'"), [outside])

    with actor.within("#login"):
        actor.click("Go")
    actor.click("Go")
    await actor.done()

    assert capabilities.calls == [("click", inside), ("click", outside)]
    assert recorder.scheduled().splitlines() == [
        "--->",
        'within "#login"',
        'I click "Go"',
        "finish within block",
        "<---",
        'I click "Go"',
    ]


async def test_failed_step_halts_following_steps(actor, capabilities):
    button = FakeElement("button")
    capabilities.on_xpath(Locator.clickable.narrow("'Save'"), [button])

    actor.click("Missing")
    saved = actor.click("Save")

    with pytest.raises(ElementNotFoundError):
        await saved
    assert capabilities.calls == []


async def test_say_is_queued_like_any_step(actor, recorder):
    names = []
    recorder.on(RecorderEvent.PASSED, lambda task: names.append(task.name))

    actor.say("checking the login form")
    await actor.done(timeout=1)

    assert names == ["say checking the login form"]
