"""
================================================================================
Resolver Cascades Against A Real Browser
================================================================================

Each test renders a small document with page.set_content() and resolves a
fuzzy locator through PlaywrightCapabilities, so the XPath built by the
cascades is evaluated by the browser itself.

================================================================================
"""

import allure
import pytest

from stepchain.framework import ElementNotFoundError, Role


pytestmark = pytest.mark.e2e


@allure.epic("Locators")
@allure.feature("Resolver cascades")
class TestCascades:

    @allure.title("Button is found by its name attribute")
    @pytest.mark.P0
    async def test_button_found_by_name_attribute(self, page_actions):
        page, actions = page_actions
        await page.set_content('<form><button name="Submit">Go</button></form>')

        with allure.step("Resolve clickable 'Submit'"):
            elements = await actions.resolver.resolve(Role.CLICKABLE, "Submit")

        assert len(elements) == 1
        assert await elements[0].inner_text() == "Go"

    @allure.title("Field without an associated label is found by name")
    @pytest.mark.P0
    async def test_unassociated_label_falls_back_to_name(self, page_actions):
        page, actions = page_actions
        await page.set_content('<label>Email</label><input name="Email">')

        with allure.step("Resolve field 'Email'"):
            elements = await actions.resolver.resolve(Role.FIELD, "Email")

        assert len(elements) == 1
        assert await elements[0].evaluate("node => node.tagName") == "INPUT"
        assert await elements[0].get_attribute("name") == "Email"

        with allure.step("Fill it through the helper step"):
            await actions.fill_field("Email", "demo@example.com")
        assert await page.input_value("input[name=Email]") == "demo@example.com"

    @allure.title("Text mixing both quote kinds is matched exactly")
    @pytest.mark.P1
    async def test_text_with_both_quote_kinds(self, page_actions):
        page, actions = page_actions
        await page.set_content(
            "<button>Cancel</button>"
            "<button>Say \"hi\", don't</button>"
        )

        with allure.step("Resolve clickable with mixed quotes"):
            elements = await actions.resolver.resolve(Role.CLICKABLE, "Say \"hi\", don't")

        assert len(elements) == 1
        assert await elements[0].inner_text() == "Say \"hi\", don't"

    @allure.title("Text that is not a valid selector reports not found")
    @pytest.mark.P1
    async def test_invalid_selector_text_is_not_found(self, page_actions):
        page, actions = page_actions
        await page.set_content("<button>Save</button>")

        with pytest.raises(ElementNotFoundError):
            await actions.resolver.resolve(Role.CLICKABLE, "Don't save")
