"""Fixtures shared by the unit tests."""

import pytest

from stepchain.common.config_loader import ConfigLoader
from stepchain.framework.element_actions import ElementActions
from stepchain.framework.locator import Locator
from stepchain.framework.recorder import Recorder

from testsuites.unit.fakes import FakeCapabilities


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Fresh configuration singleton without ambient overrides."""
    for name in ("LOCATOR_PLATFORM", "RECORDER_RETRIES", "BROWSER_TYPE", "BROWSER_HEADLESS"):
        monkeypatch.delenv(name, raising=False)
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()


@pytest.fixture(autouse=True)
def _no_locator_filters(monkeypatch):
    monkeypatch.setattr(Locator, "filters", [])


@pytest.fixture
def capabilities():
    return FakeCapabilities()


@pytest.fixture
def actions(capabilities):
    return ElementActions(capabilities)


@pytest.fixture
def recorder():
    recorder = Recorder()
    recorder.start()
    yield recorder
    recorder.stop()
