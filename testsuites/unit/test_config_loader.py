import pytest
import yaml

from stepchain.common.config_loader import ConfigLoader, ConfigurationError, get_config


def test_env_override_and_defaults(monkeypatch, tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        yaml.dump({"recorder": {"step_timeout": 10.0, "retries": 0}}),
        encoding="utf-8",
    )

    ConfigLoader.reset()
    loader = ConfigLoader(config_path=config_path)
    assert loader.get("recorder.step_timeout") == 10.0
    assert loader.get("browser.type", "chromium") == "chromium"

    ConfigLoader.reset()
    monkeypatch.setenv("RECORDER_STEP_TIMEOUT", "2.5")
    monkeypatch.setenv("RECORDER_RETRIES", "3")
    loader = ConfigLoader(config_path=config_path)
    assert loader.get("recorder.step_timeout", 30.0) == 2.5
    assert loader.get("recorder.retries", 0) == 3


def test_reload_updates_values(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.dump({"locator": {"platform": "web"}}), encoding="utf-8")

    ConfigLoader.reset()
    loader = ConfigLoader(config_path=config_path)
    assert loader.get("locator.platform") == "web"
    assert loader.get_section("locator") == {"platform": "web"}

    config_path.write_text(yaml.dump({"locator": {"platform": "ios"}}), encoding="utf-8")
    loader.reload()
    assert loader.get("locator.platform") == "ios"


def test_config_path_from_environment(monkeypatch, tmp_path):
    config_path = tmp_path / "alt.yaml"
    config_path.write_text(yaml.dump({"browser": {"headless": False}}), encoding="utf-8")
    monkeypatch.setenv("STEPCHAIN_CONFIG", str(config_path))

    ConfigLoader.reset()
    assert get_config("browser.headless", True) is False


def test_invalid_yaml(tmp_path):
    config_path = tmp_path / "broken.yaml"
    config_path.write_text("recorder: [unclosed", encoding="utf-8")

    ConfigLoader.reset()
    with pytest.raises(ConfigurationError):
        ConfigLoader(config_path=config_path)
    ConfigLoader.reset()
