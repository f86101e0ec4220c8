"""Tests for config manager."""

import stat

import pytest

from ruuvi_panel.client.errors import ConfigurationError
from ruuvi_panel.config.manager import ConfigManager
from ruuvi_panel.config.models import PanelProfile


class TestConfigManager:
    def test_load_empty(self, config_manager: ConfigManager):
        assert config_manager.config.profiles == {}
        assert config_manager.config.default_profile is None

    def test_add_profile(self, config_manager: ConfigManager, sample_profile: PanelProfile):
        config_manager.add_profile(sample_profile)
        assert "test-gw" in config_manager.config.profiles
        assert config_manager.config.default_profile == "test-gw"

    def test_add_sets_first_as_default(self, config_manager: ConfigManager):
        config_manager.add_profile(PanelProfile(name="first", url="http://first:8080"))
        config_manager.add_profile(PanelProfile(name="second", url="http://second:8080"))
        assert config_manager.config.default_profile == "first"

    def test_remove_profile(self, config_manager: ConfigManager, sample_profile: PanelProfile):
        config_manager.add_profile(sample_profile)
        assert config_manager.remove_profile("test-gw") is True
        assert "test-gw" not in config_manager.config.profiles

    def test_remove_nonexistent(self, config_manager: ConfigManager):
        assert config_manager.remove_profile("nope") is False

    def test_remove_default_reassigns(self, config_manager: ConfigManager):
        config_manager.add_profile(PanelProfile(name="a", url="http://a:8080"))
        config_manager.add_profile(PanelProfile(name="b", url="http://b:8080"))
        config_manager.set_default("a")
        config_manager.remove_profile("a")
        assert config_manager.config.default_profile == "b"

    def test_set_default_nonexistent(self, config_manager: ConfigManager):
        assert config_manager.set_default("nope") is False

    def test_get_default_profile(self, config_manager: ConfigManager, sample_profile: PanelProfile):
        config_manager.add_profile(sample_profile)
        p = config_manager.get_profile()
        assert p is not None
        assert p.name == "test-gw"

    def test_save_and_reload(self, config_manager: ConfigManager):
        config_manager.add_profile(PanelProfile(
            name="home", url="http://gw:8080", token="tok",
            poll_interval=5, missing_poll_limit=3,
        ))
        mgr2 = ConfigManager(config_path=config_manager.config_path)
        p = mgr2.get_profile("home")
        assert p is not None
        assert p.url == "http://gw:8080"
        assert p.token == "tok"
        assert p.poll_interval == 5
        assert p.missing_poll_limit == 3

    def test_save_omits_defaults(self, config_manager: ConfigManager, sample_profile: PanelProfile):
        config_manager.add_profile(sample_profile)
        text = config_manager.config_path.read_text()
        assert "poll_interval" not in text
        assert "verify_ssl" not in text

    def test_saved_file_is_private(self, config_manager: ConfigManager, sample_profile: PanelProfile):
        config_manager.add_profile(sample_profile)
        mode = stat.S_IMODE(config_manager.config_path.stat().st_mode)
        assert mode == 0o600

    def test_corrupt_file_raises(self, config_manager: ConfigManager):
        config_manager.config_path.write_text("profiles = [not toml")
        with pytest.raises(ConfigurationError, match="Cannot parse"):
            config_manager.config

    def test_resolve_gateway_from_profile(self, config_manager: ConfigManager, sample_profile: PanelProfile):
        config_manager.add_profile(sample_profile)
        resolved = config_manager.resolve_gateway()
        assert resolved.url == "http://gw.local:8080"
        assert resolved.name == "test-gw"

    def test_resolve_gateway_cli_overrides(self, config_manager: ConfigManager, sample_profile: PanelProfile):
        config_manager.add_profile(sample_profile)
        resolved = config_manager.resolve_gateway(url="http://other:8080/", token="new")
        assert resolved.url == "http://other:8080"
        assert resolved.token == "new"

    def test_resolve_keeps_profile_sync_settings(self, config_manager: ConfigManager):
        config_manager.add_profile(PanelProfile(name="home", url="http://gw:8080", restart_grace=5))
        resolved = config_manager.resolve_gateway(url="http://other:8080")
        assert resolved.restart_grace == 5

    def test_resolve_gateway_env_vars(self, config_manager: ConfigManager, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("RUUVI_PANEL_URL", "http://env-gw:8080")
        monkeypatch.setenv("RUUVI_PANEL_TOKEN", "env-token")
        resolved = config_manager.resolve_gateway()
        assert resolved.url == "http://env-gw:8080"
        assert resolved.token == "env-token"

    def test_resolve_gateway_env_profile(self, config_manager: ConfigManager, monkeypatch: pytest.MonkeyPatch):
        config_manager.add_profile(PanelProfile(name="a", url="http://a:8080"))
        config_manager.add_profile(PanelProfile(name="b", url="http://b:8080"))
        monkeypatch.setenv("RUUVI_PANEL_PROFILE", "b")
        assert config_manager.resolve_gateway().url == "http://b:8080"

    def test_resolve_gateway_no_url_raises(self, config_manager: ConfigManager, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("RUUVI_PANEL_URL", raising=False)
        with pytest.raises(ConfigurationError, match="No gateway URL configured"):
            config_manager.resolve_gateway()

    def test_invalid_profile_raises(self, config_manager: ConfigManager):
        config_manager.config_path.write_text('[profiles.home]\nurl = "ftp://gw"\n')
        with pytest.raises(ConfigurationError, match="Invalid profile"):
            config_manager.config

    def test_hand_written_file_loads(self, config_manager: ConfigManager):
        config_manager.config_path.write_text(
            'default_profile = "home"\n\n'
            '[profiles.home]\nurl = "http://gw:8080"\nmissing_poll_limit = 4\n'
        )
        p = config_manager.get_profile()
        assert p is not None
        assert p.name == "home"
        assert p.missing_poll_limit == 4
