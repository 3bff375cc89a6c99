"""Unit tests for Config and KioskSettings.from_config."""

import pytest

from src.common.config import Config, get_config
from src.kiosk.content_selector import SelectionMode
from src.kiosk.settings import DEFAULT_ACTIVITY_ACTIONS, KioskSettings


CONFIG_YAML = """
kiosk:
  attract_screen: Lobby
  boot_screen: Splash
  content_screens: [Gallery, Reef]
  play_mode: linear
  shuffle_seed: 7
  tick_hz: 20
policies:
  default:
    enable_soft: true
    soft_seconds: 15
  scenes:
    - screen: Reef
      enable_hard: true
      hard_seconds: 90
input:
  grace_seconds: 0.5
  vector2_deadzone: 0.4
presentation:
  sink: HTTP
logging:
  level: debug
"""


@pytest.fixture
def config_file(tmp_path):
    """Write a YAML config file and return its path."""
    path = tmp_path / "kiosk.yaml"
    path.write_text(CONFIG_YAML)
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove env overrides that would leak into config loading."""
    for name in Config.ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)


class TestConfig:
    """Tests for YAML config loading."""

    def test_dot_notation(self, config_file):
        """Test nested lookups and defaults."""
        config = Config(str(config_file))
        assert config.get('kiosk.attract_screen') == "Lobby"
        assert config.get('kiosk.missing', 'fallback') == "fallback"
        assert config.get('kiosk.attract_screen.deeper') is None

    def test_properties(self, config_file):
        """Test normalized log level and sink type."""
        config = Config(str(config_file))
        assert config.log_level == "DEBUG"
        assert config.sink_type == "http"

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            Config(str(tmp_path / "nope.yaml"))

    def test_empty_file(self, tmp_path):
        """Test that an empty file loads as empty config."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        config = Config(str(path))
        assert config.get('kiosk') is None
        assert config.sink_type == "log"

    def test_env_override(self, config_file, monkeypatch):
        """Test that environment variables override file values."""
        monkeypatch.setenv('KIOSK_PLAY_MODE', 'random')
        monkeypatch.setenv('KIOSK_SINK', 'zmq')
        config = Config(str(config_file))
        assert config.get('kiosk.play_mode') == "random"
        assert config.sink_type == "zmq"

    def test_set_and_save(self, config_file, tmp_path):
        """Test setting a new nested key and saving it."""
        config = Config(str(config_file))
        config.set('rebind.overrides_json', '{"items": []}')
        out = tmp_path / "saved.yaml"
        config.save(str(out))

        reloaded = Config(str(out))
        assert reloaded.get('rebind.overrides_json') == '{"items": []}'
        assert reloaded.get('kiosk.attract_screen') == "Lobby"

    def test_default_config_loads(self):
        """Test that the bundled default config loads."""
        config = Config()
        assert config.get('kiosk.attract_screen') == "Attract"


class TestKioskSettings:
    """Tests for building settings from config."""

    def test_from_config(self, config_file):
        """Test values are read and typed."""
        settings = KioskSettings.from_config(Config(str(config_file)))
        assert settings.attract_screen == "Lobby"
        assert settings.boot_screen == "Splash"
        assert settings.content_screens == ("Gallery", "Reef")
        assert settings.play_mode == SelectionMode.LINEAR
        assert settings.shuffle_seed == 7
        assert settings.tick_hz == 20.0
        assert settings.grace_seconds == 0.5
        assert settings.vector2_deadzone == 0.4
        assert settings.default_policy.enable_soft is True
        assert settings.default_policy.soft_seconds == 15.0
        assert settings.scene_policies[0].screen == "Reef"
        assert settings.scene_policies[0].hard_seconds == 90.0

    def test_defaults_for_missing_keys(self, tmp_path):
        """Test defaults when sections are absent."""
        path = tmp_path / "minimal.yaml"
        path.write_text("kiosk:\n  content_screens: [Gallery]\n")
        settings = KioskSettings.from_config(Config(str(path)))
        assert settings.attract_screen == "Attract"
        assert settings.boot_screen == "Kiosk"
        assert settings.play_mode == SelectionMode.SHUFFLE
        assert settings.activity_actions == DEFAULT_ACTIVITY_ACTIONS
        assert settings.scene_policies == ()

    def test_unknown_play_mode_falls_back(self, tmp_path, caplog):
        """Test an unknown play mode falls back to shuffle with a warning."""
        path = tmp_path / "bad_mode.yaml"
        path.write_text("kiosk:\n  play_mode: sideways\n  content_screens: [Gallery]\n")
        settings = KioskSettings.from_config(Config(str(path)))
        assert settings.play_mode == SelectionMode.SHUFFLE
        assert "Unknown play mode" in caplog.text

    def test_empty_boot_screen(self, tmp_path):
        """Test that an empty boot screen disables the boot step."""
        path = tmp_path / "no_boot.yaml"
        path.write_text("kiosk:\n  boot_screen: ''\n  content_screens: [Gallery]\n")
        settings = KioskSettings.from_config(Config(str(path)))
        assert settings.boot_screen is None

    def test_no_content_warns(self, tmp_path, caplog):
        """Test that an empty content list is tolerated with a warning."""
        path = tmp_path / "no_content.yaml"
        path.write_text("kiosk:\n  attract_screen: Attract\n")
        settings = KioskSettings.from_config(Config(str(path)))
        assert settings.content_screens == ()
        assert "No content screens configured" in caplog.text


class TestGetConfig:
    """Tests for the process-wide config accessor."""

    def test_returns_same_instance(self, config_file, monkeypatch):
        """Test that the first call's config is reused."""
        monkeypatch.setattr('src.common.config._global_config', None)
        first = get_config(str(config_file))
        second = get_config()
        assert first is second
        assert second.get('kiosk.attract_screen') == "Lobby"


class TestActivityActions:
    """Tests for the input.activity_actions setting."""

    def _settings(self, tmp_path, body):
        path = tmp_path / "actions.yaml"
        path.write_text("kiosk:\n  content_screens: [Gallery]\ninput:\n" + body)
        return KioskSettings.from_config(Config(str(path)))

    def test_empty_value_uses_defaults(self, tmp_path):
        """Test that an empty activity_actions key falls back to defaults."""
        settings = self._settings(tmp_path, "  activity_actions:\n")
        assert settings.activity_actions == DEFAULT_ACTIVITY_ACTIONS

    def test_single_name(self, tmp_path):
        """Test that a bare action name is one action, not its letters."""
        settings = self._settings(tmp_path, "  activity_actions: Start\n")
        assert settings.activity_actions == ("Start",)

    def test_list(self, tmp_path):
        """Test an explicit list."""
        settings = self._settings(tmp_path, "  activity_actions: [South, Dpad]\n")
        assert settings.activity_actions == ("South", "Dpad")

    def test_min_reset_interval(self, tmp_path):
        """Test the reset throttle setting and its default."""
        assert self._settings(tmp_path, "  grace_seconds: 0.35\n").min_reset_interval == 0.25
        settings = self._settings(tmp_path, "  min_reset_interval: 1.5\n")
        assert settings.min_reset_interval == 1.5
