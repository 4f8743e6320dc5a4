"""Tests for config_manager module."""

import pytest

from ssmrun.config_manager import ConfigManager, SsmrunConfig
from ssmrun.exceptions import ConfigError


class TestSsmrunConfig:
    """Test SsmrunConfig construction."""

    def test_defaults(self):
        """Defaults match the service waiter defaults."""
        config = SsmrunConfig()
        assert config.region is None
        assert config.max_wait_time == 600
        assert config.min_delay == 5
        assert config.max_delay == 120
        assert config.log_failed_invocations is True
        assert config.fanout_workers == 1

    def test_from_dict(self):
        """Known keys are read from a dictionary."""
        config = SsmrunConfig.from_dict(
            {"region": "eu-west-1", "max_wait_time": 900, "min_delay": 2.5, "fanout_workers": 4}
        )
        assert config.region == "eu-west-1"
        assert config.max_wait_time == 900
        assert config.min_delay == 2.5
        assert config.fanout_workers == 4

    @pytest.mark.parametrize(
        "data",
        [
            {"region": 42},
            {"max_wait_time": 0},
            {"max_wait_time": "600"},
            {"min_delay": -1},
            {"fanout_workers": True},
            {"log_failed_invocations": "yes"},
        ],
    )
    def test_invalid_values_raise(self, data):
        """Values of the wrong type raise ConfigError."""
        with pytest.raises(ConfigError):
            SsmrunConfig.from_dict(data)


class TestConfigManager:
    """Test loading the TOML file."""

    def test_missing_default_file_gives_defaults(self):
        """No config file is not an error."""
        assert ConfigManager.load_config() == SsmrunConfig()

    def test_loads_custom_path(self, tmp_path):
        """A custom TOML file is loaded."""
        path = tmp_path / "config.toml"
        path.write_text('region = "us-east-1"\nprofile = "ops"\nmax_delay = 30\n')

        config = ConfigManager.load_config(str(path))

        assert config.region == "us-east-1"
        assert config.profile == "ops"
        assert config.max_delay == 30

    def test_loads_default_path(self, tmp_path, monkeypatch):
        """The default file is used when no path is given."""
        path = tmp_path / "default.toml"
        path.write_text("log_failed_invocations = false\n")
        monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_FILE", path)

        assert ConfigManager.load_config().log_failed_invocations is False

    def test_missing_custom_path_raises(self, tmp_path):
        """An explicit path that does not exist is an error."""
        with pytest.raises(ConfigError, match="Config file not found"):
            ConfigManager.load_config(str(tmp_path / "nope.toml"))

    def test_invalid_toml_raises(self, tmp_path):
        """Malformed TOML raises ConfigError."""
        path = tmp_path / "config.toml"
        path.write_text("region = \n")

        with pytest.raises(ConfigError, match="Failed to load config"):
            ConfigManager.load_config(str(path))
