"""
Tests for the settings singleton.
"""

import pytest

from kubb_trainer.utils.config import Config
from kubb_trainer.utils.constants import DEFAULT_BRIDGE_PORT


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(Config, "_APP_DIR", tmp_path)
    monkeypatch.setattr(Config, "_CONFIG_FILE", tmp_path / "config.json")
    monkeypatch.setattr(Config, "_DB_PATH", tmp_path / "kubb_trainer.db")
    monkeypatch.setattr(Config, "_instance", None)
    monkeypatch.delenv("KUBB_WATCH_BRIDGE", raising=False)
    return tmp_path


class TestConfig:

    def test_defaults(self, config_dir):
        config = Config()
        assert config.get("watch_mode") == "auto"
        assert Config.get_bridge_address() == ("127.0.0.1", DEFAULT_BRIDGE_PORT)

    def test_saved_values_override_defaults(self, config_dir):
        Config().set("bridge_port", 50000)
        Config._instance = None
        config = Config()
        assert config.get("bridge_port") == 50000
        assert config.get("watch_mode") == "auto"

    def test_environment_overrides_bridge(self, config_dir, monkeypatch):
        monkeypatch.setenv("KUBB_WATCH_BRIDGE", "10.0.0.5:4000")
        assert Config.get_bridge_address() == ("10.0.0.5", 4000)

    def test_corrupt_file_uses_defaults(self, config_dir):
        (config_dir / "config.json").write_text("{broken")
        assert Config().get("default_target") == 60

    def test_db_path_in_app_dir(self, config_dir):
        assert Config.get_db_path() == config_dir / "kubb_trainer.db"
