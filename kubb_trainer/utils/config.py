"""
Application configuration management for Kubb Trainer.

Handles settings storage and watch connection preferences.
Settings are persisted to ~/.kubb_trainer/config.json.
"""

import json
import os
from pathlib import Path
from typing import Optional

from kubb_trainer.utils.constants import (
    DEFAULT_AROUND_THE_PITCH_TARGET,
    DEFAULT_BRIDGE_HOST,
    DEFAULT_BRIDGE_PORT,
)


class Config:
    """Manages application settings with JSON file persistence."""

    _APP_DIR = Path.home() / ".kubb_trainer"
    _CONFIG_FILE = _APP_DIR / "config.json"
    _DB_PATH = _APP_DIR / "kubb_trainer.db"

    _defaults = {
        "watch_mode": "auto",        # "auto", "bridge", "mock"
        "bridge_host": DEFAULT_BRIDGE_HOST,
        "bridge_port": DEFAULT_BRIDGE_PORT,
        "mock_preset": "club_player",
        "mock_interval": [2.0, 5.0],  # seconds between simulated throws
        "default_target": 60,         # 8-Meter batons
        "default_target_score": DEFAULT_AROUND_THE_PITCH_TARGET,
        "default_inkast_rounds": 10,
        "default_game_phase": "all",
        "haptics_enabled": True,
    }

    _instance: Optional["Config"] = None
    _settings: dict

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._settings = {}
            cls._instance._load()
        return cls._instance

    def _load(self):
        """Load settings from disk, merging with defaults."""
        self._APP_DIR.mkdir(parents=True, exist_ok=True)

        if self._CONFIG_FILE.exists():
            try:
                with open(self._CONFIG_FILE) as f:
                    saved = json.load(f)
                # Merge: defaults first, then saved values override
                self._settings = {**self._defaults, **saved}
            except (json.JSONDecodeError, IOError):
                self._settings = dict(self._defaults)
        else:
            self._settings = dict(self._defaults)

    def save(self):
        """Persist current settings to disk."""
        self._APP_DIR.mkdir(parents=True, exist_ok=True)
        with open(self._CONFIG_FILE, "w") as f:
            json.dump(self._settings, f, indent=2)

    def get(self, key: str, default=None):
        """Get a setting value."""
        return self._settings.get(key, default)

    def set(self, key: str, value):
        """Set a setting value and save."""
        self._settings[key] = value
        self.save()

    @classmethod
    def get_bridge_address(cls) -> tuple[str, int]:
        """Get the watch bridge (host, port) from environment or config."""
        instance = cls()
        # Environment variable takes priority
        env_addr = os.environ.get("KUBB_WATCH_BRIDGE", "")
        if env_addr and ":" in env_addr:
            host, _, port = env_addr.rpartition(":")
            if port.isdigit():
                return host, int(port)
        return (
            instance.get("bridge_host", DEFAULT_BRIDGE_HOST),
            int(instance.get("bridge_port", DEFAULT_BRIDGE_PORT)),
        )

    @classmethod
    def get_db_path(cls) -> Path:
        """Get the SQLite database file path."""
        instance = cls()
        instance._APP_DIR.mkdir(parents=True, exist_ok=True)
        return instance._DB_PATH

    @classmethod
    def get_app_dir(cls) -> Path:
        """Get the application data directory."""
        instance = cls()
        instance._APP_DIR.mkdir(parents=True, exist_ok=True)
        return instance._APP_DIR
