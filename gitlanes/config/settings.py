"""
Settings management for gitlanes
"""

import copy
import json
from pathlib import Path
from typing import Any

from gitlanes.constants import DEFAULT_MAX_COMMITS, SETTINGS_FILE
from gitlanes.exceptions import ConfigError


class Settings:
    """Manages application settings"""

    DEFAULT_SETTINGS: dict[str, Any] = {
        "cache": {
            "ttl_seconds": 60,  # Layouts older than this are recomputed
            "max_size": 50,  # Number of layouts kept
            "fingerprint": "sampled",  # "sampled" (first/last 10 hashes) or "full"
        },
        "history": {"max_commits": DEFAULT_MAX_COMMITS},
        "view": {"zoom_step": 1.1},
        "logging": {"level": "WARNING"},
    }

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize settings"""
        if config_path is None:
            config_path = Path.home() / ".config" / SETTINGS_FILE

        self.config_path = config_path
        self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
        self.load()

    def load(self) -> None:
        """Load settings from file"""
        if not self.config_path.exists():
            return

        try:
            with open(self.config_path) as f:
                loaded = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(
                f"Cannot read settings: {e}", context={"path": str(self.config_path)}
            ) from e

        if not isinstance(loaded, dict):
            raise ConfigError(
                "Settings file must contain a JSON object",
                context={"path": str(self.config_path)},
            )
        # Merge with defaults to handle new settings
        self._merge_settings(self.settings, loaded)

    def save(self) -> None:
        """Save settings to file"""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w") as f:
            json.dump(self.settings, f, indent=2)

    def _merge_settings(self, base: dict[str, Any], updates: dict[str, Any]) -> None:
        """Recursively merge settings dictionaries"""
        for key, value in updates.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._merge_settings(base[key], value)
            else:
                base[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get a setting by dot-separated path (e.g., 'cache.max_size')"""
        value: Any = self.settings

        for part in path.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default

        return value

    def set(self, path: str, value: Any) -> None:
        """Set a setting by dot-separated path"""
        parts = path.split(".")
        target: Any = self.settings

        for part in parts[:-1]:
            if part not in target:
                target[part] = {}
            target = target[part]

        target[parts[-1]] = value

    def get_max_commits(self) -> int:
        """Get the number of commits to load from history (at least 1)."""
        try:
            max_commits = int(self.get("history.max_commits", DEFAULT_MAX_COMMITS))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid history.max_commits: {e}") from e
        return max(1, max_commits)

    def get_zoom_step(self) -> float:
        """Get the zoom multiplier applied per wheel notch."""
        try:
            step = float(self.get("view.zoom_step", 1.1))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid view.zoom_step: {e}") from e
        if step <= 1.0:
            raise ConfigError(f"view.zoom_step must be greater than 1, got {step}")
        return step

    def get_log_level(self) -> str:
        return str(self.get("logging.level", "WARNING")).upper()
