import os
import yaml

from settings_schema import SettingsSchema, validate_settings


class YamlConfig:
    """Load and save engine settings to a YAML file."""

    def __init__(self, path: str = "settings.yaml") -> None:
        self.path = path

    def load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} must contain a mapping")
        return data

    def save(self, data: dict) -> None:
        validate_settings(data)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(dict(data), f)


def load_settings(path: str | None = None) -> SettingsSchema:
    """Return validated settings from ``path`` or ``$TRAINING_SETTINGS``."""
    path = path or os.environ.get("TRAINING_SETTINGS", "settings.yaml")
    return validate_settings(YamlConfig(path).load())
