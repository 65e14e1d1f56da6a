import os
from dataclasses import dataclass, field
from typing import Dict, List

import yaml

from shapetrack.observability.logger import get_logger
from shapetrack.utils.exceptions import ConfigurationError


DEFAULT_IGNORED_FIELDS = ["id", "parent", "children", "internal"]


@dataclass
class InferenceSettings:
    """
    Settings shared by every node type tracked in a registry.
    """
    id_field: str = "id"
    ignored_fields: List[str] = field(
        default_factory=lambda: list(DEFAULT_IGNORED_FIELDS)
    )
    report_conflicts: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: Dict) -> "InferenceSettings":
        if data is None:
            return cls()

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Settings must be a mapping, got {type(data).__name__}"
            )

        allowed = {"id_field", "ignored_fields", "report_conflicts", "log_level"}
        unknown = set(data) - allowed
        if unknown:
            raise ConfigurationError(
                f"Unknown settings: {sorted(unknown)}. "
                f"Allowed values: {sorted(allowed)}"
            )

        settings = cls(**data)
        settings.validate()
        return settings

    def validate(self):
        if not isinstance(self.id_field, str) or not self.id_field:
            raise ConfigurationError("id_field must be a non-empty string")

        if not isinstance(self.ignored_fields, (list, tuple, set)) or not all(
            isinstance(name, str) for name in self.ignored_fields
        ):
            raise ConfigurationError("ignored_fields must be a list of strings")

        if not isinstance(self.report_conflicts, bool):
            raise ConfigurationError("report_conflicts must be a boolean")

        if str(self.log_level).upper() not in {
            "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"
        }:
            raise ConfigurationError(f"Invalid log_level '{self.log_level}'")


def load_settings(path: str) -> InferenceSettings:
    """
    Load settings from a YAML document.

    The document may hold the settings at the top level or under an
    `inference` key.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if isinstance(data, dict) and "inference" in data:
        data = data["inference"]

    settings = InferenceSettings.from_dict(data)

    # Only a document that names a level changes the package logger
    if isinstance(data, dict) and "log_level" in data:
        get_logger().setLevel(settings.log_level.upper())

    return settings
