"""Configuration loading and validation for imagemill."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from imagemill.constants import (
    ASPECT_RATIO_OPTIONS,
    DEFAULT_CREDIT_FEE,
    DEFAULT_DEBOUNCE_MS,
    DEFAULT_DIMENSION,
    TRANSFORMATION_TYPES,
)
from imagemill.exceptions import ConfigError
from imagemill.models import AspectRatioPreset, TransformationType


def _parse_int(
    value: Any,
    field: str,
    minimum: int = 1,
) -> int:
    """Parse an integer config value with a lower bound.

    Args:
        value: The raw YAML value.
        field: Dotted field name for error context.
        minimum: Smallest accepted value.

    Returns:
        The parsed integer.

    Raises:
        ConfigError: If the value is not an integer or is below `minimum`.
    """
    # bool is an int subclass; "credit_fee: yes" is a typo, not a fee
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(
            f"Invalid value '{value}'",
            field=field,
            suggestion="Use a whole number",
        )
    if value < minimum:
        raise ConfigError(
            f"Value {value} is below the minimum of {minimum}",
            field=field,
        )
    return value


@dataclass
class Settings:
    """Global settings for the transformation engine."""
    credit_fee: int = DEFAULT_CREDIT_FEE
    debounce_delay_ms: int = DEFAULT_DEBOUNCE_MS
    default_dimension: int = DEFAULT_DIMENSION
    cloud_name: str = "demo"
    delivery_base_url: str = "https://res.cloudinary.com"


@dataclass
class Config:
    """Root configuration object."""
    version: int = 1
    settings: Settings = field(default_factory=Settings)
    aspect_ratios: dict[str, AspectRatioPreset] = field(
        default_factory=lambda: dict(ASPECT_RATIO_OPTIONS)
    )
    transformation_types: dict[str, TransformationType] = field(
        default_factory=lambda: dict(TRANSFORMATION_TYPES)
    )

    def get_transformation_type(self, name: str) -> TransformationType:
        """Look up a transformation type by tag.

        Raises:
            ConfigError: If the tag is unknown
        """
        if name not in self.transformation_types:
            available = ", ".join(sorted(self.transformation_types))
            raise ConfigError(
                f"Unknown transformation type: '{name}'",
                suggestion=f"Available: {available}",
                context={"transformation_type": name},
            )
        return self.transformation_types[name]


def parse_settings(data: dict[str, Any]) -> Settings:
    """Parse the `settings` section."""
    defaults = Settings()
    return Settings(
        credit_fee=_parse_int(
            data.get("credit_fee", defaults.credit_fee), "settings.credit_fee", minimum=0
        ),
        debounce_delay_ms=_parse_int(
            data.get("debounce_delay_ms", defaults.debounce_delay_ms),
            "settings.debounce_delay_ms",
            minimum=0,
        ),
        default_dimension=_parse_int(
            data.get("default_dimension", defaults.default_dimension),
            "settings.default_dimension",
        ),
        cloud_name=str(data.get("cloud_name", defaults.cloud_name)),
        delivery_base_url=str(data.get("delivery_base_url", defaults.delivery_base_url)),
    )


def parse_aspect_ratio(key: str, data: dict[str, Any]) -> AspectRatioPreset:
    """Parse a single aspect-ratio preset entry."""
    if not isinstance(data, dict):
        raise ConfigError(
            f"Aspect ratio '{key}' must be a mapping",
            field=f"aspect_ratios.{key}",
        )
    for required in ("width", "height"):
        if required not in data:
            raise ConfigError(
                f"Aspect ratio '{key}' missing required '{required}' field",
                field=f"aspect_ratios.{key}",
            )
    return AspectRatioPreset(
        key=key,
        label=str(data.get("label", key)),
        width=_parse_int(data["width"], f"aspect_ratios.{key}.width"),
        height=_parse_int(data["height"], f"aspect_ratios.{key}.height"),
        aspect_ratio=str(data.get("aspect_ratio", key)),
    )


def parse_transformation_type(name: str, data: dict[str, Any]) -> TransformationType:
    """Parse a single transformation type entry."""
    if not isinstance(data, dict):
        raise ConfigError(
            f"Transformation type '{name}' must be a mapping",
            field=f"transformation_types.{name}",
        )
    config = data.get("config", {})
    if not isinstance(config, dict):
        raise ConfigError(
            "Default config must be a mapping of transform tag to parameters",
            field=f"transformation_types.{name}.config",
            suggestion="e.g. config: {sharpen: {strength: 50}}",
        )
    return TransformationType(
        type=name,
        title=str(data.get("title", name)),
        subtitle=str(data.get("subtitle", "")),
        config=config,
        auto_stage=bool(data.get("auto_stage", False)),
    )


def load_config(config_path: Path) -> Config:
    """Load and validate a configuration file.

    Presets and transformation types from the file are layered over the
    built-in tables, so a file only needs to list what it changes.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    # An empty file means "all defaults"
    if data is None:
        return Config()

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a YAML dictionary")

    settings = Settings()
    if "settings" in data:
        if not isinstance(data["settings"], dict):
            raise ConfigError("Section must be a mapping", field="settings")
        settings = parse_settings(data["settings"])

    config = Config(version=data.get("version", 1), settings=settings)

    for key, preset_data in (data.get("aspect_ratios") or {}).items():
        config.aspect_ratios[str(key)] = parse_aspect_ratio(str(key), preset_data)

    for name, type_data in (data.get("transformation_types") or {}).items():
        config.transformation_types[str(name)] = parse_transformation_type(str(name), type_data)

    return config
