"""Configuration classes for filtered fragment building.

This module provides configuration objects for the event source adapters and
the builder engine, plus an immutable aggregate with presets and JSON
round-tripping.
"""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

_COMPONENTS = ("source", "builder", "global_")
# Override prefixes accepted in place of a component field name
_COMPONENT_ALIASES = {"global": "global_"}


@dataclass
class EventSourceConfig:
    """Configuration for turning XML input into an event stream."""

    buffer_size: int = 8192
    expand_entities: bool = False
    namespace_aware: bool = True
    coalesce_text: bool = True

    def __post_init__(self) -> None:
        """Validate event source configuration."""
        if self.buffer_size <= 0:
            raise ValueError("buffer_size must be > 0")


@dataclass
class BuilderConfig:
    """Configuration for the filtered tree builder engine."""

    max_depth: int = 1000
    # Offer include_element() to the descendants of rejected elements
    scan_rejected_subtrees: bool = False
    collect_metrics: bool = True

    def __post_init__(self) -> None:
        """Validate builder configuration."""
        if self.max_depth <= 0:
            raise ValueError("max_depth must be > 0")


@dataclass
class GlobalConfig:
    """Global configuration settings that apply across all components."""

    logging_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    enable_correlation_tracking: bool = True

    def __post_init__(self) -> None:
        """Validate global configuration."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.logging_level not in valid_levels:
            raise ValueError(f"logging_level must be one of {valid_levels}")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class FragmentBuilderConfig:
    """Complete configuration for building filtered fragments.

    Immutable, so a single instance can be shared by builds running on
    different threads.
    """

    source: EventSourceConfig = field(default_factory=EventSourceConfig)
    builder: BuilderConfig = field(default_factory=BuilderConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    # Metadata
    version: str = "1.0.0"
    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            self.source.__post_init__()
            self.builder.__post_init__()
            self.global_.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def override(self, **kwargs: Any) -> "FragmentBuilderConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Keyword arguments for configuration fields to override

        Returns:
            New FragmentBuilderConfig instance with overrides applied

        Example:
            >>> config = FragmentBuilderConfig()
            >>> new_config = config.override(
            ...     builder__max_depth=64,
            ...     source__buffer_size=65536
            ... )
        """
        nested_overrides: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                component = _COMPONENT_ALIASES.get(component, component)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                        suggestions=[f"Use one of {list(_COMPONENTS)}"],
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                nested_overrides[key] = value

        new_fields: Dict[str, Any] = {}
        for field_name in _COMPONENTS:
            current_config = getattr(self, field_name)
            if isinstance(nested_overrides.get(field_name), dict):
                try:
                    new_fields[field_name] = replace(
                        current_config, **nested_overrides[field_name]
                    )
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=field_name) from e

        for key, value in nested_overrides.items():
            if key not in _COMPONENTS:
                new_fields[key] = value

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, Enum):
                return obj.name
            if isinstance(obj, (list, tuple, set)):
                return [_dataclass_to_dict(item) for item in obj]
            if isinstance(obj, dict):
                return {key: _dataclass_to_dict(value) for key, value in obj.items()}
            return obj

        result = _dataclass_to_dict(self)
        if not isinstance(result, dict):
            raise ConfigValidationError("Configuration serialization failed")
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FragmentBuilderConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in configuration files do not
        silently fall back to defaults.
        """
        component_classes = {
            "source": EventSourceConfig,
            "builder": BuilderConfig,
            "global_": GlobalConfig,
        }
        field_values: Dict[str, Any] = {}
        for key, value in data.items():
            if key in component_classes:
                component_class = component_classes[key]
                unknown = set(value) - set(component_class.__dataclass_fields__)
                if unknown:
                    raise ConfigValidationError(
                        f"Unknown fields for {key}: {sorted(unknown)}",
                        field_name=key,
                    )
                try:
                    field_values[key] = component_class(**value)
                except ValueError as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            elif key in cls.__dataclass_fields__:
                field_values[key] = value
            else:
                raise ConfigValidationError(
                    f"Unknown configuration field: {key}", field_name=key
                )
        return cls(**field_values)

    @classmethod
    def from_json(cls, json_str: str) -> "FragmentBuilderConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def default(cls) -> "FragmentBuilderConfig":
        """Create the default configuration."""
        return cls(name="default")

    @classmethod
    def deep_scan(cls) -> "FragmentBuilderConfig":
        """Create preset that selects matching elements at any depth."""
        return cls(
            builder=BuilderConfig(scan_rejected_subtrees=True),
            name="deep_scan",
            description=(
                "Rejected elements are scanned so nested elements can be "
                "selected as fragments"
            ),
        )

    @classmethod
    def large_documents(cls) -> "FragmentBuilderConfig":
        """Create preset for large, deeply nested documents."""
        return cls(
            source=EventSourceConfig(buffer_size=65536),
            builder=BuilderConfig(max_depth=10000, collect_metrics=False),
            name="large_documents",
            description="Larger read buffer and depth limit, metrics disabled",
        )

    @classmethod
    def strict(cls) -> "FragmentBuilderConfig":
        """Create preset with a tight depth limit for untrusted input."""
        return cls(
            builder=BuilderConfig(max_depth=64),
            global_=GlobalConfig(logging_level="WARNING"),
            name="strict",
            description="Low depth limit for untrusted documents",
        )
