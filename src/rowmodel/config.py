"""
RowModel Configuration

Process-wide settings: the defaults entities and collections fall back to
(invalid-value policy, cross-link removal mode, key type) and logging.
Settings come from code, a dictionary, a JSON or YAML file or ``ROWMODEL_*``
environment variables.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .core.exceptions import ConfigurationError
from .core.fields import InvalidFieldBehavior
from .core.keys import KeyType
from .core.xlink import XLinkRemoveMode


class Environment(Enum):
    """Deployment environment; selects debug and log level defaults"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


# environment -> (debug, log level)
_ENVIRONMENT_DEFAULTS = {
    Environment.DEVELOPMENT: (True, "DEBUG"),
    Environment.TESTING: (False, "WARNING"),
    Environment.PRODUCTION: (False, "INFO"),
}


@dataclass
class LoggingConfig:
    """Level and format handed to ``logging.basicConfig``"""
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


@dataclass
class EntityConfig:
    """Defaults applied to entities and collections that do not override them"""
    invalid_field_behavior: InvalidFieldBehavior = InvalidFieldBehavior.FIX_INVALID_VALUES
    default_remove_mode: XLinkRemoveMode = XLinkRemoveMode.LINK_RECORD_ONLY
    primary_key_type: KeyType = KeyType.GUID


_ENTITY_ENUMS = {
    "invalid_field_behavior": InvalidFieldBehavior,
    "default_remove_mode": XLinkRemoveMode,
    "primary_key_type": KeyType,
}


def _enum_value(enum_type, value):
    # accepts a member, its value or its (case-insensitive) name
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        if isinstance(value, str) and value.upper() in enum_type.__members__:
            return enum_type[value.upper()]
        raise ConfigurationError(f"Invalid {enum_type.__name__} value: {value!r}") from None


@dataclass
class ApplicationConfig:
    """RowModel settings for one process"""
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = False
    entity: EntityConfig = field(default_factory=EntityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    custom: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def for_environment(cls, environment: Environment) -> 'ApplicationConfig':
        """Settings with the debug flag and log level of ``environment``"""
        debug, level = _ENVIRONMENT_DEFAULTS[environment]
        return cls(environment=environment, debug=debug, logging=LoggingConfig(level=level))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ApplicationConfig':
        """
        Build settings from a dictionary shaped like ``to_dict()`` output.

        Enum settings accept values or member names.

        Raises:
            ConfigurationError: An enum setting has an unknown value
        """
        config = cls.for_environment(_enum_value(Environment, data.get("environment", "development")))
        if "debug" in data:
            config.debug = bool(data["debug"])

        for name, value in data.get("logging", {}).items():
            if hasattr(config.logging, name):
                setattr(config.logging, name, value)

        for name, value in data.get("entity", {}).items():
            if name in _ENTITY_ENUMS:
                setattr(config.entity, name, _enum_value(_ENTITY_ENUMS[name], value))

        config.custom.update(data.get("custom", {}))
        return config

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'ApplicationConfig':
        """Build settings from a JSON or YAML file (see ``from_dict``)"""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"No RowModel settings at {path}")

        if path.suffix == ".json":
            with open(path) as fh:
                data = json.load(fh)
        elif path.suffix in (".yml", ".yaml"):
            import yaml
            with open(path) as fh:
                data = yaml.safe_load(fh) or {}
        else:
            raise ValueError(f"RowModel settings must be JSON or YAML, got '{path.suffix}'")

        return cls.from_dict(data)

    @classmethod
    def from_environment(cls) -> 'ApplicationConfig':
        """
        Build settings from environment variables:

            ROWMODEL_ENV                      development | testing | production
            ROWMODEL_DEBUG                    true | false
            ROWMODEL_LOG_LEVEL                any logging level name
            ROWMODEL_INVALID_FIELD_BEHAVIOR   fix | ignore | reject
        """
        config = cls.for_environment(_enum_value(Environment, os.getenv("ROWMODEL_ENV", "development")))

        debug = os.getenv("ROWMODEL_DEBUG")
        if debug:
            config.debug = debug.lower() == "true"

        level = os.getenv("ROWMODEL_LOG_LEVEL")
        if level:
            config.logging.level = level.upper()

        behavior = os.getenv("ROWMODEL_INVALID_FIELD_BEHAVIOR")
        if behavior:
            config.entity.invalid_field_behavior = _enum_value(InvalidFieldBehavior, behavior)

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Plain, JSON-compatible form accepted by ``from_dict``"""
        return {
            "environment": self.environment.value,
            "debug": self.debug,
            "entity": {name: getattr(self.entity, name).value for name in _ENTITY_ENUMS},
            "logging": {"level": self.logging.level, "format": self.logging.format},
            "custom": dict(self.custom),
        }


_active_config: Optional[ApplicationConfig] = None


def set_config(config: Optional[ApplicationConfig]) -> None:
    """Install the active settings; ``None`` re-reads the environment on next use."""
    global _active_config
    _active_config = config


def get_config() -> ApplicationConfig:
    """Active settings, built from the environment on first use."""
    global _active_config
    if _active_config is None:
        _active_config = ApplicationConfig.from_environment()
    return _active_config


def configure_logging(config: Optional[ApplicationConfig] = None) -> None:
    """Apply the logging section of ``config`` (the active settings if omitted)."""
    config = config or get_config()
    logging.basicConfig(level=config.logging.level, format=config.logging.format)
    logging.getLogger("rowmodel").setLevel(config.logging.level)


__all__ = [
    "ApplicationConfig", "Environment", "EntityConfig", "LoggingConfig",
    "set_config", "get_config", "configure_logging",
]
