"""Configuration management for the task notifier."""

from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, validate_strategy_for_environment
from .models import (
    AppConfig,
    DeliverySettings,
    DeliveryStrategy,
    LogFormat,
    LoggingConfig,
    LogLevel,
)

__all__ = [
    # Loader functions
    "load_config",
    "load_environment_config",
    "validate_strategy_for_environment",
    # Configuration models
    "AppConfig",
    "DeliverySettings",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "DeliveryStrategy",
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
