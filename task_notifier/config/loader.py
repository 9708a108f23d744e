"""Configuration loader for the task notifier."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from .environment import EnvironmentConfig, load_environment_config, require_smtp
from .exceptions import ConfigurationError
from .models import AppConfig, DeliveryStrategy
from .validators import check_for_warnings, emit_warnings


def load_config(config_path: Optional[Path] = None) -> tuple[AppConfig, EnvironmentConfig]:
    """
    Load and validate configuration from YAML file and environment variables.

    Config file lookup:
    1. Use provided config_path if given
    2. Try config.yaml in current directory
    3. Try ./config/config.yaml
    4. Fail with helpful error message

    DELIVERY_STRATEGY from the environment overrides ``delivery.strategy``.
    The resolved strategy is then checked against the environment: captured
    delivery is refused in production, and the transmitting strategies need
    SMTP settings.

    Returns:
        Tuple of (AppConfig, EnvironmentConfig)

    Raises:
        ConfigurationError: If configuration is invalid or file not found
    """
    config_file = _find_config_file(config_path)

    try:
        with open(config_file, "r") as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {e}",
            suggestions=[
                "Check YAML syntax in your config file",
                "Ensure proper indentation (use spaces, not tabs)",
            ],
        )
    except OSError as e:
        raise ConfigurationError(
            f"Failed to read configuration file: {e}",
            suggestions=[f"Ensure {config_file} exists and is readable"],
        )

    if config_dict is None:
        config_dict = {}
    if not isinstance(config_dict, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping at the top level",
            suggestions=["Copy config.example.yaml to config.yaml"],
        )

    warnings = check_for_warnings(config_dict)
    if warnings:
        emit_warnings(warnings)

    try:
        app_config = AppConfig.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            "Configuration validation failed",
            errors=_format_validation_errors(e),
            suggestions=[
                "Review config.example.yaml for correct format",
                "Verify field types match the expected schema",
            ],
        )

    env_config = load_environment_config()
    app_config = app_config.with_strategy(env_config.delivery_strategy)
    validate_strategy_for_environment(app_config, env_config)

    return app_config, env_config


def validate_strategy_for_environment(app_config: AppConfig, env_config: EnvironmentConfig) -> None:
    """Reject strategy/environment combinations that cannot work.

    Raises:
        ConfigurationError: Captured delivery in production, or a transmitting
            strategy without SMTP settings
    """
    strategy = DeliveryStrategy(app_config.delivery.strategy)

    if strategy is DeliveryStrategy.CAPTURED and env_config.is_production:
        raise ConfigurationError(
            "Captured delivery is not allowed when ENVIRONMENT=production",
            suggestions=["Use delivery.strategy 'immediate' or 'deferred' in production"],
        )

    if strategy in (DeliveryStrategy.IMMEDIATE, DeliveryStrategy.DEFERRED):
        require_smtp(env_config)


def _format_validation_errors(error: ValidationError) -> list[str]:
    errors = []
    for item in error.errors():
        field_path = " -> ".join(str(loc) for loc in item["loc"])
        if item["type"] == "missing":
            errors.append(f"Missing required field: {field_path}")
        elif "enum" in item["type"]:
            errors.append(f"Invalid value for '{field_path}': {item['msg']}")
        else:
            errors.append(f"{field_path}: {item['msg']}")
    return errors


def _find_config_file(config_path: Optional[Path] = None) -> Path:
    """Resolve the config file path.

    Raises:
        ConfigurationError: If no config file is found
    """
    if config_path:
        if not config_path.exists():
            raise ConfigurationError(
                f"Specified configuration file not found: {config_path}",
                suggestions=[f"Ensure {config_path} exists", "Check the path and try again"],
            )
        return config_path

    candidates = [
        Path("config.yaml"),
        Path("config") / "config.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    raise ConfigurationError(
        "Configuration file not found",
        errors=["Tried: config.yaml", "Tried: config/config.yaml"],
        suggestions=[
            "Copy config.example.yaml to config.yaml",
            "Use --config flag to specify a custom location",
        ],
    )
