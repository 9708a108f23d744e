"""Environment variable loading and validation."""

import os
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError

VALID_STRATEGIES = ("immediate", "deferred", "captured")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_pass: Optional[str] = None,
        log_level: Optional[str] = None,
        database_url: Optional[str] = None,
        environment: Optional[str] = None,
        delivery_strategy: Optional[str] = None,
    ):
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.log_level = log_level
        self.database_url = database_url or "sqlite:///./data/task_notifier.db"
        self.environment = environment or "local"
        self.delivery_strategy = delivery_strategy

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def has_smtp(self) -> bool:
        return bool(self.smtp_host and self.smtp_port)


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional at this stage; whether SMTP settings are
    required depends on the delivery strategy and is checked by
    ``require_smtp``.

    - SMTP_HOST / SMTP_PORT: transmission provider endpoint
    - SMTP_USER / SMTP_PASS: credentials (both or neither)
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL
    - DATABASE_URL: default sqlite:///./data/task_notifier.db
    - ENVIRONMENT: production, staging, local (default local)
    - DELIVERY_STRATEGY: overrides ``delivery.strategy`` from the config file

    Raises:
        ConfigurationError: If any provided value is invalid
    """
    errors = []

    smtp_host = os.getenv("SMTP_HOST")
    smtp_port_str = os.getenv("SMTP_PORT")
    smtp_user = os.getenv("SMTP_USER")
    smtp_pass = os.getenv("SMTP_PASS")
    log_level = os.getenv("LOG_LEVEL")
    database_url = os.getenv("DATABASE_URL")
    environment = os.getenv("ENVIRONMENT")
    delivery_strategy = os.getenv("DELIVERY_STRATEGY")

    smtp_port = None
    if smtp_port_str:
        try:
            smtp_port = int(smtp_port_str)
            if smtp_port < 1 or smtp_port > 65535:
                errors.append(f"Invalid SMTP_PORT: {smtp_port}. Must be between 1 and 65535.")
        except ValueError:
            errors.append(f"Invalid SMTP_PORT: '{smtp_port_str}'. Must be a valid integer.")

    if smtp_user and not smtp_pass:
        errors.append("SMTP_USER is set but SMTP_PASS is not. Both must be set for authentication.")
    elif smtp_pass and not smtp_user:
        errors.append("SMTP_PASS is set but SMTP_USER is not. Both must be set for authentication.")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if delivery_strategy:
        delivery_strategy = delivery_strategy.strip().lower()
        if delivery_strategy not in VALID_STRATEGIES:
            errors.append(
                f"Invalid DELIVERY_STRATEGY: '{delivery_strategy}'. "
                f"Must be one of: {', '.join(VALID_STRATEGIES)}"
            )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your settings",
                "Verify SMTP_PORT is a number between 1 and 65535",
            ],
        )

    return EnvironmentConfig(
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_pass=smtp_pass,
        log_level=log_level,
        database_url=database_url,
        environment=environment,
        delivery_strategy=delivery_strategy,
    )


def require_smtp(env_config: EnvironmentConfig) -> None:
    """Fail unless SMTP_HOST and SMTP_PORT are both configured."""
    missing = []
    if not env_config.smtp_host:
        missing.append("Missing required environment variable: SMTP_HOST")
    if not env_config.smtp_port:
        missing.append("Missing required environment variable: SMTP_PORT")

    if missing:
        raise ConfigurationError(
            "SMTP settings are required for immediate and deferred delivery",
            errors=missing,
            suggestions=["Set SMTP_HOST and SMTP_PORT, or use DELIVERY_STRATEGY=captured"],
        )


def is_valid_email(email: str) -> bool:
    """Syntax-only address check (no DNS lookups)."""
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True
