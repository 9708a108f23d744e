"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class DeliveryStrategy(str, Enum):
    """How rendered notification jobs leave the process."""

    IMMEDIATE = "immediate"
    DEFERRED = "deferred"
    CAPTURED = "captured"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class DeliverySettings(BaseModel):
    """Mailer settings: strategy, sender identity and retry policy."""

    strategy: DeliveryStrategy = Field(
        DeliveryStrategy.CAPTURED,
        description="immediate, deferred or captured (non-production only)",
    )
    sender_name: str = Field("Task Notifier", min_length=1, description="From display name")
    sender_email: EmailStr = Field(
        "notifications@example.com", description="From address for outgoing mail"
    )
    use_tls: bool = Field(True, description="Use TLS/STARTTLS for the SMTP connection")
    max_retries: int = Field(
        3, ge=0, le=10, description="Retry attempts for transient failures (deferred only)"
    )
    retry_backoff_multiplier: float = Field(
        2.0, ge=1.0, le=5.0, description="Exponential backoff multiplier for retries"
    )
    retry_initial_delay: float = Field(
        5, ge=0, le=60, description="Initial retry delay in seconds"
    )
    worker_interval_seconds: int = Field(
        30, ge=1, le=3600, description="How often the deferred worker drains the queue"
    )
    claim_lease_seconds: int = Field(
        900,
        ge=60,
        le=86400,
        description="Seconds before another worker may take over an unfinished claim",
    )

    @field_validator("sender_name")
    @classmethod
    def strip_sender_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("sender_name cannot be empty")
        return stripped

    model_config = {"use_enum_values": True}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object loaded from ``config.yaml``."""

    delivery: DeliverySettings = Field(
        default_factory=DeliverySettings, description="Notification delivery settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    def with_strategy(self, strategy: Optional[str]) -> "AppConfig":
        """Return a copy whose delivery strategy is overridden by ``strategy``."""
        if not strategy:
            return self
        delivery = DeliverySettings.model_validate(
            {**self.delivery.model_dump(), "strategy": strategy}
        )
        return self.model_copy(update={"delivery": delivery})
