"""Factory functions wiring the delivery backend and worker from configuration."""

import logging
from typing import Optional

from task_notifier.config.environment import EnvironmentConfig
from task_notifier.config.models import AppConfig, DeliveryStrategy

from .backend import DeliveryBackend, DeliveryConfig, Transmitter
from .capture import DatabaseInspectionStore
from .queue import DatabaseWorkerQueue
from .smtp_client import SMTPTransmitter
from .worker import DeliveryWorker

logger = logging.getLogger(__name__)


def build_backend(
    app_config: AppConfig,
    env_config: EnvironmentConfig,
    transmitter: Optional[Transmitter] = None,
) -> DeliveryBackend:
    """Create the DeliveryBackend for the configured strategy.

    Only the handle the strategy needs is built: an SMTP transmitter for
    immediate, the ``notification_jobs`` queue for deferred and the
    ``delivery_records`` store for captured. The database must already be
    initialized for the latter two.

    Args:
        app_config: Loaded application configuration
        env_config: Environment configuration (SMTP settings)
        transmitter: Overrides the SMTP transmitter (immediate only)

    Raises:
        ConfigurationError: If the strategy's handle cannot be built
    """
    strategy = DeliveryStrategy(app_config.delivery.strategy)
    config = DeliveryConfig(strategy=strategy)

    if strategy == DeliveryStrategy.IMMEDIATE:
        config.transmitter = transmitter or SMTPTransmitter(env_config, app_config.delivery)
    elif strategy == DeliveryStrategy.DEFERRED:
        config.worker_queue = DatabaseWorkerQueue()
    else:
        config.inspection_store = DatabaseInspectionStore()

    logger.debug(
        "Creating delivery backend",
        extra={"event": "delivery.backend.created", "delivery_strategy": strategy.value},
    )
    return DeliveryBackend(config)


def build_worker(
    app_config: AppConfig,
    env_config: EnvironmentConfig,
    transmitter: Optional[Transmitter] = None,
) -> DeliveryWorker:
    """Create a DeliveryWorker draining the durable queue over SMTP."""
    return DeliveryWorker(
        queue=DatabaseWorkerQueue(lease_seconds=app_config.delivery.claim_lease_seconds),
        transmitter=transmitter or SMTPTransmitter(env_config, app_config.delivery),
        settings=app_config.delivery,
    )
