"""Command line entry point for the task notifier."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import ValidationError

from task_notifier.config.environment import EnvironmentConfig, require_smtp
from task_notifier.config.exceptions import ConfigurationError
from task_notifier.config.loader import load_config
from task_notifier.config.models import AppConfig
from task_notifier.events import EventBus
from task_notifier.logging import get_logger
from task_notifier.logging.config import configure_logging
from task_notifier.notifications import (
    DatabaseInspectionStore,
    NotificationTrigger,
    build_backend,
    build_worker,
)
from task_notifier.persistence.database import close_database, init_database
from task_notifier.persistence.exceptions import PersistenceError
from task_notifier.scheduler import SchedulerService
from task_notifier.tasks import OwnerService, TaskService
from task_notifier.utils.timestamps import format_timestamp

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    env_config.log_level = env_config.log_level.upper()
    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="task-notifier",
        description="Task Notifier - notify owners when tasks are created",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    add_owner = subparsers.add_parser("add-owner", help="Register a task owner")
    add_owner.add_argument("name", help="Owner display name")
    add_owner.add_argument("email", help="Owner email address (may be empty)")

    create_task = subparsers.add_parser("create-task", help="Create a task and notify its owner")
    create_task.add_argument("owner_id", type=int, help="Owning owner id")
    create_task.add_argument("content", help="Task content")

    worker = subparsers.add_parser("worker", help="Deliver deferred notifications")
    worker.add_argument(
        "--once",
        action="store_true",
        help="Drain the queue once and exit instead of running on an interval",
    )

    mailbox = subparsers.add_parser("mailbox", help="Inspect captured notifications")
    mailbox_commands = mailbox.add_subparsers(dest="mailbox_command", required=True)
    mailbox_list = mailbox_commands.add_parser("list", help="List captured notifications")
    mailbox_list.add_argument("--recipient", default=None, help="Only show mail for this address")
    mailbox_show = mailbox_commands.add_parser("show", help="Show one captured notification")
    mailbox_show.add_argument("job_id", help="Notification job id")

    return parser


def cmd_add_owner(args, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    owner = OwnerService().register_owner(args.name, args.email)
    print(f"Owner {owner.id} registered: {owner.name} <{owner.email}>")
    return 0


def cmd_create_task(args, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    bus = EventBus()
    NotificationTrigger(build_backend(app_config, env_config)).register(bus)

    result = TaskService(bus).create_task(args.owner_id, args.content)
    print(f"Task {result.task.id} created")

    if result.notification_error is not None:
        print(
            f"Warning: owner was not notified: {result.notification_error}",
            file=sys.stderr,
        )
    elif result.job is not None:
        print(f"Notification {result.job.id} {result.job.status.value}")
    return 0


def cmd_worker(args, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    require_smtp(env_config)
    worker = build_worker(app_config, env_config)

    if args.once:
        result = worker.run_once()
        print(
            f"{result.delivered} delivered, {result.failed} failed, "
            f"{result.duplicates} duplicates"
        )
        return 1 if result.failed else 0

    shutdown_event = threading.Event()
    scheduler_service = SchedulerService(
        worker_callable=worker.run_once,
        interval_seconds=app_config.delivery.worker_interval_seconds,
        shutdown_event=shutdown_event,
    )

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        scheduler_service.shutdown(wait=False)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler_service.start()
    logger.info(
        "Worker started. Press Ctrl+C to stop",
        extra={"event": "service.worker_mode.started"},
    )

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info(
            "Keyboard interrupt received, shutting down",
            extra={"event": "service.keyboard_interrupt"},
        )
        scheduler_service.shutdown(wait=False)
    return 0


def cmd_mailbox(args, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    store = DatabaseInspectionStore()

    if args.mailbox_command == "list":
        records = store.list(recipient=args.recipient)
        if not records:
            print("Mailbox is empty")
            return 0
        for record in records:
            print(
                f"{record.sequence:>4}  {format_timestamp(record.captured_at)}  "
                f"{record.job_id}  {record.recipient}  {record.subject}"
            )
        return 0

    record = store.get(args.job_id)
    if record is None:
        print(f"No captured notification with id {args.job_id}", file=sys.stderr)
        return 1

    print(f"Job-Id: {record.job_id}")
    print(f"To: {record.recipient}")
    print(f"Subject: {record.subject}")
    print(f"Created: {format_timestamp(record.created_at)}")
    print(f"Captured: {format_timestamp(record.captured_at)}")
    print()
    print(record.text_body)
    return 0


COMMANDS = {
    "add-owner": cmd_add_owner,
    "create-task": cmd_create_task,
    "worker": cmd_worker,
    "mailbox": cmd_mailbox,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the task notifier CLI.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )
        logger.debug(
            "Task notifier starting",
            extra={
                "event": "service.starting",
                "command": args.command,
                "delivery_strategy": app_config.delivery.strategy,
            },
        )

        init_database(env_config.database_url)
        try:
            return COMMANDS[args.command](args, app_config, env_config)
        finally:
            close_database()
            logger.debug(
                "Task notifier stopped",
                extra={
                    "event": "service.stopping",
                    "uptime_seconds": round(time.time() - start_time, 2),
                },
            )

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except ValidationError as e:
        print(f"Invalid input: {e}", file=sys.stderr)
        return 2
    except PersistenceError as e:
        print(f"Database error: {e}", file=sys.stderr)
        logger.error(
            f"Database error: {e}",
            extra={"event": "database.error", "error_type": type(e).__name__},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error",
            extra={"event": "service.failed", "error_type": type(e).__name__},
            exc_info=True,
        )
        return 1


if __name__ == "__main__":
    sys.exit(main())
