"""Scheduler service that drains the notification queue on an interval."""

import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from task_notifier.logging import get_logger

logger = get_logger(__name__, component="scheduler")

JOB_ID = "notification-delivery"


class SchedulerService:
    """
    Runs the delivery worker periodically on an APScheduler BackgroundScheduler.

    The worker runs in a scheduler thread so the main thread stays free to
    handle signals and coordinate shutdown.
    """

    def __init__(
        self,
        worker_callable: Callable[[], object],
        interval_seconds: int,
        shutdown_event: Optional[threading.Event] = None,
    ):
        """
        Args:
            worker_callable: Called on each run, e.g. ``DeliveryWorker.run_once``
            interval_seconds: Seconds between runs
            shutdown_event: Set on shutdown so the main thread can stop waiting
        """
        self.worker_callable = worker_callable
        self.interval_seconds = interval_seconds
        self.shutdown_event = shutdown_event

        self.scheduler = BackgroundScheduler(
            job_defaults={
                "max_instances": 1,  # a slow drain must not overlap the next one
                "coalesce": True,
                "misfire_grace_time": interval_seconds,
            },
            timezone=timezone.utc,
        )

    def start(self) -> None:
        """Register the delivery job and start the scheduler.

        The first run happens immediately, then every ``interval_seconds``.
        """
        next_run = datetime.now(timezone.utc)
        self.scheduler.add_job(
            func=self.worker_callable,
            trigger=IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc),
            id=JOB_ID,
            name="Notification delivery",
            replace_existing=True,
            next_run_time=next_run,
        )
        self.scheduler.start()

        logger.info(
            f"Scheduler started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "next_run_time": next_run.isoformat(),
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        logger.info(
            "Shutting down scheduler",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        if self.shutdown_event:
            self.shutdown_event.set()

        logger.info("Scheduler shutdown complete", extra={"event": "scheduler.stopped"})

    def trigger_now(self):
        """Run the worker synchronously in the current thread."""
        logger.info("Triggering immediate delivery run", extra={"event": "scheduler.trigger_now"})
        return self.worker_callable()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None
