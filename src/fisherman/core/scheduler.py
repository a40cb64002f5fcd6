"""Periodic maintenance scheduler.

Runs housekeeping jobs such as analysis-cache purges and domain-list
reloads.  ``tick()`` is synchronous and takes an explicit *now*, so the
schedule can be driven from tests without threads; ``start()`` wraps it
in a daemon thread for long-running hosts.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class TaskResult:
    """Outcome of one task execution."""

    task_name: str
    success: bool
    duration_seconds: float
    message: str = ""
    timestamp: float = field(default_factory=time.time)


@dataclass
class MaintenanceTask:
    """A job that runs every ``interval_seconds``."""

    task_id: str
    name: str
    callback: Callable[[], Any]
    interval_seconds: float
    next_run_at: float = 0.0
    run_count: int = 0
    error_count: int = 0


class MaintenanceScheduler:
    """Runs registered tasks when they come due.

    Args:
        tick_interval: Seconds between ticks of the background thread.
    """

    def __init__(self, tick_interval: float = 1.0) -> None:
        self._tasks: dict[str, MaintenanceTask] = {}
        self._tick_interval = tick_interval
        self._running = False
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def add_task(
        self,
        name: str,
        callback: Callable[[], Any],
        interval_seconds: float,
        first_run_at: float = 0.0,
    ) -> MaintenanceTask:
        """Register a periodic task.  It first runs at *first_run_at*."""
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        task = MaintenanceTask(
            task_id=f"task-{uuid.uuid4().hex[:8]}",
            name=name,
            callback=callback,
            interval_seconds=interval_seconds,
            next_run_at=first_run_at,
        )
        with self._lock:
            self._tasks[task.task_id] = task
        logger.info("Scheduled task '%s' every %.0fs", name, interval_seconds)
        return task

    def remove_task(self, task_id: str) -> bool:
        with self._lock:
            return self._tasks.pop(task_id, None) is not None

    def list_tasks(self) -> list[MaintenanceTask]:
        with self._lock:
            return list(self._tasks.values())

    def tick(self, now: float | None = None) -> list[TaskResult]:
        """Run every task whose ``next_run_at`` has passed.

        A failing task is logged and reported in its TaskResult; it does
        not stop the other tasks or its own future runs.
        """
        if now is None:
            now = time.time()

        with self._lock:
            due = [t for t in self._tasks.values() if now >= t.next_run_at]

        results: list[TaskResult] = []
        for task in due:
            start = time.monotonic()
            try:
                outcome = task.callback()
                success = True
                message = "" if outcome is None else str(outcome)
            except Exception as exc:
                success, message = False, str(exc)[:200]
                task.error_count += 1
                logger.warning(
                    "Scheduled task '%s' failed", task.name, exc_info=True,
                )
            task.run_count += 1
            task.next_run_at = now + task.interval_seconds
            results.append(TaskResult(
                task_name=task.name,
                success=success,
                duration_seconds=time.monotonic() - start,
                message=message,
                timestamp=now,
            ))
        return results

    # --- Background thread ----------------------------------------------

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(
            target=self._run_loop, daemon=True, name="fisherman-scheduler",
        )
        self._thread.start()
        logger.info("Maintenance scheduler started (tick=%.1fs)", self._tick_interval)

    def stop(self) -> None:
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None
        logger.info("Maintenance scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    def _run_loop(self) -> None:
        while self._running:
            try:
                self.tick()
            except Exception:
                logger.exception("Scheduler tick failed")
            time.sleep(self._tick_interval)
