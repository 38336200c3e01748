from __future__ import annotations

import enum
import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class WorkerState(enum.Enum):
    IDLE = "idle"
    WAITING = "waiting"
    RUNNING = "running"
    STOPPED = "stopped"


class PeriodicWorker(threading.Thread):
    """Run ``func`` every ``interval`` seconds until ``stop_event`` is set.

    The timer restarts after each run, whether it succeeded or failed. A failed
    run is logged and retried on the next tick. Setting ``stop_event`` wakes
    the wait immediately and ends the loop; no run starts after that.
    """

    def __init__(
        self,
        name: str,
        interval: float,
        func: Callable[[], None],
        stop_event: threading.Event,
        *,
        description: Optional[str] = None,
    ) -> None:
        super().__init__(name=name, daemon=True)
        self.interval = interval
        self.func = func
        self.stop_event = stop_event
        self.description = description or name
        self.state = WorkerState.IDLE
        self.runs = 0
        self.failures = 0

    def run(self) -> None:
        try:
            while True:
                self.state = WorkerState.WAITING
                if self.stop_event.wait(self.interval):
                    logger.debug("Breaking out of %s loop: cancelled", self.description)
                    return
                self.state = WorkerState.RUNNING
                try:
                    self.func()
                except Exception as exc:
                    self.failures += 1
                    if not self.stop_event.is_set():
                        logger.error("Failed to %s: %s", self.description, exc)
                finally:
                    self.runs += 1
        finally:
            self.state = WorkerState.STOPPED
