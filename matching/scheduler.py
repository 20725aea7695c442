"""
Cancellable single-shot timers for a single-threaded UI loop

Tasks never fire on their own thread. The owner calls ``run_pending()`` from
its event loop (Streamlit script runs and the polling fragment), which keeps
every record mutation on the UI thread.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class TaskHandle:
    """Handle for one scheduled callback"""
    due_at: float
    callback: Callable[[], None]
    name: str = ''
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not self.cancelled and not self.fired


@dataclass
class PolledScheduler:
    clock: Callable[[], float] = time.monotonic
    _tasks: List[TaskHandle] = field(default_factory=list)

    def call_later(self, delay_ms: int, callback: Callable[[], None], name: str = '') -> TaskHandle:
        handle = TaskHandle(due_at=self.clock() + delay_ms / 1000.0, callback=callback, name=name)
        self._tasks.append(handle)
        return handle

    def run_pending(self) -> int:
        """Fire every due, uncancelled task in due order. Returns the number fired."""
        now = self.clock()
        due = sorted((t for t in self._tasks if t.active and t.due_at <= now), key=lambda t: t.due_at)
        self._tasks = [t for t in self._tasks if t.active and t.due_at > now]
        fired = 0
        for task in due:
            # A callback may cancel a later task in the same batch
            if not task.active:
                continue
            task.fired = True
            logger.debug("Firing scheduled task %s", task.name or task.callback)
            task.callback()
            fired += 1
        return fired

    def fire_now(self, handle: Optional[TaskHandle]) -> bool:
        """Run a pending task immediately instead of waiting for its deadline"""
        if handle is None or not handle.active:
            return False
        handle.fired = True
        self._tasks = [t for t in self._tasks if t is not handle]
        handle.callback()
        return True

    def next_due_in(self) -> Optional[float]:
        """Seconds until the next active task, None when idle"""
        active = [t.due_at for t in self._tasks if t.active]
        if not active:
            return None
        return max(0.0, min(active) - self.clock())

    def cancel_all(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks = []

    @property
    def pending(self) -> int:
        return sum(1 for t in self._tasks if t.active)
