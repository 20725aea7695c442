"""
Unit tests for the polled single-shot scheduler
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest

from matching.scheduler import PolledScheduler


@pytest.fixture
def clock():
    return [0.0]


@pytest.fixture
def scheduler(clock):
    return PolledScheduler(clock=lambda: clock[0])


def test_task_fires_only_after_deadline(scheduler, clock):
    fired = []
    scheduler.call_later(100, lambda: fired.append("a"))

    assert scheduler.run_pending() == 0
    clock[0] = 0.099
    assert scheduler.run_pending() == 0
    clock[0] = 0.1
    assert scheduler.run_pending() == 1
    assert fired == ["a"]
    assert scheduler.pending == 0


def test_tasks_fire_in_due_order(scheduler, clock):
    fired = []
    scheduler.call_later(300, lambda: fired.append("late"))
    scheduler.call_later(100, lambda: fired.append("early"))
    clock[0] = 1.0
    scheduler.run_pending()
    assert fired == ["early", "late"]


def test_cancelled_task_never_fires(scheduler, clock):
    fired = []
    handle = scheduler.call_later(100, lambda: fired.append("a"))
    handle.cancel()
    clock[0] = 1.0
    scheduler.run_pending()
    assert fired == []
    assert not handle.active


def test_callback_can_cancel_later_task_in_same_batch(scheduler, clock):
    fired = []
    second = scheduler.call_later(200, lambda: fired.append("second"))
    scheduler.call_later(100, lambda: second.cancel())
    clock[0] = 1.0
    # Only the cancelling task ran
    assert scheduler.run_pending() == 1
    assert fired == []


def test_fire_now_runs_once(scheduler, clock):
    fired = []
    handle = scheduler.call_later(1000, lambda: fired.append("a"))

    assert scheduler.fire_now(handle) is True
    assert scheduler.fire_now(handle) is False
    clock[0] = 5.0
    scheduler.run_pending()
    assert fired == ["a"]
    assert scheduler.fire_now(None) is False


def test_next_due_in_and_cancel_all(scheduler, clock):
    assert scheduler.next_due_in() is None
    scheduler.call_later(500, lambda: None)
    scheduler.call_later(200, lambda: None)
    clock[0] = 0.1
    assert scheduler.next_due_in() == pytest.approx(0.1)

    scheduler.cancel_all()
    assert scheduler.pending == 0
    assert scheduler.next_due_in() is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
