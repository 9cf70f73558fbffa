"""
Unit tests for checkout timers.
"""

from remoteanswer.checkout.timer import BlockingScheduler, ManualScheduler


def test_manual_scheduler_fires_each_advance():
    scheduler = ManualScheduler()
    calls = []
    handle = scheduler.schedule_repeating(100, lambda: calls.append(1))

    assert scheduler.advance(3) == 3
    assert len(calls) == 3
    assert handle.fired == 3


def test_cancelled_timer_never_fires():
    scheduler = ManualScheduler()
    calls = []
    handle = scheduler.schedule_repeating(100, lambda: calls.append(1))

    handle.cancel()

    assert scheduler.advance(5) == 0
    assert calls == []
    assert scheduler.active == []


def test_timer_cancelled_by_another_callback_is_skipped():
    scheduler = ManualScheduler()
    calls = []
    second = None

    def first_callback():
        calls.append("first")
        second.cancel()

    scheduler.schedule_repeating(100, first_callback)
    second = scheduler.schedule_repeating(100, lambda: calls.append("second"))

    scheduler.advance()

    assert calls == ["first"]


def test_blocking_scheduler_sleeps_until_idle():
    slept = []
    scheduler = BlockingScheduler(sleep=slept.append)
    state = {"ticks": 0}

    def tick():
        state["ticks"] += 1
        if state["ticks"] == 4:
            handle.cancel()

    handle = scheduler.schedule_repeating(100, tick)

    assert scheduler.run_until_idle() == 4
    assert slept == [0.1] * 4


def test_blocking_scheduler_max_ticks():
    scheduler = BlockingScheduler(sleep=lambda seconds: None)
    scheduler.schedule_repeating(100, lambda: None)

    assert scheduler.run_until_idle(max_ticks=10) == 10
    assert len(scheduler.active) == 1
