"""Unit tests for beatkit/runtime/loop.py"""
import pytest

from beatkit.runtime.loop import EventLoop, ManualClock


@pytest.mark.unit
class TestEventLoop:
    def test_post_runs_in_order(self, loop):
        seen = []
        loop.post(lambda: seen.append(1))
        loop.post(lambda: seen.append(2))
        assert loop.run_pending() == 2
        assert seen == [1, 2]

    def test_call_later_waits_for_clock(self, loop, clock):
        seen = []
        loop.call_later(1.0, lambda: seen.append("x"))
        loop.run_pending()
        assert seen == []
        clock.advance(1.0)
        loop.run_pending()
        assert seen == ["x"]

    def test_cancelled_task_never_runs(self, loop, clock):
        seen = []
        task = loop.call_later(0.5, lambda: seen.append("x"))
        task.cancel()
        clock.advance(1.0)
        loop.run_pending()
        assert seen == []
        assert not task.pending

    def test_debounce_coalesces_burst(self, loop, clock):
        seen = []
        for _ in range(5):
            loop.debounce("k", 1.5, lambda: seen.append("refresh"))
            clock.advance(0.5)
            loop.run_pending()
        assert seen == []
        assert loop.has_pending("k")
        clock.advance(1.5)
        loop.run_pending()
        assert seen == ["refresh"]
        assert not loop.has_pending("k")

    def test_debounce_keys_are_independent(self, loop, clock):
        seen = []
        loop.debounce("a", 1.0, lambda: seen.append("a"))
        loop.debounce("b", 1.0, lambda: seen.append("b"))
        clock.advance(1.0)
        loop.run_pending()
        assert sorted(seen) == ["a", "b"]

    def test_callback_error_does_not_stop_loop(self, loop):
        seen = []

        def boom():
            raise RuntimeError("boom")

        loop.post(boom)
        loop.post(lambda: seen.append("after"))
        loop.run_pending()
        assert seen == ["after"]

    def test_work_scheduled_during_drain_runs_same_drain(self, loop):
        seen = []
        loop.post(lambda: loop.post(lambda: seen.append("nested")))
        loop.run_pending()
        assert seen == ["nested"]


@pytest.mark.unit
class TestManualClock:
    def test_cannot_go_backwards(self):
        clock = ManualClock(5.0)
        with pytest.raises(ValueError):
            clock.advance(-1)
        assert clock() == 5.0

    def test_loop_reads_injected_clock(self):
        clock = ManualClock(3.0)
        assert EventLoop(clock).now() == 3.0
