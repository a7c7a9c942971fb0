"""
Tests for per-owner response sequencing and request metrics.
"""

from stylist.analytics import RequestCounter
from stylist.sequencing import ResponseSequencer


class TestResponseSequencer:

    def test_numbers_increase_per_owner(self):
        sequencer = ResponseSequencer()

        assert sequencer.next("user-1") == 1
        assert sequencer.next("user-1") == 2
        assert sequencer.next("user-2") == 1

    def test_older_request_is_stale(self):
        sequencer = ResponseSequencer()
        first = sequencer.next("user-1")
        second = sequencer.next("user-1")

        assert sequencer.is_current("user-1", first) is False
        assert sequencer.is_current("user-1", second) is True
        assert sequencer.latest("user-1") == second

    def test_unknown_owner(self):
        sequencer = ResponseSequencer()
        assert sequencer.latest("nobody") == 0
        assert sequencer.is_current("nobody", 1) is False


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRequestCounter:

    def test_records_totals_and_kinds(self):
        counter = RequestCounter(clock=FakeClock())
        counter.record("text")
        counter.record("text")
        counter.record("image")

        snapshot = counter.snapshot()
        assert snapshot["total"] == 3
        assert snapshot["by_kind"] == {"text": 2, "image": 1}
        assert snapshot["in_window"] == 3
        assert snapshot["last_request_at"] == 100.0

    def test_window_rate_slides(self):
        clock = FakeClock()
        counter = RequestCounter(window_seconds=60, clock=clock)
        counter.record()
        clock.now += 30
        counter.record()
        clock.now += 31

        assert counter.requests_in_window() == 1
        assert counter.total == 2

    def test_reset(self):
        counter = RequestCounter(clock=FakeClock())
        counter.record()
        counter.reset()

        assert counter.snapshot()["total"] == 0
        assert counter.snapshot()["last_request_at"] is None
