"""Tests for the status ring buffers and the sampler."""

import asyncio

import pytest

from archive.observability import StatusMetricsRecorder, StatusSampler


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeTarget:
    def __init__(self, ping_seconds: float = 0.004, tables_ok: bool = True, fail: bool = False):
        self.ping_seconds = ping_seconds
        self.tables_ok = tables_ok
        self.fail = fail
        self.pings = 0

    def ping(self) -> float:
        self.pings += 1
        if self.fail:
            raise ConnectionError("database unreachable")
        return self.ping_seconds

    def check_tables(self) -> bool:
        return self.tables_ok


class TestStatusMetricsRecorder:
    def test_initial_buffers(self):
        recorder = StatusMetricsRecorder(segments=4, segment_seconds=15)
        snapshot = recorder.snapshot()

        assert snapshot["connectivity"] == [False] * 4
        assert snapshot["dbLatency"] == [0] * 4
        assert snapshot["windowMs"] == 60000

    def test_index_follows_clock(self):
        clock = FakeClock(0)
        recorder = StatusMetricsRecorder(segments=4, segment_seconds=15, clock=clock)

        assert recorder.current_index() == 0
        clock.now = 14.9
        assert recorder.current_index() == 0
        clock.now = 15
        assert recorder.current_index() == 1
        clock.now = 60
        assert recorder.current_index() == 0

    def test_same_segment_overwrites(self):
        recorder = StatusMetricsRecorder(segments=4, segment_seconds=15)
        recorder.record_api(2, 10)
        recorder.record_api(2, 25)

        assert recorder.api_latency_ms == [0, 0, 25, 0]
        assert recorder.api == [False, False, True, False]

    def test_sample_without_latency_keeps_previous(self):
        recorder = StatusMetricsRecorder(segments=2, segment_seconds=1)
        recorder.record_sample(1, True, True, 7)
        recorder.record_sample(1, False, False)

        assert recorder.connectivity[1] is False
        assert recorder.db_latency_ms[1] == 7

    def test_period_ends_now(self):
        clock = FakeClock(1000.5)
        recorder = StatusMetricsRecorder(segments=96, segment_seconds=15, clock=clock)
        period = recorder.snapshot()["period"]

        assert period["end"] == 1000500
        assert period["end"] - period["start"] == 96 * 15000

    def test_reset(self):
        recorder = StatusMetricsRecorder(segments=2, segment_seconds=1)
        recorder.record_api(0, 5)
        recorder.reset()
        assert recorder.api == [False, False]

    @pytest.mark.parametrize("segments,seconds", [(0, 15), (4, 0), (-1, 1)])
    def test_invalid_geometry(self, segments, seconds):
        with pytest.raises(ValueError):
            StatusMetricsRecorder(segments=segments, segment_seconds=seconds)


class TestStatusSampler:
    def test_sample_success(self):
        recorder = StatusMetricsRecorder(segments=4, segment_seconds=15, clock=FakeClock(16))
        sampler = StatusSampler(recorder, FakeTarget(ping_seconds=0.004))

        assert sampler.sample_once() is True
        assert recorder.connectivity[1] is True
        assert recorder.operations[1] is True
        assert recorder.db_latency_ms[1] == 4

    def test_sample_tables_unavailable(self):
        recorder = StatusMetricsRecorder(segments=4, segment_seconds=15, clock=FakeClock(0))
        StatusSampler(recorder, FakeTarget(tables_ok=False)).sample_once()

        assert recorder.connectivity[0] is True
        assert recorder.operations[0] is False

    def test_sample_failure_recorded(self):
        recorder = StatusMetricsRecorder(segments=4, segment_seconds=15, clock=FakeClock(0))
        sampler = StatusSampler(recorder, FakeTarget(fail=True))

        assert sampler.sample_once() is False
        assert recorder.connectivity[0] is False
        assert recorder.operations[0] is False

    @pytest.mark.parametrize("ticks", [1, 3, 4, 7, 10])
    def test_ticks_bound_changed_segments(self, ticks):
        clock = FakeClock(0)
        recorder = StatusMetricsRecorder(segments=4, segment_seconds=15, clock=clock)
        sampler = StatusSampler(recorder, FakeTarget())
        initial = recorder.snapshot()

        for _ in range(ticks):
            sampler.sample_once()
            clock.now += recorder.segment_seconds

        snapshot = recorder.snapshot()
        changed = sum(
            1 for before, after in zip(initial["connectivity"], snapshot["connectivity"])
            if before != after
        )
        assert changed <= ticks
        assert changed == min(ticks, recorder.segments)
        assert snapshot["windowMs"] == snapshot["segments"] * snapshot["segmentMs"]

    def test_start_and_stop(self):
        recorder = StatusMetricsRecorder(segments=4, segment_seconds=0.01)
        target = FakeTarget()
        sampler = StatusSampler(recorder, target)

        async def scenario():
            sampler.start()
            assert sampler.running
            await asyncio.sleep(0.05)
            await sampler.stop()

        asyncio.run(scenario())

        assert not sampler.running
        assert target.pings >= 1
        assert any(recorder.connectivity)
