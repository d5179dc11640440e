"""Observability module for the Contract Archive API.

Keeps process-local connectivity and latency history in fixed-size circular
buffers. One segment covers ``segment_seconds`` of wall-clock time and the
buffer index is derived from the clock, so two writes landing in the same
segment simply overwrite each other. History lives only in memory: a
restart starts again from empty/false buffers.
"""

import asyncio
import time
from typing import Any, Callable, Dict, List, Optional, Protocol

from loguru import logger


class ProbeTarget(Protocol):
    """What the sampler needs from the store."""

    def ping(self) -> float: ...

    def check_tables(self) -> bool: ...


class StatusMetricsRecorder:
    """Circular buffers for the status dashboard.

    Constructed once at process start and injected into the request
    middleware, the sampler and the status endpoint.
    """

    def __init__(
        self,
        segments: int = 96,
        segment_seconds: float = 15.0,
        clock: Callable[[], float] = time.time
    ):
        """Initialize empty buffers.

        Args:
            segments: Number of slots in every buffer
            segment_seconds: Width of one slot in seconds
            clock: Wall-clock source returning epoch seconds
        """
        if segments <= 0:
            raise ValueError("segments must be positive")
        if segment_seconds <= 0:
            raise ValueError("segment_seconds must be positive")

        self.segments = segments
        self.segment_seconds = segment_seconds
        self.clock = clock
        self.reset()

    def reset(self) -> None:
        """Drop all history."""
        self.connectivity: List[bool] = [False] * self.segments
        self.operations: List[bool] = [False] * self.segments
        self.api: List[bool] = [False] * self.segments
        self.db_latency_ms: List[int] = [0] * self.segments
        self.api_latency_ms: List[int] = [0] * self.segments

    @property
    def window_seconds(self) -> float:
        return self.segments * self.segment_seconds

    def current_index(self) -> int:
        """Buffer slot for the current wall-clock time."""
        return int(self.clock() // self.segment_seconds) % self.segments

    def record_sample(
        self,
        index: int,
        connected: bool,
        operational: bool,
        db_latency_ms: Optional[int] = None
    ) -> None:
        """Store one sampler tick.

        Args:
            index: Buffer slot computed when the tick started
            connected: Whether the connectivity query succeeded
            operational: Whether every collection answered a count query
            db_latency_ms: Round-trip of the connectivity query, if it ran
        """
        self.connectivity[index] = connected
        self.operations[index] = operational
        if db_latency_ms is not None:
            self.db_latency_ms[index] = db_latency_ms

    def record_api(self, index: int, latency_ms: int) -> None:
        """Stamp an HTTP response into its slot."""
        self.api[index] = True
        self.api_latency_ms[index] = latency_ms

    def snapshot(self) -> Dict[str, Any]:
        """Copy of the buffers plus the time window they cover.

        Returns:
            Dictionary in the wire shape of ``GET /api/status-metrics``
        """
        end = int(self.clock() * 1000)
        window_ms = int(self.window_seconds * 1000)
        return {
            "segments": self.segments,
            "segmentMs": int(self.segment_seconds * 1000),
            "windowMs": window_ms,
            "period": {"start": end - window_ms, "end": end},
            "connectivity": list(self.connectivity),
            "operations": list(self.operations),
            "api": list(self.api),
            "dbLatency": list(self.db_latency_ms),
            "apiLatency": list(self.api_latency_ms),
        }


class StatusSampler:
    """Periodic connectivity probe feeding a StatusMetricsRecorder."""

    def __init__(self, recorder: StatusMetricsRecorder, target: ProbeTarget):
        self.recorder = recorder
        self.target = target
        self._task: Optional[asyncio.Task] = None

    def sample_once(self) -> bool:
        """Run one probe and record it.

        Returns:
            Whether the store was reachable
        """
        index = self.recorder.current_index()
        connected = False
        operational = False
        latency_ms = None

        try:
            latency_ms = int(round(self.target.ping() * 1000))
            connected = True
            operational = self.target.check_tables()
        except Exception as e:
            logger.warning(f"Status probe failed: {e}")

        self.recorder.record_sample(index, connected, operational, latency_ms)
        return connected

    async def _run(self) -> None:
        while True:
            self.sample_once()
            await asyncio.sleep(self.recorder.segment_seconds)

    def start(self) -> None:
        """Start sampling on the running event loop (first tick is immediate)."""
        if self._task is not None and not self._task.done():
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(
            "Status sampler started",
            segments=self.recorder.segments,
            segment_seconds=self.recorder.segment_seconds
        )

    async def stop(self) -> None:
        """Cancel the sampling task and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Status sampler stopped")

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()
