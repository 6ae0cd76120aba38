"""Participation counts and run timing.

Everything here is advisory: nothing in this module can fail a run.
"""

import logging
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from moderated_panel.models import PANELIST_KEYS, PerformanceVerdict

logger = logging.getLogger(__name__)

DEFAULT_EXPECTED_DURATION_SEC = 240.0
_MAX_SAMPLES = 100


class ParticipationTracker:
    """Counts panel_response turns per panelist key."""

    def __init__(self) -> None:
        self._counts: dict[str, int] = {key: 0 for key in PANELIST_KEYS}

    def record(self, panelist_key: str) -> int:
        if panelist_key not in self._counts:
            raise ValueError(f"Unknown panelist '{panelist_key}'")
        self._counts[panelist_key] += 1
        return self._counts[panelist_key]

    def count(self, panelist_key: str) -> int:
        return self._counts[panelist_key]

    @property
    def total(self) -> int:
        return sum(self._counts.values())

    def as_dict(self) -> dict[str, int]:
        return dict(self._counts)


@dataclass
class TimedOperation:
    operation_id: str
    start: float
    end: float | None = None
    metadata: dict = field(default_factory=dict)

    @property
    def duration(self) -> float | None:
        return None if self.end is None else self.end - self.start


@dataclass
class OperationStats:
    samples: list[float] = field(default_factory=list)
    average: float = 0.0
    last_recorded: float | None = None


class RunMetrics:
    """Timers and rolling per-panel-type averages.

    One instance is shared by the runs of a process (or a test); it is not a
    module-level singleton.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._timers: dict[str, TimedOperation] = {}
        self._stats: dict[tuple[str, str], OperationStats] = {}

    # ==================
    # Timers
    # ==================

    def start_timer(self, operation_id: str) -> None:
        self._timers[operation_id] = TimedOperation(operation_id, start=self._clock())

    def end_timer(self, operation_id: str, **metadata) -> TimedOperation | None:
        """Stop and forget a timer; the finished TimedOperation is returned."""
        timed = self._timers.pop(operation_id, None)
        if timed is None:
            logger.warning("Performance metric not found: %s", operation_id)
            return None
        timed.end = self._clock()
        timed.metadata.update(metadata)
        return timed

    def get_timer(self, operation_id: str) -> TimedOperation | None:
        """Running timers only."""
        return self._timers.get(operation_id)

    @contextmanager
    def timer(self, operation_id: str, panel_type: str | None = None, operation: str | None = None) -> Iterator[None]:
        """Time a block; when panel_type and operation are given, feed the rolling stats."""
        self.start_timer(operation_id)
        try:
            yield
        finally:
            timed = self.end_timer(operation_id)
            if timed is not None and panel_type and operation:
                self.record_operation(panel_type, operation, timed.duration)

    # ==================
    # Rolling stats
    # ==================

    def record_operation(self, panel_type: str, operation: str, duration: float) -> float:
        """Add a sample and return the new rolling average (last 100 samples)."""
        stats = self._stats.setdefault((panel_type, operation), OperationStats())
        stats.samples.append(duration)
        if len(stats.samples) > _MAX_SAMPLES:
            del stats.samples[:-_MAX_SAMPLES]
        stats.average = sum(stats.samples) / len(stats.samples)
        stats.last_recorded = time.time()
        return stats.average

    def summary(self) -> dict[str, dict]:
        result: dict[str, dict] = {}
        for (panel_type, operation), stats in sorted(self._stats.items()):
            entry = result.setdefault(panel_type, {"operations": {}, "total_operations": 0})
            entry["operations"][operation] = {
                "count": len(stats.samples),
                "average_duration": stats.average,
                "last_operation": stats.last_recorded,
            }
            entry["total_operations"] += len(stats.samples)
        return result

    def validate_performance(
        self,
        panel_type: str,
        expected_max_sec: float = DEFAULT_EXPECTED_DURATION_SEC,
    ) -> PerformanceVerdict:
        stats = self._stats.get((panel_type, "pipeline_execution"))
        if stats is None or not stats.samples:
            return PerformanceVerdict(
                valid=True,
                message="No performance data available",
                expected_duration=expected_max_sec,
            )
        if stats.average > expected_max_sec:
            return PerformanceVerdict(
                valid=False,
                message=(
                    f"Performance degraded: {panel_type} panel averaging "
                    f"{stats.average:.1f}s, expected under {expected_max_sec:.1f}s"
                ),
                actual_duration=stats.average,
                expected_duration=expected_max_sec,
            )
        return PerformanceVerdict(
            valid=True,
            message=f"Performance within bounds: {stats.average:.1f}s",
            actual_duration=stats.average,
            expected_duration=expected_max_sec,
        )

    def reset(self) -> None:
        self._timers.clear()
        self._stats.clear()
