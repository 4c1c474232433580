"""Process CPU time collector"""
import threading
from dataclasses import dataclass
from typing import Callable, List, NamedTuple, Optional
import psutil
from .base import ThreadedCollector
from metrics.models import Metric, MetricType, Sample, now_millis
from logging_config import get_logger

logger = get_logger(__name__)

MICROSECONDS_PER_SECOND = 1e6


class CpuReading(NamedTuple):
    """Cumulative process CPU time in microseconds"""
    user: int
    system: int


def read_process_cpu() -> CpuReading:
    """Read cumulative user/system CPU time of the current process"""
    times = psutil.Process().cpu_times()
    return CpuReading(
        user=int(times.user * MICROSECONDS_PER_SECOND),
        system=int(times.system * MICROSECONDS_PER_SECOND)
    )


@dataclass
class CpuBaseline:
    """Previous CPU reading used to compute per-interval deltas"""
    reading: Optional[CpuReading] = None

    def __post_init__(self):
        self._lock = threading.Lock()

    def take(self, reader: Callable[[], CpuReading]) -> CpuReading:
        """Read, store as the new baseline and return the delta since the old one"""
        with self._lock:
            current = reader()
            previous = self.reading or current
            self.reading = current
        return CpuReading(user=current.user - previous.user, system=current.system - previous.system)


class CPUCollector(ThreadedCollector):
    """CPU time spent by this process since the previous collection"""

    def __init__(self, config=None, reader: Callable[[], CpuReading] = read_process_cpu, baseline: CpuBaseline = None):
        super().__init__(config, "cpu", "Process CPU time deltas")
        self._reader = reader
        self.baseline = baseline or CpuBaseline()
        if self.baseline.reading is None:
            try:
                self.baseline.reading = reader()
            except Exception as e:
                logger.debug("Initial CPU reading unavailable", error=str(e))

    def collect(self, prefix: str) -> List[Metric]:
        try:
            delta = self.baseline.take(self._reader)
        except Exception as e:
            logger.debug("CPU reading unavailable", error=str(e))
            return []
        now = now_millis()

        return [Metric(
            name=prefix + "cpu_time_per_second",
            help_text="CPU usage time spent in seconds",
            metric_type=MetricType.COUNTER,
            values=[
                Sample(value=delta.user / MICROSECONDS_PER_SECOND, labels={"source": "user"}, timestamp=now),
                Sample(value=delta.system / MICROSECONDS_PER_SECOND, labels={"source": "system"}, timestamp=now),
            ]
        )]
