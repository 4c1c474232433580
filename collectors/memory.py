"""Process memory collector"""
from typing import List
import psutil
from .base import ThreadedCollector
from metrics.models import Metric, MetricType, Sample, now_millis
from logging_config import get_logger

logger = get_logger(__name__)


class MemoryCollector(ThreadedCollector):
    """Collect memory sizes of the current process from psutil"""

    def __init__(self, config=None):
        super().__init__(config, "memory", "Process memory usage metrics")

    def collect(self, prefix: str) -> List[Metric]:
        try:
            mem = psutil.Process().memory_info()
        except (psutil.Error, OSError) as e:
            logger.debug("Memory info unavailable", error=str(e))
            return []
        now = now_millis()

        # data/shared are only reported on some platforms
        sources = [
            ("heap_total", mem.vms),
            ("heap_used", getattr(mem, "data", mem.rss)),
            ("external_memory", getattr(mem, "shared", 0)),
            ("resident_memory", mem.rss),
        ]

        return [Metric(
            name=prefix + "mem_usage",
            help_text="Memory usage",
            metric_type=MetricType.GAUGE,
            values=[
                Sample(value=int(value), labels={"source": source}, timestamp=now)
                for source, value in sources
            ]
        )]
