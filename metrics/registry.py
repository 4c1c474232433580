"""Process metrics registry: runs the process collectors and joins their results"""
import asyncio
import time
from typing import List, Optional, Sequence
from .models import Metric
from collectors.base import BaseCollector
from collectors.cpu import CPUCollector, CpuBaseline, read_process_cpu
from collectors.descriptors import FileDescriptorCollector
from collectors.eventloop import EventLoopLagCollector
from collectors.memory import MemoryCollector
from collectors.runtime import COLLECTOR_TASK_PREFIX, collecting_task, ActiveHandlesCollector, ActiveRequestsCollector
from logging_config import get_logger, log_error, log_metrics_collection


logger = get_logger(__name__)

DEFAULT_SYS_PREFIX = "process_"


class StatsCollector:
    """Snapshot of process-level metrics from a fixed, ordered set of collectors"""

    def __init__(self, config=None, prefix: Optional[str] = None, collectors: Optional[Sequence[BaseCollector]] = None,
                 cpu_baseline: Optional[CpuBaseline] = None):
        self.config = config
        if prefix is None:
            prefix = getattr(config, "sys_prefix", DEFAULT_SYS_PREFIX)
        self.prefix = prefix
        if collectors is None:
            collectors = [
                EventLoopLagCollector(config),
                CPUCollector(config, baseline=cpu_baseline),
                MemoryCollector(config),
                FileDescriptorCollector(config),
                ActiveRequestsCollector(config),
                ActiveHandlesCollector(config),
            ]
        self.collectors: List[BaseCollector] = list(collectors)

    def list_collectors(self) -> List[str]:
        """List collector names in output order"""
        return [collector.name for collector in self.collectors]

    def get_collector(self, name: str) -> Optional[BaseCollector]:
        return next((c for c in self.collectors if c.name == name), None)

    async def collect(self, prefix: Optional[str] = None) -> List[Metric]:
        """Collect all enabled collectors concurrently, concatenated in collector order"""
        if prefix is None:
            prefix = self.prefix
        enabled = [c for c in self.collectors if c.is_enabled()]
        if not enabled:
            return []

        start = time.monotonic()
        token = collecting_task.set(asyncio.current_task())
        try:
            tasks = [
                asyncio.ensure_future(collector.safe_collect_async(prefix))
                for collector in enabled
            ]
        finally:
            collecting_task.reset(token)
        for collector, task in zip(enabled, tasks):
            task.set_name(COLLECTOR_TASK_PREFIX + collector.name)

        results = await asyncio.gather(*tasks, return_exceptions=True)

        all_metrics = []
        errors = 0
        for collector, result in zip(enabled, results):
            if isinstance(result, BaseException):
                errors += 1
                log_error(logger, result, {"collector": collector.name, "event_type": "async_collection_error"})
            else:
                all_metrics.extend(result)

        log_metrics_collection(logger, len(all_metrics), time.monotonic() - start, errors)
        return all_metrics

    def cleanup(self):
        """Cleanup all collectors"""
        for collector in self.collectors:
            try:
                collector.cleanup()
            except Exception as e:
                logger.error("Failed to cleanup collector", collector=collector.name, error=str(e))


def _process_start_baseline() -> CpuBaseline:
    try:
        return CpuBaseline(read_process_cpu())
    except Exception as e:
        logger.debug("Initial CPU reading unavailable", error=str(e))
        return CpuBaseline()


# Taken at import so the first default snapshot covers CPU used since startup
PROCESS_CPU_BASELINE = _process_start_baseline()

_default_collector: Optional[StatsCollector] = None


def get_default_collector() -> StatsCollector:
    """Process-wide collector sharing the import-time CPU baseline"""
    global _default_collector
    if _default_collector is None:
        _default_collector = StatsCollector(cpu_baseline=PROCESS_CPU_BASELINE)
    return _default_collector
