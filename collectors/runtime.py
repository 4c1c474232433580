"""Runtime introspection collectors: in-flight async operations and open sockets"""
import asyncio
from contextvars import ContextVar
from typing import List, Optional
import psutil
from .base import BaseCollector, ThreadedCollector
from metrics.models import Metric, MetricType, Sample, now_millis
from logging_config import get_logger

logger = get_logger(__name__)

# Tasks spawned by the stats collector itself are not counted as application work
COLLECTOR_TASK_PREFIX = "stats_collector:"

# Task awaiting the StatsCollector.collect call in progress
collecting_task: ContextVar[Optional[asyncio.Task]] = ContextVar("collecting_task", default=None)


class ActiveRequestsCollector(BaseCollector):
    """Count pending asyncio tasks on the running event loop"""

    def __init__(self, config=None):
        super().__init__(config, "requests", "Pending asyncio task count")

    def count_pending(self) -> Optional[int]:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        excluded = {asyncio.current_task(loop), collecting_task.get()}
        return sum(
            1 for task in asyncio.all_tasks(loop)
            if task not in excluded
            and not task.done()
            and not task.get_name().startswith(COLLECTOR_TASK_PREFIX)
        )

    async def collect_async(self, prefix: str) -> List[Metric]:
        count = self.count_pending()
        if count is None:
            return []
        return [Metric(
            name=prefix + "active_requests",
            help_text="Number of active requests",
            metric_type=MetricType.GAUGE,
            values=[Sample(value=count, timestamp=now_millis())]
        )]


class ActiveHandlesCollector(ThreadedCollector):
    """Count sockets held open by the current process"""

    def __init__(self, config=None):
        super().__init__(config, "handles", "Open socket count")

    def count_handles(self) -> Optional[int]:
        process = psutil.Process()
        # net_connections replaced connections in psutil 6.0
        list_connections = getattr(process, "net_connections", None) or getattr(process, "connections", None)
        if list_connections is None:
            return None
        try:
            return len(list_connections(kind="all"))
        except (psutil.Error, OSError) as e:
            logger.debug("Socket introspection unavailable", error=str(e))
            return None

    def collect(self, prefix: str) -> List[Metric]:
        count = self.count_handles()
        if count is None:
            return []
        return [Metric(
            name=prefix + "active_handles",
            help_text="Number of active handles",
            metric_type=MetricType.GAUGE,
            values=[Sample(value=count, timestamp=now_millis())]
        )]
