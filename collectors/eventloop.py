"""Event loop responsiveness collector"""
import asyncio
import time
from typing import List
from .base import BaseCollector
from metrics.models import Metric, MetricType, Sample, now_millis


class EventLoopLagCollector(BaseCollector):
    """Measure the delay between scheduling a callback and the loop running it"""

    def __init__(self, config=None):
        super().__init__(config, "eventloop", "Event loop scheduling lag")

    async def measure_lag(self) -> float:
        """Seconds elapsed between a zero-delay call_soon request and its execution"""
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()

        def mark():
            if not waiter.done():
                waiter.set_result(time.perf_counter())

        start = time.perf_counter()
        loop.call_soon(mark)
        end = await waiter
        return end - start

    async def collect_async(self, prefix: str) -> List[Metric]:
        seconds = await self.measure_lag()
        return [Metric(
            name=prefix + "eventloop_lag_per_second",
            help_text="Event loop lag in seconds",
            metric_type=MetricType.GAUGE,
            values=[Sample(value=seconds, timestamp=now_millis())]
        )]
