"""Base classes for process metric collectors"""
import asyncio
from abc import ABC, abstractmethod
from typing import List
from concurrent.futures import ThreadPoolExecutor
from metrics.models import Metric
from logging_config import get_logger, log_error


logger = get_logger(__name__)


class BaseCollector(ABC):
    """Base class for all metric collectors"""

    def __init__(self, config=None, name: str = "", help_text: str = ""):
        self.config = config
        self._name = name
        self._help_text = help_text

    @abstractmethod
    async def collect_async(self, prefix: str) -> List[Metric]:
        """Collect metrics, naming each family with the given prefix"""
        pass

    async def safe_collect_async(self, prefix: str) -> List[Metric]:
        """Collect metrics, degrading to an empty result on any failure"""
        try:
            return await self.collect_async(prefix)
        except Exception as e:
            log_error(logger, e, {"collector": self.name, "event_type": "collection_error"})
            return []

    @property
    def name(self) -> str:
        return self._name

    @property
    def help_text(self) -> str:
        return self._help_text or f"{self.name} metrics collector"

    def is_enabled(self) -> bool:
        """Check if this collector is enabled"""
        if hasattr(self.config, 'is_collector_enabled'):
            return self.config.is_collector_enabled(self.name)
        return True

    def cleanup(self):
        """Cleanup resources"""
        pass


class ThreadedCollector(BaseCollector):
    """Collector whose blocking platform reads run in a worker thread"""

    def __init__(self, config=None, name: str = "", help_text: str = ""):
        super().__init__(config, name, help_text)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{name}_collector")

    @abstractmethod
    def collect(self, prefix: str) -> List[Metric]:
        """Collect metrics synchronously"""
        pass

    async def collect_async(self, prefix: str) -> List[Metric]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.collect, prefix)

    def cleanup(self):
        self._executor.shutdown(wait=False)
