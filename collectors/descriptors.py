"""Open file descriptor collector"""
import os
import sys
from typing import List, Optional
from .base import ThreadedCollector
from metrics.models import Metric, MetricType, Sample, now_millis
from logging_config import get_logger

logger = get_logger(__name__)

PROC_FD_DIR = "/proc/self/fd"


class FileDescriptorCollector(ThreadedCollector):
    """Count open file descriptors on platforms exposing a descriptor table directory"""

    def __init__(self, config=None, fd_dir: str = PROC_FD_DIR):
        super().__init__(config, "fds", "Open file descriptor count")
        self.fd_dir = fd_dir

    def is_supported(self) -> bool:
        return sys.platform.startswith("linux")

    def count_descriptors(self) -> Optional[int]:
        """Number of open descriptors, or None if the table cannot be listed"""
        if not self.is_supported():
            return None
        try:
            entries = os.listdir(self.fd_dir)
        except OSError as e:
            logger.debug("Descriptor table unavailable", path=self.fd_dir, error=str(e))
            return None
        # listdir holds one descriptor open on the directory itself
        return len(entries) - 1

    def collect(self, prefix: str) -> List[Metric]:
        count = self.count_descriptors()
        if count is None:
            return []
        return [Metric(
            name=prefix + "open_file_descriptors",
            help_text="Number of open file descriptors",
            metric_type=MetricType.GAUGE,
            values=[Sample(value=count, timestamp=now_millis())]
        )]
