"""Base exporter interface"""
import abc
from config import Config
from .prometheus import PrometheusEncoder


class BaseExporter(abc.ABC):
    """Abstract base class for exporters of rendered metrics"""

    def __init__(self, config: Config):
        self.config = config

    @abc.abstractmethod
    async def start(self) -> None:
        """Initialize the exporter"""
        pass

    @abc.abstractmethod
    async def export_metrics(self, encoder: PrometheusEncoder) -> None:
        """Export the encoder's current metrics"""
        pass

    @abc.abstractmethod
    async def shutdown(self) -> None:
        """Cleanup the exporter"""
        pass

    @abc.abstractmethod
    def is_healthy(self) -> bool:
        """Check if exporter is healthy"""
        pass
