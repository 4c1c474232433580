"""Textfile exporter: writes rendered metrics for the node_exporter textfile collector"""
from .base import BaseExporter
from .prometheus import PrometheusEncoder
from config import Config
from logging_config import get_logger


logger = get_logger(__name__)


class TextfileExporter(BaseExporter):
    """Write the encoder's exposition text to a .prom file, replacing it atomically"""

    def __init__(self, config: Config):
        super().__init__(config)
        self.metrics_file = config.prometheus_file
        self._healthy = False

    async def start(self) -> None:
        """Ensure the output directory exists and is writable"""
        try:
            self.metrics_file.parent.mkdir(parents=True, exist_ok=True)
            check_file = self.metrics_file.with_suffix('.tmp')
            check_file.write_text("", encoding='utf-8')
            check_file.unlink()

            self._healthy = True
            logger.info("Textfile exporter started", path=str(self.metrics_file))

        except OSError as e:
            logger.error("Failed to start textfile exporter", path=str(self.metrics_file), error=str(e))
            self._healthy = False
            raise

    async def export_metrics(self, encoder: PrometheusEncoder) -> None:
        if not self._healthy:
            return

        temp_file = self.metrics_file.with_suffix('.tmp')
        try:
            content = encoder.render()

            # Write atomically using temporary file
            temp_file.write_text(content, encoding='utf-8')
            temp_file.replace(self.metrics_file)

            logger.debug("Exported metrics to textfile", metrics_count=len(encoder.metrics))

        except OSError as e:
            logger.error("Failed to write textfile metrics", path=str(self.metrics_file), error=str(e))
            self._healthy = False
            try:
                temp_file.unlink(missing_ok=True)
            except OSError as cleanup_error:
                logger.warning("Failed to remove temporary metrics file", path=str(temp_file), error=str(cleanup_error))

    async def shutdown(self) -> None:
        self._healthy = False
        logger.info("Textfile exporter shutdown")

    def is_healthy(self) -> bool:
        return self._healthy
