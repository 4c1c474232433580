"""Configuration for process metrics collection and exposition"""
import logging
import re
from pathlib import Path
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

METRIC_PREFIX_PATTERN = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")


class Config(BaseSettings):
    """Exporter configuration, loaded from the environment"""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    # Exposition settings
    metrics_prefix: str = Field(default="", description="Prefix applied to every rendered metric name")
    sys_metrics: bool = Field(default=True, description="Include process metrics when building from tuples")
    sys_prefix: str = Field(default="process_", description="Prefix for process metric names")

    # Collection settings
    enabled_collectors_str: str = Field(
        default="eventloop,cpu,memory,fds,requests,handles",
        description="Enabled collectors (comma-separated)"
    )

    # Textfile export
    prometheus_file: Path = Field(
        default=Path("/var/lib/node_exporter/textfile/process.prom"),
        description="Output file for the textfile exporter"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file")

    @field_validator("metrics_prefix", "sys_prefix")
    @classmethod
    def validate_prefix(cls, v):
        if v and not METRIC_PREFIX_PATTERN.match(v):
            raise ValueError(f"Invalid metric name prefix: {v!r}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def enabled_collectors(self) -> List[str]:
        """Get enabled collectors as a list"""
        return [item.strip() for item in self.enabled_collectors_str.split(',') if item.strip()]

    def is_collector_enabled(self, name: str) -> bool:
        return name in self.enabled_collectors
