"""Tests for configuration module"""
import os
from pathlib import Path
from unittest.mock import patch
import pytest
from pydantic import ValidationError

from config import Config


class TestConfig:
    """Test configuration validation and parsing"""

    def test_default_config(self):
        """Test default configuration values"""
        config = Config()

        assert config.metrics_prefix == ""
        assert config.sys_metrics is True
        assert config.sys_prefix == "process_"
        assert config.log_level == "INFO"
        assert config.log_file is None
        assert config.prometheus_file == Path("/var/lib/node_exporter/textfile/process.prom")
        assert config.enabled_collectors == ["eventloop", "cpu", "memory", "fds", "requests", "handles"]

    def test_environment_override(self):
        """Test configuration override from environment variables"""
        env_vars = {
            "METRICS_PREFIX": "myapp_",
            "SYS_METRICS": "false",
            "SYS_PREFIX": "proc_",
            "LOG_LEVEL": "debug",
            "PROMETHEUS_FILE": "/tmp/out.prom",
        }

        with patch.dict(os.environ, env_vars):
            config = Config()

            assert config.metrics_prefix == "myapp_"
            assert config.sys_metrics is False
            assert config.sys_prefix == "proc_"
            assert config.log_level == "DEBUG"
            assert config.prometheus_file == Path("/tmp/out.prom")

    @pytest.mark.parametrize("prefix", ["1app_", "my-app_", "app prefix"])
    def test_validation_prefix(self, prefix):
        """Test validation of metric name prefixes"""
        with patch.dict(os.environ, {"METRICS_PREFIX": prefix}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_log_level(self):
        """Test validation of log level"""
        with patch.dict(os.environ, {"LOG_LEVEL": "LOUD"}):
            with pytest.raises(ValidationError):
                Config()

    def test_enabled_collectors_parsing(self):
        """Test enabled collectors parsing"""
        with patch.dict(os.environ, {"ENABLED_COLLECTORS_STR": "cpu, memory , fds"}):
            config = Config()

            assert config.enabled_collectors == ["cpu", "memory", "fds"]

    def test_is_collector_enabled(self):
        """Test collector enabled check"""
        config = Config()

        assert config.is_collector_enabled("cpu") is True
        assert config.is_collector_enabled("handles") is True
        assert config.is_collector_enabled("nonexistent") is False
