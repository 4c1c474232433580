"""Tests for process collector modules"""
import asyncio
import itertools
import sys
import threading
from collections import namedtuple
from unittest.mock import Mock, patch

import psutil
import pytest

from config import Config
from collectors.cpu import CPUCollector, CpuBaseline, CpuReading
from collectors.descriptors import FileDescriptorCollector
from collectors.eventloop import EventLoopLagCollector
from collectors.memory import MemoryCollector
from collectors.runtime import ActiveHandlesCollector, ActiveRequestsCollector, COLLECTOR_TASK_PREFIX
from metrics.models import MetricType


class ReadingSequence:
    """Reader returning predefined CPU readings in order"""

    def __init__(self, *readings):
        self.readings = list(readings)

    def __call__(self):
        return self.readings.pop(0)


class TestCPUCollector:
    """Test CPU time delta collection"""

    def test_user_delta_in_seconds(self):
        reader = ReadingSequence(CpuReading(user=500, system=100), CpuReading(user=1_000_500, system=250_100))
        collector = CPUCollector(reader=reader)

        metrics = collector.collect("process_")

        assert len(metrics) == 1
        metric = metrics[0]
        assert metric.name == "process_cpu_time_per_second"
        assert metric.metric_type == MetricType.COUNTER
        user, system = metric.values
        assert user.labels == {"source": "user"}
        assert user.value == 1.0
        assert system.labels == {"source": "system"}
        assert system.value == 0.25
        assert user.timestamp == system.timestamp

    def test_successive_collections_use_previous_reading(self):
        reader = ReadingSequence(CpuReading(0, 0), CpuReading(2_000_000, 0), CpuReading(2_500_000, 1_000_000))
        collector = CPUCollector(reader=reader)

        collector.collect("")
        second = collector.collect("")

        assert [s.value for s in second[0].values] == [0.5, 1.0]

    def test_independent_collectors_have_independent_baselines(self):
        first = CPUCollector(reader=ReadingSequence(CpuReading(0, 0), CpuReading(1_000_000, 0)))
        second = CPUCollector(reader=ReadingSequence(CpuReading(900_000, 0), CpuReading(1_000_000, 0)))

        assert first.collect("")[0].values[0].value == 1.0
        assert second.collect("")[0].values[0].value == 0.1

    def test_shared_baseline(self):
        baseline = CpuBaseline(CpuReading(0, 0))
        collector = CPUCollector(reader=ReadingSequence(CpuReading(3_000_000, 0)), baseline=baseline)

        collector.collect("")

        assert baseline.reading == CpuReading(3_000_000, 0)

    def test_concurrent_takes_do_not_lose_updates(self):
        counter = itertools.count(1)

        def reader():
            n = next(counter)
            return CpuReading(user=n * 1000, system=n)

        baseline = CpuBaseline(CpuReading(0, 0))
        deltas = []
        deltas_lock = threading.Lock()

        def worker():
            for _ in range(200):
                delta = baseline.take(reader)
                with deltas_lock:
                    deltas.append(delta)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(deltas) == 1600
        assert all(d.user >= 0 and d.system >= 0 for d in deltas)
        assert sum(d.user for d in deltas) == baseline.reading.user == 1600 * 1000
        assert sum(d.system for d in deltas) == baseline.reading.system == 1600

    def test_reader_failure_yields_nothing(self):
        reader = Mock(side_effect=psutil.AccessDenied())
        collector = CPUCollector(reader=reader)

        assert collector.collect("process_") == []

    def test_default_reader_reports_non_negative_deltas(self):
        collector = CPUCollector()
        try:
            metrics = collector.collect("process_")
        finally:
            collector.cleanup()

        assert all(sample.value >= 0 for sample in metrics[0].values)


class TestMemoryCollector:
    """Test memory collection"""

    def setup_method(self):
        self.collector = MemoryCollector(Config())

    def teardown_method(self):
        self.collector.cleanup()

    @patch('psutil.Process')
    def test_memory_sources(self, mock_process):
        MemInfo = namedtuple("MemInfo", "rss vms shared text lib data dirty")
        mock_process.return_value.memory_info.return_value = MemInfo(
            rss=100, vms=400, shared=30, text=1, lib=0, data=200, dirty=0
        )

        metrics = self.collector.collect("process_")

        assert metrics[0].name == "process_mem_usage"
        assert metrics[0].metric_type == MetricType.GAUGE
        values = {s.labels["source"]: s.value for s in metrics[0].values}
        assert values == {
            "heap_total": 400,
            "heap_used": 200,
            "external_memory": 30,
            "resident_memory": 100,
        }

    @patch('psutil.Process')
    def test_memory_without_platform_fields(self, mock_process):
        MemInfo = namedtuple("MemInfo", "rss vms")
        mock_process.return_value.memory_info.return_value = MemInfo(rss=100, vms=400)

        values = [s.value for s in self.collector.collect("")[0].values]

        assert values == [400, 100, 0, 100]

    @patch('psutil.Process')
    def test_memory_failure_yields_nothing(self, mock_process):
        mock_process.return_value.memory_info.side_effect = psutil.AccessDenied()

        assert self.collector.collect("process_") == []


class TestFileDescriptorCollector:
    """Test open descriptor counting"""

    def test_counts_entries_minus_listing_handle(self, tmp_path):
        for i in range(4):
            (tmp_path / str(i)).touch()
        collector = FileDescriptorCollector(fd_dir=str(tmp_path))

        with patch.object(sys, "platform", "linux"):
            metrics = collector.collect("process_")

        assert metrics[0].name == "process_open_file_descriptors"
        assert metrics[0].values[0].value == 3
        assert metrics[0].values[0].labels == {}

    def test_unsupported_platform_yields_nothing(self):
        collector = FileDescriptorCollector()

        with patch.object(sys, "platform", "darwin"):
            assert collector.collect("process_") == []

    def test_missing_directory_yields_nothing(self, tmp_path):
        collector = FileDescriptorCollector(fd_dir=str(tmp_path / "missing"))

        with patch.object(sys, "platform", "linux"):
            assert collector.collect("process_") == []


class TestEventLoopLagCollector:
    """Test event loop lag measurement"""

    @pytest.mark.asyncio
    async def test_lag_metric(self):
        collector = EventLoopLagCollector()

        metrics = await collector.collect_async("process_")

        assert metrics[0].name == "process_eventloop_lag_per_second"
        assert metrics[0].help_text == "Event loop lag in seconds"
        sample = metrics[0].values[0]
        assert sample.value >= 0
        assert sample.timestamp is not None


class TestRuntimeCollectors:
    """Test runtime introspection collectors"""

    @pytest.mark.asyncio
    async def test_active_requests_counts_pending_tasks(self):
        collector = ActiveRequestsCollector()
        baseline = collector.count_pending()
        blocker = asyncio.Event()
        app_task = asyncio.ensure_future(blocker.wait())
        own_task = asyncio.ensure_future(blocker.wait())
        own_task.set_name(COLLECTOR_TASK_PREFIX + "test")
        try:
            metrics = await collector.collect_async("process_")
        finally:
            blocker.set()
            await asyncio.gather(app_task, own_task)

        assert metrics[0].name == "process_active_requests"
        assert metrics[0].values[0].value == baseline + 1

    def test_active_requests_without_loop_yields_nothing(self):
        assert ActiveRequestsCollector().count_pending() is None

    @patch('psutil.Process')
    def test_active_handles_counts_sockets(self, mock_process):
        mock_process.return_value.net_connections.return_value = [Mock(), Mock()]
        collector = ActiveHandlesCollector()

        metrics = collector.collect("process_")
        collector.cleanup()

        assert metrics[0].name == "process_active_handles"
        assert metrics[0].values[0].value == 2
        mock_process.return_value.net_connections.assert_called_once_with(kind="all")

    @patch('psutil.Process')
    def test_active_handles_permission_denied(self, mock_process):
        mock_process.return_value.net_connections.side_effect = psutil.AccessDenied()
        collector = ActiveHandlesCollector()

        assert collector.collect("process_") == []
        collector.cleanup()

    @patch('psutil.Process')
    def test_active_handles_without_introspection(self, mock_process):
        mock_process.return_value = Mock(spec=[])
        collector = ActiveHandlesCollector()

        assert collector.collect("process_") == []
        collector.cleanup()


class TestCollectorBase:
    """Test shared collector behaviour"""

    def test_enabled_from_config(self):
        with patch.dict("os.environ", {"ENABLED_COLLECTORS_STR": "cpu,memory"}):
            config = Config()

        assert MemoryCollector(config).is_enabled() is True
        assert FileDescriptorCollector(config).is_enabled() is False

    @pytest.mark.asyncio
    async def test_safe_collect_swallows_failures(self):
        collector = MemoryCollector()
        error = RuntimeError("boom")
        with patch.object(collector, "collect", side_effect=error), \
                patch("collectors.base.log_error") as mock_log_error:
            assert await collector.safe_collect_async("process_") == []
        collector.cleanup()

        mock_log_error.assert_called_once()
        assert mock_log_error.call_args.args[1] is error
        assert mock_log_error.call_args.args[2]["collector"] == "memory"

    @pytest.mark.asyncio
    async def test_threaded_collect_async(self):
        reader = ReadingSequence(CpuReading(0, 0), CpuReading(1_000_000, 0))
        collector = CPUCollector(reader=reader)

        metrics = await collector.collect_async("x_")
        collector.cleanup()

        assert metrics[0].name == "x_cpu_time_per_second"
