"""Tests for MetricsSampler and ProcessRanker."""

import time
from types import SimpleNamespace

import psutil
import pytest

from healthtop.models import MetricsSnapshot, ProcessEntry
from healthtop.monitor import MetricsSampler, ProcessRanker, rank_processes


def _entry(pid: int, cpu: float, mem: int, name: str = "") -> ProcessEntry:
    return ProcessEntry(name=name or f"proc{pid}", pid=pid, cpu_percent=cpu, memory_bytes=mem)


class TestRankProcesses:
    """Tests for the pure ranking function."""

    def test_orders_by_composite_score(self):
        """Test processes are ordered by cpu + memory/1e6, heaviest first."""
        entries = [
            _entry(1, cpu=50.0, mem=0),  # 50
            _entry(2, cpu=0.0, mem=800_000_000),  # 800
            _entry(3, cpu=10.0, mem=100_000_000),  # 110
        ]

        ranked = rank_processes(entries)

        assert [p.pid for p in ranked] == [2, 3, 1]

    def test_caps_to_top_five(self):
        """Test only the top five are returned, in descending score order."""
        entries = [_entry(pid, cpu=float(pid), mem=0) for pid in range(1, 21)]

        ranked = rank_processes(entries)

        assert [p.pid for p in ranked] == [20, 19, 18, 17, 16]
        scores = [p.score for p in ranked]
        assert scores == sorted(scores, reverse=True)

    def test_custom_limit(self):
        """Test a custom limit is honored."""
        entries = [_entry(pid, cpu=1.0, mem=pid) for pid in range(10)]
        assert len(rank_processes(entries, limit=3)) == 3

    def test_ties_are_deterministic(self):
        """Test equal scores rank identically regardless of input order."""
        entries = [_entry(pid, cpu=5.0, mem=0) for pid in (7, 3, 9, 1)]

        first = rank_processes(entries)
        second = rank_processes(list(reversed(entries)))

        assert [p.pid for p in first] == [1, 3, 7, 9]
        assert first == second

    def test_empty_input(self):
        """Test ranking nothing returns nothing."""
        assert rank_processes([]) == []


class TestProcessRanker:
    """Tests for ProcessRanker against the real process table."""

    def test_rank_returns_entries(self):
        """Test rank returns at most five ProcessEntry instances."""
        ranker = ProcessRanker()

        ranked = ranker.rank()

        assert 0 < len(ranked) <= 5
        for proc in ranked:
            assert isinstance(proc, ProcessEntry)
            assert isinstance(proc.name, str)
            assert isinstance(proc.memory_bytes, int)

    def test_rank_custom_limit(self):
        """Test the limit passed to the ranker is applied."""
        ranker = ProcessRanker(limit=2)
        assert ranker.limit == 2
        assert len(ranker.rank()) <= 2

    def test_rank_skips_vanished_processes(self, mocker):
        """Test a process that dies mid-iteration is skipped."""

        class Vanishing:
            @property
            def info(self):
                raise psutil.NoSuchProcess(pid=99)

        alive = SimpleNamespace(
            info={
                "pid": 10,
                "name": "alive",
                "cpu_percent": 3.0,
                "memory_info": SimpleNamespace(rss=2_000_000),
            }
        )
        mocker.patch("healthtop.monitor.psutil.process_iter", return_value=[Vanishing(), alive])

        ranked = ProcessRanker().rank()

        assert ranked == [ProcessEntry(name="alive", pid=10, cpu_percent=3.0, memory_bytes=2_000_000)]

    def test_rank_handles_missing_fields(self, mocker):
        """Test None values from access-denied attributes default to zero."""
        denied = SimpleNamespace(
            info={"pid": 5, "name": None, "cpu_percent": None, "memory_info": None}
        )
        mocker.patch("healthtop.monitor.psutil.process_iter", return_value=[denied])

        ranked = ProcessRanker().rank()

        assert ranked == [ProcessEntry(name="", pid=5, cpu_percent=0.0, memory_bytes=0)]


class TestMetricsSampler:
    """Tests for MetricsSampler."""

    def test_sample_real_host(self):
        """Test sampling the real host returns sane values."""
        sampler = MetricsSampler()

        snapshot = sampler.sample()

        assert isinstance(snapshot, MetricsSnapshot)
        assert 0.0 <= snapshot.cpu_percent <= 100.0
        assert snapshot.memory_total > 0
        assert 0.0 <= snapshot.memory_percent <= 100.0
        assert sampler.last is snapshot

    def test_sample_is_fast(self):
        """Test sampling stays well inside the refresh cadence."""
        sampler = MetricsSampler()
        start = time.perf_counter()
        sampler.sample()
        assert time.perf_counter() - start < 1.0

    def test_failed_probe_keeps_last_value(self, mocker):
        """Test a failing probe reuses the previous snapshot's value."""
        sampler = MetricsSampler()
        first = sampler.sample()

        mocker.patch(
            "healthtop.monitor.psutil.virtual_memory",
            side_effect=psutil.AccessDenied(),
        )
        second = sampler.sample()

        assert second.memory_total == first.memory_total
        assert second.memory_used == first.memory_used

    def test_failed_probe_before_first_sample_is_zero(self, mocker):
        """Test a probe failing on the first sample degrades to zero."""
        mocker.patch("healthtop.monitor.psutil.swap_memory", side_effect=OSError("no swap info"))
        sampler = MetricsSampler()

        snapshot = sampler.sample()

        assert snapshot.swap_total == 0
        assert snapshot.swap_percent == 0.0

    def test_disk_usage_sums_partitions_once_per_device(self, mocker):
        """Test disk usage aggregates physical partitions and skips duplicates."""
        partitions = [
            SimpleNamespace(device="/dev/sda1", mountpoint="/"),
            SimpleNamespace(device="/dev/sda1", mountpoint="/var/bind"),
            SimpleNamespace(device="/dev/sdb1", mountpoint="/data"),
            SimpleNamespace(device="/dev/sdc1", mountpoint="/gone"),
        ]
        usages = {
            "/": SimpleNamespace(total=1000, free=400),
            "/data": SimpleNamespace(total=500, free=500),
        }

        def fake_usage(mountpoint):
            if mountpoint not in usages:
                raise PermissionError(mountpoint)
            return usages[mountpoint]

        mocker.patch("healthtop.monitor.psutil.disk_partitions", return_value=partitions)
        mocker.patch("healthtop.monitor.psutil.disk_usage", side_effect=fake_usage)

        snapshot = MetricsSampler().sample()

        assert snapshot.disk_total == 1500
        assert snapshot.disk_used == 600
        assert snapshot.disk_percent == pytest.approx(40.0)

    def test_no_partitions_means_zero_percent(self, mocker):
        """Test a host reporting no partitions shows 0% disk, not an error."""
        mocker.patch("healthtop.monitor.psutil.disk_partitions", return_value=[])

        snapshot = MetricsSampler().sample()

        assert snapshot.disk_total == 0
        assert snapshot.disk_percent == 0.0
