from __future__ import annotations

from collections import namedtuple
from unittest.mock import MagicMock, patch

import pytest

from hostprobe.collectors.storage_collector import (
    DiskCollector,
    ModelCollector,
    format_bytes,
    parse_du,
)
from hostprobe.errors import CollectionError

MIB = 1024 * 1024

FakePartition = namedtuple("FakePartition", ["device", "mountpoint"])
FakeUsage = namedtuple("FakeUsage", ["free"])


def _patch_disks(partitions: list[FakePartition], free: dict[str, int]):
    """Context manager to mock psutil partition listing and usage."""
    mock_psutil = MagicMock()
    mock_psutil.disk_partitions.return_value = partitions
    mock_psutil.disk_usage.side_effect = lambda mount: FakeUsage(free[mount])
    return patch("hostprobe.collectors.storage_collector.psutil", mock_psutil)


# ── helpers ─────────────────────────────────────────────


@pytest.mark.parametrize(
    "num, expected",
    [
        (0, "0B"),
        (1023, "1023B"),
        (1536, "1.5KB"),
        (10 * 1024, "10KB"),
        (3 * 1024**3 + 512 * MIB, "3.5GB"),
        (2 * 1024**5, "2048TB"),
        (-1, "unknown"),
        (None, "unknown"),
        (float("nan"), "unknown"),
    ],
)
def test_format_bytes(num, expected):
    assert format_bytes(num) == expected


def test_parse_du():
    assert parse_du("123456\t/publicdata/model/llama\n") == 123456
    assert parse_du("") is None
    assert parse_du("du: cannot access") is None


# ── models ──────────────────────────────────────────────


@pytest.mark.asyncio
async def test_lists_large_model_dirs(tmp_path, runner):
    for name in ("llama", "tiny", "qwen"):
        (tmp_path / name).mkdir()
    (tmp_path / "README.md").write_text("not a model")
    runner.set(["du", "-sb", str(tmp_path / "llama")], f"{20 * MIB}\t{tmp_path / 'llama'}\n")
    runner.set(["du", "-sb", str(tmp_path / "tiny")], f"{MIB}\t{tmp_path / 'tiny'}\n")
    # qwen's du fails and the entry is dropped

    models = await ModelCollector(runner, str(tmp_path)).collect()

    assert [m.name for m in models] == ["llama"]
    assert models[0].size_bytes == 20 * MIB
    assert models[0].size == "20MB"
    assert models[0].path == str(tmp_path / "llama")


@pytest.mark.asyncio
async def test_missing_model_dir_raises(tmp_path, runner):
    with pytest.raises(CollectionError):
        await ModelCollector(runner, str(tmp_path / "nope")).collect()


# ── disk stats ──────────────────────────────────────────


@pytest.mark.asyncio
async def test_disk_stats_prefer_configured_device(runner):
    runner.set(["du", "-sb", "/models"], "4096\t/models\n")
    parts = [FakePartition("/dev/sda1", "/"), FakePartition("/dev/nvme1n1p1", "/data")]
    with _patch_disks(parts, {"/": 900 * MIB, "/data": 100 * MIB}):
        [stats] = await DiskCollector(runner, "/models", "/dev/nvme1n1p1").collect()

    assert stats.total_bytes == 4096
    assert stats.total == "4.0KB"
    assert stats.free_bytes == 100 * MIB
    assert stats.device == "/dev/nvme1n1p1"
    assert stats.dir == "/models"


@pytest.mark.asyncio
async def test_disk_stats_fall_back_to_largest_partition(runner):
    runner.set(["du", "-sb", "/models"], "1\t/models\n")
    parts = [FakePartition("/dev/sda1", "/"), FakePartition("/dev/sdb1", "/data")]
    with _patch_disks(parts, {"/": 5 * MIB, "/data": 7 * MIB}):
        [stats] = await DiskCollector(runner, "/models", "/dev/nvme1n1p1").collect()

    assert stats.free_bytes == 7 * MIB


@pytest.mark.asyncio
async def test_disk_stats_unknown_free_space(runner):
    runner.set(["du", "-sb", "/models"], "1\t/models\n")
    with _patch_disks([], {}):
        [stats] = await DiskCollector(runner, "/models", "/dev/nvme1n1p1").collect()

    assert stats.free_bytes is None
    assert stats.free == "unknown"


@pytest.mark.asyncio
async def test_disk_stats_fail_without_du(runner):
    with pytest.raises(CollectionError):
        await DiskCollector(runner, "/models", "/dev/nvme1n1p1").collect()
