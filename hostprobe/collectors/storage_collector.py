from __future__ import annotations

import logging
import math
from pathlib import Path

import psutil

from hostprobe.collectors.base import BaseCollector
from hostprobe.errors import CollectionError, ToolUnavailable
from hostprobe.models.storage import DiskStats, ModelEntry
from hostprobe.runner import CommandRunner

logger = logging.getLogger(__name__)

_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_bytes(num: float | None) -> str:
    """Human-readable size with 1024-based units, e.g. ``1.5GB``."""
    if num is None or not math.isfinite(num) or num < 0:
        return "unknown"
    i = 0
    n = float(num)
    while n >= 1024 and i < len(_UNITS) - 1:
        n /= 1024
        i += 1
    decimals = 0 if n >= 10 or i == 0 else 1
    return f"{n:.{decimals}f}{_UNITS[i]}"


def parse_du(text: str) -> int | None:
    """Byte count from the first field of ``du -sb`` output."""
    fields = text.split()
    if not fields:
        return None
    try:
        return int(fields[0])
    except ValueError:
        return None


async def directory_size(runner: CommandRunner, path: str) -> int | None:
    try:
        return parse_du(await runner.run(["du", "-sb", path]))
    except ToolUnavailable as exc:
        logger.debug("Size of %s unavailable: %s", path, exc)
        return None


class ModelCollector(BaseCollector):
    """Lists model directories that are at least ``min_size_bytes`` large."""

    name = "model_collector"

    def __init__(
        self,
        runner: CommandRunner,
        model_dir: str,
        min_size_bytes: int = 10 * 1024 * 1024,
    ) -> None:
        super().__init__(runner)
        self.model_dir = Path(model_dir)
        self.min_size_bytes = min_size_bytes

    async def collect(self) -> list[ModelEntry]:
        try:
            children = sorted(p for p in self.model_dir.iterdir() if p.is_dir())
        except OSError as exc:
            raise CollectionError(f"cannot read {self.model_dir}: {exc.strerror or exc}") from exc

        models: list[ModelEntry] = []
        for child in children:
            size = await directory_size(self._runner, str(child))
            if size is None or size < self.min_size_bytes:
                continue
            models.append(
                ModelEntry(
                    name=child.name,
                    path=str(child),
                    size_bytes=size,
                    size=format_bytes(size),
                )
            )
        return models


class DiskCollector(BaseCollector):
    """Reports the model directory's size and free space on its device."""

    name = "disk_collector"

    def __init__(self, runner: CommandRunner, model_dir: str, device: str) -> None:
        super().__init__(runner)
        self.model_dir = model_dir
        self.device = device

    async def collect(self) -> list[DiskStats]:
        total = await directory_size(self._runner, self.model_dir)
        if total is None:
            raise CollectionError(f"cannot measure {self.model_dir}")

        free = self._free_bytes()
        return [
            DiskStats(
                total_bytes=total,
                total=format_bytes(total),
                free_bytes=free,
                free=format_bytes(free),
                device=self.device,
                dir=self.model_dir,
            )
        ]

    def _free_bytes(self) -> int | None:
        """Free bytes on ``device``, else the largest free value of any partition."""
        try:
            partitions = psutil.disk_partitions(all=False)
        except OSError:
            logger.warning("Cannot list disk partitions")
            return None

        best: int | None = None
        for part in partitions:
            try:
                free = psutil.disk_usage(part.mountpoint).free
            except OSError:
                continue
            if part.device == self.device:
                return free
            if best is None or free > best:
                best = free
        return best
