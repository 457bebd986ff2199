from __future__ import annotations

import logging
import math

from hostprobe.collectors.base import BaseCollector, Mode
from hostprobe.errors import ToolUnavailable
from hostprobe.models.gpu import GPUDevice

logger = logging.getLogger(__name__)

MIB = 1024 * 1024

NVIDIA_SMI_METRICS = [
    "nvidia-smi",
    "--query-gpu=index,name,memory.used,memory.total,utilization.gpu,temperature.gpu,power.draw",
    "--format=csv,noheader,nounits",
]
LSPCI = ["lspci"]

SUGGESTION = "Make sure nvidia-smi is installed and the GPU driver is loaded"


def parse_int(value: str) -> int | None:
    try:
        return int(value.strip())
    except ValueError:
        return None


def _float(value: str) -> float | None:
    try:
        result = float(value.strip())
    except ValueError:
        return None
    return result if math.isfinite(result) else None


def memory_utilization(used_mib: int | None, total_mib: int | None) -> int | None:
    """Percent of memory in use, rounded half up."""
    if used_mib is None or not total_mib:
        return None
    return math.floor(used_mib / total_mib * 100 + 0.5)


def parse_gpu_metrics(text: str) -> list[GPUDevice]:
    """Parse ``nvidia-smi --query-gpu`` CSV rows into devices.

    Rows with fewer than seven fields or a non-integer index are dropped.
    Unreported values such as ``[N/A]`` become None.
    """
    devices: list[GPUDevice] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        parts = [p.strip() for p in line.split(",")]
        if len(parts) < 7:
            logger.debug("Skipping GPU row: %r", line)
            continue
        index = parse_int(parts[0])
        if index is None:
            logger.debug("Skipping GPU row with bad index: %r", line)
            continue

        # names may contain commas; the five metric columns are always last
        name = ", ".join(parts[1:-5])
        used, total, util, temp, power = parts[-5:]
        used_mib = parse_int(used)
        total_mib = parse_int(total)
        # memory figures are reported together or not at all
        if used_mib is None or total_mib is None:
            used_mib = total_mib = None
        devices.append(
            GPUDevice(
                index=index,
                name=name,
                memory_used_bytes=used_mib * MIB if used_mib is not None else None,
                memory_total_bytes=total_mib * MIB if total_mib is not None else None,
                memory_used_mib=used_mib,
                memory_total_mib=total_mib,
                gpu_utilization_percent=parse_int(util),
                temperature_celsius=parse_int(temp),
                power_draw_watts=_float(power),
                memory_utilization_percent=memory_utilization(used_mib, total_mib),
            )
        )
    return devices


def parse_gpu_listing(text: str) -> list[GPUDevice]:
    """One metric-less device per display controller line of ``lspci``."""
    lines = [line.strip() for line in text.splitlines() if "vga" in line.lower()]
    return [
        GPUDevice(index=i, name=line, degraded=True)
        for i, line in enumerate(lines)
    ]


class GpuCollector(BaseCollector):
    """Collects per-device GPU metrics, or a bare device listing without them."""

    name = "gpu_collector"

    async def collect(self) -> list[GPUDevice]:
        probe = await self.probe(NVIDIA_SMI_METRICS, LSPCI)
        if probe.mode is Mode.FULL:
            return parse_gpu_metrics(probe.output)
        if probe.mode is Mode.DEGRADED:
            return parse_gpu_listing(probe.output)
        raise ToolUnavailable(
            NVIDIA_SMI_METRICS,
            "cannot query GPU devices",
            suggestion=SUGGESTION,
        )
