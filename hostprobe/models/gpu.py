from __future__ import annotations

from hostprobe.models.record import Record


class GPUDevice(Record):
    """State of one GPU; every metric is None in degraded listing mode."""

    index: int
    name: str
    memory_used_bytes: int | None = None
    memory_total_bytes: int | None = None
    memory_used_mib: int | None = None
    memory_total_mib: int | None = None
    gpu_utilization_percent: int | None = None
    temperature_celsius: int | None = None
    power_draw_watts: float | None = None
    memory_utilization_percent: int | None = None
    degraded: bool = False


class GPUProcess(Record):
    """A compute process resident on a GPU.

    ``gpu_uuid`` is the join key reported by the process query;
    ``gpu_index`` is resolved from a separate device query and is None
    when that lookup misses.
    """

    gpu_uuid: str | None = None
    gpu_index: int | None = None
    pid: int
    process_name: str
    used_memory_bytes: int | None = None
    used_memory_mib: int | None = None
    user: str | None = None
    command_line: str | None = None
