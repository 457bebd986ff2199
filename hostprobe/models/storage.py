from __future__ import annotations

from hostprobe.models.record import Record


class ModelEntry(Record):
    name: str
    path: str
    size_bytes: int
    size: str


class DiskStats(Record):
    """Model directory size and free space on its backing device."""

    total_bytes: int
    total: str
    free_bytes: int | None = None
    free: str
    device: str
    dir: str
