from __future__ import annotations

import logging

from hostprobe.collectors.base import BaseCollector, Mode
from hostprobe.collectors.gpu_collector import MIB, parse_int
from hostprobe.errors import ToolUnavailable
from hostprobe.models.gpu import GPUProcess

logger = logging.getLogger(__name__)

NVIDIA_SMI_APPS = [
    "nvidia-smi",
    "--query-compute-apps=gpu_uuid,pid,process_name,used_memory",
    "--format=csv,noheader,nounits",
]
NVIDIA_SMI_PMON = ["nvidia-smi", "pmon", "-c", "1", "-s", "um"]
NVIDIA_SMI_UUIDS = [
    "nvidia-smi",
    "--query-gpu=index,uuid",
    "--format=csv,noheader,nounits",
]

SUGGESTION = "Make sure this nvidia-smi supports process queries"


def parse_uuid_table(text: str) -> dict[str, int]:
    """Map GPU UUID to device index from ``--query-gpu=index,uuid`` rows."""
    table: dict[str, int] = {}
    for line in text.splitlines():
        parts = [p.strip() for p in line.split(",")]
        if len(parts) < 2:
            continue
        try:
            table[parts[1]] = int(parts[0])
        except ValueError:
            continue
    return table


def parse_compute_apps(text: str, uuid_to_index: dict[str, int]) -> list[GPUProcess]:
    """Parse ``--query-compute-apps`` CSV rows.

    A UUID missing from ``uuid_to_index`` leaves ``gpu_index`` as None;
    the process is still reported.
    """
    processes: list[GPUProcess] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        parts = [p.strip() for p in line.split(",")]
        if len(parts) < 4:
            continue
        pid = parse_int(parts[1])
        if pid is None:
            logger.debug("Skipping compute-app row: %r", line)
            continue
        # MIG, containers and WDDM drivers report memory as [N/A]
        used_mib = parse_int(parts[3])
        processes.append(
            GPUProcess(
                gpu_uuid=parts[0],
                gpu_index=uuid_to_index.get(parts[0]),
                pid=pid,
                process_name=parts[2],
                used_memory_bytes=used_mib * MIB if used_mib is not None else None,
                used_memory_mib=used_mib,
            )
        )
    return processes


def parse_pmon(text: str, index_to_uuid: dict[int, str]) -> list[GPUProcess]:
    """Parse one sample of ``nvidia-smi pmon -s um``.

    Column order differs between driver versions, so positions are taken
    from the ``# gpu pid ...`` header. Idle devices print ``-`` as pid and
    are skipped.
    """
    columns: list[str] = []
    processes: list[GPUProcess] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith("#"):
            names = stripped.lstrip("#").split()
            # the second header line holds units ("Idx", "#", "MB", ...)
            if not columns and "pid" in names:
                columns = names
            continue
        if not columns:
            continue

        parts = stripped.split()
        if len(parts) < len(columns):
            continue
        row = dict(zip(columns, parts))
        if "command" in columns:
            row["command"] = " ".join(parts[columns.index("command"):])
        try:
            gpu_index = int(row["gpu"])
            pid = int(row["pid"])
        except (KeyError, ValueError):
            continue
        used_mib = parse_int(row.get("fb", "-"))

        processes.append(
            GPUProcess(
                gpu_uuid=index_to_uuid.get(gpu_index),
                gpu_index=gpu_index,
                pid=pid,
                process_name=row.get("command", ""),
                used_memory_bytes=used_mib * MIB if used_mib is not None else None,
                used_memory_mib=used_mib,
            )
        )
    return processes


class GpuProcessCollector(BaseCollector):
    """Collects GPU compute processes with owner and command line.

    Each process costs two ``ps`` calls of its own; unlike the port
    collector these lookups are not batched.
    """

    name = "gpu_process_collector"

    async def collect(self) -> list[GPUProcess]:
        probe = await self.probe(NVIDIA_SMI_APPS, NVIDIA_SMI_PMON)
        if probe.mode is Mode.UNAVAILABLE:
            raise ToolUnavailable(
                NVIDIA_SMI_APPS,
                "cannot query GPU processes",
                suggestion=SUGGESTION,
            )

        uuid_to_index = await self._uuid_table()
        if probe.mode is Mode.FULL:
            processes = parse_compute_apps(probe.output, uuid_to_index)
        else:
            index_to_uuid = {index: uuid for uuid, index in uuid_to_index.items()}
            processes = parse_pmon(probe.output, index_to_uuid)

        enriched = [await self._with_owner(p) for p in processes]
        logger.debug("Collected %d GPU processes (%s mode)", len(enriched), probe.mode)
        return enriched

    async def _uuid_table(self) -> dict[str, int]:
        output = await self.run_optional(NVIDIA_SMI_UUIDS)
        if output is None:
            logger.warning("GPU UUID lookup failed, gpu indexes will be empty")
            return {}
        return parse_uuid_table(output)

    async def _with_owner(self, process: GPUProcess) -> GPUProcess:
        user = await self.run_optional(["ps", "-o", "user=", "-p", str(process.pid)])
        cmd = await self.run_optional(["ps", "-o", "cmd=", "-p", str(process.pid)])
        return process.model_copy(
            update={
                "user": (user or "").strip() or None,
                "command_line": (cmd or "").strip() or None,
            }
        )
