from __future__ import annotations

import logging
from typing import Iterable

from hostprobe.errors import ToolUnavailable
from hostprobe.models.ports import ProcessInfo
from hostprobe.runner import CommandRunner

logger = logging.getLogger(__name__)


def ps_batch_command(pids: Iterable[int]) -> list[str]:
    pid_list = ",".join(str(p) for p in sorted(set(pids)))
    return ["ps", "-o", "pid=,rss=,user=", "-p", pid_list]


def parse_process_table(text: str) -> dict[int, ProcessInfo]:
    """Parse ``pid rss user`` rows; RSS is reported in KiB."""
    result: dict[int, ProcessInfo] = {}
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 3:
            continue
        try:
            pid = int(parts[0])
            rss_kib = int(parts[1])
        except ValueError:
            logger.debug("Skipping ps row: %r", line)
            continue
        result[pid] = ProcessInfo(
            pid=pid,
            resident_memory_bytes=rss_kib * 1024,
            user=parts[2],
        )
    return result


class ProcessEnricher:
    """Resolves memory and owner for a set of pids with one ``ps`` call."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    async def enrich(self, pids: Iterable[int]) -> dict[int, ProcessInfo]:
        pids = set(pids)
        if not pids:
            return {}
        try:
            output = await self._runner.run(ps_batch_command(pids))
        except ToolUnavailable as exc:
            logger.warning("Process lookup failed, leaving fields empty: %s", exc)
            return {}
        return parse_process_table(output)
