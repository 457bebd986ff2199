from __future__ import annotations

import logging
import re

from hostprobe.collectors.base import BaseCollector, Mode
from hostprobe.collectors.process_enricher import ProcessEnricher
from hostprobe.errors import ToolUnavailable
from hostprobe.models.ports import (
    LISTENING,
    IpVersion,
    PortRecord,
    ProcessInfo,
    UnresolvedReason,
)
from hostprobe.runner import CommandRunner

logger = logging.getLogger(__name__)

NETSTAT_FULL = ["netstat", "-tulnp"]
NETSTAT_REDUCED = ["netstat", "-tuln"]

SUGGESTION = "Run the service with root privileges (e.g. sudo) so socket owners can be resolved"

_LISTEN_STATES = {"LISTEN", "LISTENING"}
_WILDCARD_PEERS = {"0.0.0.0:*", ":::*", "*:*", "[::]:*"}
_PID_PROGRAM = re.compile(r"^(\d+)/(.+)$")


def ip_version(local_address: str) -> IpVersion:
    """Guess the IP version from the address text.

    netstat prints no version column, so this looks for IPv6 notation
    (``::`` compression or a bracketed literal) in the local address.
    """
    if "::" in local_address or "[" in local_address:
        return IpVersion.IPV6
    return IpVersion.IPV4


def parse_port_table(text: str, mode: Mode) -> list[PortRecord]:
    """Build listening-port records from ``netstat -tuln[p]`` output.

    Header and malformed lines (fewer than six fields) are skipped, as are
    sockets in any state other than listening. In full mode a row whose
    PID/Program column is missing or unparsable is kept with no pid.
    """
    records: list[PortRecord] = []
    for line in text.splitlines():
        parts = line.split()
        if len(parts) < 6:
            continue
        protocol, _, _, local, remote, state = parts[:6]
        if state not in _LISTEN_STATES:
            continue

        pid: int | None = None
        process_name: str | None = None
        reason: UnresolvedReason | None = UnresolvedReason.NOT_REPORTED
        if mode is Mode.FULL:
            reason = UnresolvedReason.PERMISSION_DENIED
            # program names may contain spaces ("1234/Web Content")
            match = _PID_PROGRAM.match(" ".join(parts[6:])) if len(parts) > 6 else None
            if match:
                pid = int(match.group(1))
                process_name = match.group(2)
                reason = None

        records.append(
            PortRecord(
                protocol=protocol,
                local_address=local,
                remote_address="-" if remote in _WILDCARD_PEERS else remote,
                status=LISTENING,
                pid=pid,
                process_name=process_name,
                ip_version=ip_version(local),
                unresolved_reason=reason,
            )
        )

    records.sort(key=lambda r: r.port)
    return records


def join_process_info(
    records: list[PortRecord],
    info: dict[int, ProcessInfo],
) -> list[PortRecord]:
    """Return copies of ``records`` with memory and user filled in from ``info``."""
    joined: list[PortRecord] = []
    for record in records:
        found = info.get(record.pid) if record.pid is not None else None
        if found is None:
            joined.append(record)
            continue
        joined.append(
            record.model_copy(
                update={
                    "memory_usage_bytes": found.resident_memory_bytes,
                    "user": found.user,
                }
            )
        )
    return joined


class PortCollector(BaseCollector):
    """Collects listening sockets and the processes that own them."""

    name = "port_collector"

    def __init__(
        self,
        runner: CommandRunner,
        enricher: ProcessEnricher | None = None,
    ) -> None:
        super().__init__(runner)
        self._enricher = enricher or ProcessEnricher(runner)

    async def collect(self) -> list[PortRecord]:
        probe = await self.probe(NETSTAT_FULL, NETSTAT_REDUCED)
        if probe.mode is Mode.UNAVAILABLE:
            raise ToolUnavailable(
                NETSTAT_REDUCED,
                "cannot list listening ports, is netstat installed?",
                suggestion=SUGGESTION,
            )

        records = parse_port_table(probe.output, probe.mode)
        pids = {r.pid for r in records if r.pid is not None}
        info = await self._enricher.enrich(pids)
        logger.debug(
            "Collected %d listening ports (%s mode, %d/%d pids enriched)",
            len(records), probe.mode, len(info), len(pids),
        )
        return join_process_info(records, info)
