from __future__ import annotations

from enum import StrEnum

from hostprobe.models.record import Record


class IpVersion(StrEnum):
    IPV4 = "IPv4"
    IPV6 = "IPv6"


class UnresolvedReason(StrEnum):
    """Why a port row carries no process identity."""

    PERMISSION_DENIED = "permission_denied"  # tool supports it, lacked privilege
    NOT_REPORTED = "not_reported"  # tool variant never reports processes


LISTENING = "LISTENING"


class PortRecord(Record):
    """One listening socket from a single collection cycle."""

    protocol: str
    local_address: str
    remote_address: str
    status: str = LISTENING
    pid: int | None = None
    process_name: str | None = None
    memory_usage_bytes: int | None = None
    ip_version: IpVersion
    user: str | None = None
    unresolved_reason: UnresolvedReason | None = None

    @property
    def port(self) -> int:
        """Numeric port from the local address, 0 when unparsable."""
        try:
            return int(self.local_address.rsplit(":", 1)[-1])
        except ValueError:
            return 0


class ProcessInfo(Record):
    """Resident memory and owner of one pid, used only while joining."""

    pid: int
    resident_memory_bytes: int
    user: str
