from .gpu import GPUDevice, GPUProcess
from .ports import LISTENING, IpVersion, PortRecord, ProcessInfo, UnresolvedReason
from .record import Record
from .storage import DiskStats, ModelEntry

__all__ = [
    "GPUDevice",
    "GPUProcess",
    "LISTENING",
    "IpVersion",
    "PortRecord",
    "ProcessInfo",
    "UnresolvedReason",
    "Record",
    "DiskStats",
    "ModelEntry",
]
