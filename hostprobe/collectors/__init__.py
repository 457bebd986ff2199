from .base import BaseCollector, Mode, Probe
from .gpu_collector import GpuCollector
from .gpu_process_collector import GpuProcessCollector
from .port_collector import PortCollector
from .process_enricher import ProcessEnricher
from .storage_collector import DiskCollector, ModelCollector

__all__ = [
    "BaseCollector",
    "Mode",
    "Probe",
    "GpuCollector",
    "GpuProcessCollector",
    "PortCollector",
    "ProcessEnricher",
    "DiskCollector",
    "ModelCollector",
]
