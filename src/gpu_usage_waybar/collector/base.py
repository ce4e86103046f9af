"""
Base collector interface.

A collector is anything that can produce a GpuStatusData for one GPU.
This keeps the output layer decoupled from where the numbers come from
(NVML, amdgpu sysfs, or a test fake).
"""

from abc import ABC, abstractmethod

from gpu_usage_waybar.collector.drm import DrmDevice
from gpu_usage_waybar.metrics import GpuStatusData


class GpuCollector(ABC):
    """Interface for all GPU telemetry sources."""

    def __init__(self, device: DrmDevice):
        self.device = device

    def collect(self) -> GpuStatusData:
        """Fetch one reading. Doesn't touch the driver if the GPU is suspended."""
        if not self.device.is_powered_on():
            return GpuStatusData(powered_on=False)
        return self.read()

    @abstractmethod
    def read(self) -> GpuStatusData:
        """Query the vendor backend for current metrics."""
        ...

    @abstractmethod
    def name(self) -> str:
        """Human-readable model name for this GPU."""
        ...

    def close(self):
        pass
