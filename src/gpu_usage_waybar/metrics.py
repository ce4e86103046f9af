"""
Core metric definitions for gpu-usage-waybar.

Every collector produces a GpuStatusData. Values are stored in base units
(bytes, degrees Celsius, watts, bytes/s) and converted at format time.
None means the driver doesn't expose that metric on this GPU.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


def round_half_up(value: float) -> int:
    """Round .5 up for percentages (Python's round() goes to even)."""
    return math.floor(value + 0.5)


class PState(Enum):
    """NVIDIA performance state. P0 is max performance, P15 is minimum."""

    P0 = 0
    P1 = 1
    P2 = 2
    P3 = 3
    P4 = 4
    P5 = 5
    P6 = 6
    P7 = 7
    P8 = 8
    P9 = 9
    P10 = 10
    P11 = 11
    P12 = 12
    P13 = 13
    P14 = 14
    P15 = 15
    UNKNOWN = 32

    @classmethod
    def from_nvml(cls, value: int) -> "PState":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN

    def __str__(self) -> str:
        return "Unknown" if self is PState.UNKNOWN else self.name


@dataclass
class GpuStatusData:
    """A single point-in-time reading from one GPU."""

    # Whether the GPU is powered on at the PCI level
    powered_on: bool = True

    # Percentages (0 - 100)
    gpu_utilization: Optional[int] = None
    mem_rw: Optional[int] = None
    decoder_utilization: Optional[int] = None
    encoder_utilization: Optional[int] = None
    fan_speed: Optional[int] = None

    # Memory (bytes)
    mem_used: Optional[float] = None
    mem_total: Optional[float] = None

    temperature: Optional[float] = None    # degrees C
    power: Optional[float] = None          # watts

    p_state: Optional[PState] = None       # NVIDIA only
    p_level: Optional[str] = None          # AMD only

    # PCIe throughput (bytes/s)
    tx: Optional[float] = None
    rx: Optional[float] = None

    @property
    def mem_utilization(self) -> Optional[int]:
        """Memory used as a rounded percentage of total."""
        if self.mem_used is None or not self.mem_total:
            return None
        return round_half_up(self.mem_used * 100 / self.mem_total)

    def summary(self) -> dict:
        """Return a plain dict for logging."""
        return {
            "powered_on": self.powered_on,
            "gpu_utilization": self.gpu_utilization,
            "mem_utilization": self.mem_utilization,
            "temperature": self.temperature,
            "power": round(self.power, 1) if self.power is not None else None,
            "p_state": str(self.p_state) if self.p_state is not None else None,
            "p_level": self.p_level,
        }
