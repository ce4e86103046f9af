"""
Unit conversions for formatted fields.

Values arrive in the units GpuStatusData stores them in (bytes, degrees C,
watts) and leave in whatever the format string asked for.
"""

from __future__ import annotations

from enum import Enum


class MemUnit(Enum):
    """Information units. Case matters: MB is megabytes, Mb is megabits."""

    KiB = "KiB"
    MiB = "MiB"
    GiB = "GiB"
    KB = "KB"
    MB = "MB"
    GB = "GB"
    Kib = "Kib"
    Mib = "Mib"
    Gib = "Gib"
    Kb = "Kb"
    Mb = "Mb"
    Gb = "Gb"

    @classmethod
    def parse(cls, name: str) -> "MemUnit":
        return cls(name)

    @property
    def _divisor(self) -> float:
        base = 1024 if "i" in self.value else 1000
        exponent = "KMG".index(self.value[0]) + 1
        return float(base ** exponent)

    @property
    def _is_bits(self) -> bool:
        return self.value.endswith("b")

    def convert(self, num_bytes: float) -> float:
        value = num_bytes * 8 if self._is_bits else num_bytes
        return value / self._divisor


class TemperatureUnit(Enum):
    CELSIUS = "c"
    FAHRENHEIT = "f"
    KELVIN = "k"

    @classmethod
    def parse(cls, name: str) -> "TemperatureUnit":
        return cls(name.lower())

    def convert(self, celsius: float) -> float:
        if self is TemperatureUnit.FAHRENHEIT:
            return celsius * 9 / 5 + 32
        if self is TemperatureUnit.KELVIN:
            return celsius + 273.15
        return celsius


class PowerUnit(Enum):
    WATT = "w"
    KILOWATT = "kw"

    @classmethod
    def parse(cls, name: str) -> "PowerUnit":
        return cls(name)

    def convert(self, watts: float) -> float:
        if self is PowerUnit.KILOWATT:
            return watts / 1000.0
        return watts
