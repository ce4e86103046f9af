"""
Placeholder fields: what may appear between braces in a format string.

    {gpu_utilization}       plain field, no unit
    {mem_used:MiB}          unit required
    {temperature:c.1}       unit plus number of decimal places
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from gpu_usage_waybar.errors import FormatError
from gpu_usage_waybar.formatter.units import MemUnit, PowerUnit, TemperatureUnit
from gpu_usage_waybar.metrics import GpuStatusData

log = logging.getLogger(__name__)

Unit = Union[MemUnit, TemperatureUnit, PowerUnit]


class FieldKind(Enum):
    PLAIN = "plain"
    MEMORY = "memory"
    TEMPERATURE = "temperature"
    POWER = "power"
    UNKNOWN = "unknown"


# Fields rendered as-is (percentages and state names)
PLAIN_FIELDS = (
    "gpu_utilization",
    "mem_rw",
    "mem_utilization",
    "decoder_utilization",
    "encoder_utilization",
    "fan_speed",
    "p_state",
    "p_level",
)

# Information-valued fields, stored in bytes (tx/rx in bytes per second)
MEMORY_FIELDS = ("mem_used", "mem_total", "tx", "rx")

_UNIT_PARSERS = {
    FieldKind.MEMORY: MemUnit.parse,
    FieldKind.TEMPERATURE: TemperatureUnit.parse,
    FieldKind.POWER: PowerUnit.parse,
}


@dataclass(frozen=True)
class Field:
    kind: FieldKind
    name: str
    unit: Optional[Unit] = None
    precision: Optional[int] = None

    def value(self, data: GpuStatusData):
        """Raw value for this field, converted to the requested unit.

        Returns None for unknown fields and for metrics the GPU didn't report.
        """
        if self.kind is FieldKind.UNKNOWN:
            return None

        raw = getattr(data, self.name)
        if raw is None or self.unit is None:
            return raw
        return self.unit.convert(raw)


def _kind_for(name: str) -> FieldKind:
    if name in PLAIN_FIELDS:
        return FieldKind.PLAIN
    if name in MEMORY_FIELDS:
        return FieldKind.MEMORY
    if name == "temperature":
        return FieldKind.TEMPERATURE
    if name == "power":
        return FieldKind.POWER
    return FieldKind.UNKNOWN


def parse_field(name: str, unit: Optional[str] = None, precision: Optional[str] = None) -> Field:
    """Build a Field from the pieces of a `{name:unit.precision}` placeholder.

    Unknown names log a warning and come back as FieldKind.UNKNOWN, which
    renders as N/A. Fields that need a unit raise FormatError without one,
    or when the unit isn't valid for that field.
    """
    kind = _kind_for(name)

    if kind is FieldKind.UNKNOWN:
        log.warning("Unknown field: %s", name)
        return Field(kind=kind, name=name)

    if kind is FieldKind.PLAIN:
        return Field(kind=kind, name=name)

    if unit is None:
        raise FormatError(f"No unit provided for `{name}`, which requires one")

    try:
        parsed_unit = _UNIT_PARSERS[kind](unit)
    except ValueError:
        raise FormatError(f"Invalid {kind.value} unit: `{unit}`") from None

    return Field(
        kind=kind,
        name=name,
        unit=parsed_unit,
        precision=int(precision) if precision is not None else None,
    )
