"""
Format-string templates for the Waybar text and tooltip.

A template is parsed once into static chunks and Fields, then rendered
against a fresh GpuStatusData on every tick.
"""

from __future__ import annotations

import re
import struct
from decimal import Decimal
from typing import List, Union

from gpu_usage_waybar.formatter.fields import Field, FieldKind, parse_field
from gpu_usage_waybar.metrics import GpuStatusData

NOT_AVAILABLE = "N/A"

# {field}, {field:unit} or {field:unit.precision}
PLACEHOLDER_RE = re.compile(r"\{(\w+)(?::(\w+)(?:\.(\d+))?)?\}")

Chunk = Union[str, Field]


def trim_trailing_zeros(number: str) -> str:
    """Drop trailing zeros after the decimal point, and the point if nothing's left.

    "1.50" -> "1.5", "35.00" -> "35", "1000" -> "1000".
    """
    if "." not in number or "e" in number:
        return number
    return number.rstrip("0").rstrip(".")


def _to_f32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


def shortest_f32(value: float) -> str:
    """Shortest positional decimal that reads back as the same 32-bit float.

    Readings are only meaningful to single precision, so 36.6 C shows as
    97.88 F rather than 97.88000000000001.
    """
    target = _to_f32(value)
    for digits in range(1, 10):
        text = f"{target:.{digits}g}"
        if _to_f32(float(text)) == target:
            break
    return format(Decimal(text), "f")


def format_value(value, precision=None) -> str:
    if isinstance(value, bool) or not isinstance(value, float):
        return str(value)

    if precision is not None:
        text = f"{_to_f32(value):.{precision}f}"
    else:
        text = shortest_f32(value)
    return trim_trailing_zeros(text)


def parse_chunks(format_str: str) -> List[Chunk]:
    chunks: List[Chunk] = []
    last_end = 0

    for match in PLACEHOLDER_RE.finditer(format_str):
        if match.start() > last_end:
            chunks.append(format_str[last_end:match.start()])
        chunks.append(parse_field(*match.groups()))
        last_end = match.end()

    if last_end < len(format_str):
        chunks.append(format_str[last_end:])

    return chunks


class Template:
    """A parsed format string."""

    def __init__(self, chunks: List[Chunk], source: str = ""):
        self.chunks = chunks
        self.source = source

    @classmethod
    def parse(cls, format_str: str) -> "Template":
        """Parse a format string. Raises FormatError on a bad placeholder."""
        return cls(parse_chunks(format_str), source=format_str)

    @property
    def fields(self) -> List[Field]:
        return [c for c in self.chunks if isinstance(c, Field)]

    def render(self, data: GpuStatusData) -> str:
        parts = []
        for chunk in self.chunks:
            if isinstance(chunk, str):
                parts.append(chunk)
                continue

            value = chunk.value(data)
            if value is None:
                parts.append(NOT_AVAILABLE)
            else:
                parts.append(format_value(value, chunk.precision))
        return "".join(parts)

    def unavailable_fields(self, data: GpuStatusData) -> List[Field]:
        return [f for f in self.fields if f.kind is FieldKind.UNKNOWN or f.value(data) is None]

    def __repr__(self) -> str:
        return f"Template({self.source!r})"


def retain_lines_with_values(format_str: str, data: GpuStatusData) -> str:
    """Drop lines whose placeholders are all unavailable on this GPU.

    Lines without any placeholder are kept. Used for the default tooltip so
    an AMD card doesn't show a column of N/A for NVIDIA-only metrics.
    """
    kept = []
    for line in format_str.split("\n"):
        template = Template.parse(line)
        fields = template.fields
        if fields and len(template.unavailable_fields(data)) == len(fields):
            continue
        kept.append(line)
    return "\n".join(kept)
