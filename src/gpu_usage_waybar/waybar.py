"""
Waybar output: one compact JSON object per line on stdout.

Waybar's custom module reads `{"text": ..., "tooltip": ...}` either once per
`interval` tick (run_once) or line by line from a long-running process
(run_loop).
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from dataclasses import asdict, dataclass
from typing import Optional, TextIO

from gpu_usage_waybar.collector.base import GpuCollector
from gpu_usage_waybar.formatter import Template
from gpu_usage_waybar.metrics import GpuStatusData

log = logging.getLogger(__name__)

POWERED_OFF_TEXT = "Off"
POWERED_OFF_TOOLTIP = "GPU powered off"


@dataclass
class WaybarOutput:
    text: str
    tooltip: str

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, separators=(",", ":"))


def render(data: GpuStatusData, text: Template, tooltip: Template) -> WaybarOutput:
    if not data.powered_on:
        return WaybarOutput(text=POWERED_OFF_TEXT, tooltip=POWERED_OFF_TOOLTIP)
    return WaybarOutput(text=text.render(data), tooltip=tooltip.render(data))


def _emit(output: WaybarOutput, stream: TextIO):
    stream.write(output.to_json() + "\n")
    stream.flush()


def run_once(
    collector: GpuCollector,
    text: Template,
    tooltip: Template,
    stream: Optional[TextIO] = None,
    data: Optional[GpuStatusData] = None,
) -> WaybarOutput:
    """Write one reading as a single JSON line.

    Pass `data` to reuse a reading taken earlier instead of querying again.
    """
    stream = stream or sys.stdout
    if data is None:
        data = collector.collect()
    log.debug("Reading: %s", data.summary())

    output = render(data, text, tooltip)
    _emit(output, stream)
    return output


def _silence_stdout():
    # Point stdout at /dev/null so the interpreter's final flush can't hit EPIPE again
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, sys.stdout.fileno())


def run_loop(
    collector: GpuCollector,
    text: Template,
    tooltip: Template,
    interval_ms: int,
    stream: Optional[TextIO] = None,
    first_reading: Optional[GpuStatusData] = None,
):
    """Write a JSON line every interval_ms until interrupted or the reader goes away.

    Collection errors propagate; Waybar restarts the module if configured to.
    """
    stream = stream or sys.stdout
    interval = interval_ms / 1000.0
    log.info("Starting output loop: source=%s, interval=%.3fs", collector.name(), interval)

    data = first_reading
    try:
        while True:
            run_once(collector, text, tooltip, stream, data=data)
            data = None
            time.sleep(interval)
    except KeyboardInterrupt:
        pass
    except BrokenPipeError:
        log.debug("Output pipe closed, stopping")
        if stream is sys.stdout:
            _silence_stdout()
