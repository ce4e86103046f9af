"""
AMD GPU stats from the amdgpu sysfs interface.

Everything lives under /sys/class/drm/cardN/device: busy percentages and
VRAM counters directly, sensors under hwmon/hwmonM. Files that an older
kernel or a particular card doesn't provide just leave the metric as None.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from gpu_usage_waybar.collector.base import GpuCollector
from gpu_usage_waybar.collector.drm import DrmDevice
from gpu_usage_waybar.errors import GpuInitError
from gpu_usage_waybar.metrics import GpuStatusData, round_half_up

log = logging.getLogger(__name__)

PWM_MAX_DEFAULT = 255

_HWMON_RE = re.compile(r"^hwmon(\d+)$")


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text().strip()
    except OSError:
        return None


def _read_int(path: Path) -> Optional[int]:
    text = _read_text(path)
    if text is None:
        return None
    try:
        return int(text)
    except ValueError:
        log.debug("Unexpected contents in %s: %r", path, text)
        return None


class AmdCollector(GpuCollector):

    def __init__(self, device: DrmDevice):
        super().__init__(device)
        if not device.device_path.is_dir():
            raise GpuInitError(f"amdgpu sysfs directory missing: {device.device_path}")
        self._hwmon = self._find_hwmon()

    def _find_hwmon(self) -> Optional[Path]:
        hwmon_base = self.device.device_path / "hwmon"
        try:
            entries = list(hwmon_base.iterdir())
        except OSError:
            return None

        # hwmon10 sorts before hwmon2 as a string
        numbered = []
        for entry in entries:
            match = _HWMON_RE.match(entry.name)
            if match:
                numbered.append((int(match.group(1)), entry))
        if not numbered:
            return None
        return min(numbered)[1]

    def _read_temperature(self) -> Optional[float]:
        millidegrees = _read_int(self._hwmon / "temp1_input")
        return millidegrees / 1000.0 if millidegrees is not None else None

    def _read_power(self) -> Optional[float]:
        # power1_average on most cards, power1_input on RDNA3+
        for name in ("power1_average", "power1_input"):
            microwatts = _read_int(self._hwmon / name)
            if microwatts is not None:
                return microwatts / 1_000_000.0
        return None

    def _read_fan_speed(self) -> Optional[int]:
        pwm = _read_int(self._hwmon / "pwm1")
        if pwm is None:
            return None
        pwm_max = _read_int(self._hwmon / "pwm1_max") or PWM_MAX_DEFAULT
        return round_half_up(pwm * 100 / pwm_max)

    def read(self) -> GpuStatusData:
        path = self.device.device_path

        data = GpuStatusData(
            powered_on=True,
            gpu_utilization=_read_int(path / "gpu_busy_percent"),
            mem_rw=_read_int(path / "mem_busy_percent"),
            p_level=_read_text(path / "power_dpm_force_performance_level"),
        )

        vram_used = _read_int(path / "mem_info_vram_used")
        vram_total = _read_int(path / "mem_info_vram_total")
        data.mem_used = float(vram_used) if vram_used is not None else None
        data.mem_total = float(vram_total) if vram_total is not None else None

        if self._hwmon is not None:
            data.temperature = self._read_temperature()
            data.power = self._read_power()
            data.fan_speed = self._read_fan_speed()

        return data

    def name(self) -> str:
        product = _read_text(self.device.device_path / "product_name")
        return product or f"AMD GPU [{self.device.pci_id}]"
