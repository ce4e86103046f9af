"""
DRM device discovery through /sys/class/drm.

Each GPU shows up as a cardN entry whose `device` link points at the PCI
device directory. That directory holds the vendor/device ids we dispatch on,
and (for AMD) the telemetry files themselves.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from gpu_usage_waybar.errors import GpuNotFoundError

log = logging.getLogger(__name__)

DRM_ROOT = Path("/sys/class/drm")

VENDOR_NVIDIA = 0x10DE
VENDOR_AMD = 0x1002
VENDOR_INTEL = 0x8086

VENDOR_NAMES = {
    VENDOR_NVIDIA: "NVIDIA Corporation",
    VENDOR_AMD: "Advanced Micro Devices, Inc. [AMD/ATI]",
    VENDOR_INTEL: "Intel Corporation",
}

# card0, card1, ... but not connectors like card0-DP-1
_CARD_RE = re.compile(r"^card(\d+)$")


def _read_hex(path: Path) -> Optional[int]:
    try:
        return int(path.read_text().strip(), 16)
    except (OSError, ValueError):
        return None


@dataclass
class DrmDevice:
    card_index: int
    device_path: Path        # /sys/class/drm/cardN/device
    vendor_id: Optional[int]
    device_id: Optional[int]
    pci_slot: str            # e.g. 0000:01:00.0

    @property
    def vendor_name(self) -> str:
        if self.vendor_id is None:
            return "unknown vendor"
        return VENDOR_NAMES.get(self.vendor_id, f"vendor {self.vendor_id:04x}")

    @property
    def pci_id(self) -> str:
        vendor = f"{self.vendor_id:04x}" if self.vendor_id is not None else "????"
        device = f"{self.device_id:04x}" if self.device_id is not None else "????"
        return f"{vendor}:{device}"

    def is_powered_on(self) -> bool:
        """False when the PCI device is runtime-suspended.

        Reading runtime_status doesn't wake the GPU; a missing file means the
        kernel doesn't do runtime PM for it, so treat it as on.
        """
        status_path = self.device_path / "power" / "runtime_status"
        try:
            status = status_path.read_text().strip()
        except OSError:
            return True
        return status == "active"


def scan_drm_devices(root: Path = DRM_ROOT) -> List[DrmDevice]:
    """List GPUs under the DRM sysfs root, sorted by card index."""
    root = Path(root)
    devices: List[DrmDevice] = []

    try:
        entries = list(root.iterdir())
    except OSError as e:
        log.debug("Cannot list %s: %s", root, e)
        return devices

    for entry in entries:
        match = _CARD_RE.match(entry.name)
        if not match:
            continue

        device_path = entry / "device"
        if not device_path.is_dir():
            continue

        devices.append(DrmDevice(
            card_index=int(match.group(1)),
            device_path=device_path,
            vendor_id=_read_hex(device_path / "vendor"),
            device_id=_read_hex(device_path / "device"),
            pci_slot=device_path.resolve().name,
        ))

    devices.sort(key=lambda d: d.card_index)
    log.debug("Found %d DRM device(s) under %s", len(devices), root)
    return devices


def find_device(gpu_index: int, root: Path = DRM_ROOT) -> DrmDevice:
    """Return the DRM device for /dev/dri/card<gpu_index>."""
    for device in scan_drm_devices(root):
        if device.card_index == gpu_index:
            return device
    raise GpuNotFoundError(f"Cannot find GPU {gpu_index}")
