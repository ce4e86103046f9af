"""Vendor dispatch: pick the collector that can read a given DRM device."""

from __future__ import annotations

import logging

from gpu_usage_waybar.collector.base import GpuCollector
from gpu_usage_waybar.collector.drm import VENDOR_AMD, VENDOR_NVIDIA, DrmDevice
from gpu_usage_waybar.errors import UnsupportedGpuError

log = logging.getLogger(__name__)


def open_collector(device: DrmDevice) -> GpuCollector:
    """Return a collector for the device's vendor, or raise UnsupportedGpuError."""
    if device.vendor_id == VENDOR_NVIDIA:
        from gpu_usage_waybar.collector.nvidia import NvidiaCollector
        return NvidiaCollector(device)

    if device.vendor_id == VENDOR_AMD:
        from gpu_usage_waybar.collector.amd import AmdCollector
        return AmdCollector(device)

    raise UnsupportedGpuError(
        f"GPU {device.card_index} ({device.vendor_name}, {device.pci_id}) is not supported; "
        "only NVIDIA and AMD GPUs are"
    )


__all__ = ["GpuCollector", "open_collector"]
