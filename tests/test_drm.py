"""Tests for DRM device discovery and vendor dispatch."""

import pytest

from conftest import make_card
from gpu_usage_waybar.collector import open_collector
from gpu_usage_waybar.collector.amd import AmdCollector
from gpu_usage_waybar.collector.drm import (
    VENDOR_AMD,
    VENDOR_INTEL,
    VENDOR_NVIDIA,
    find_device,
    scan_drm_devices,
)
from gpu_usage_waybar.errors import GpuNotFoundError, UnsupportedGpuError


def test_scan_sorts_by_card_index_and_skips_connectors(sysfs):
    make_card(sysfs, 1, "0x10de", "0x2684")
    make_card(sysfs, 0, "0x1002")
    (sysfs / "drm" / "card0-DP-1").mkdir()
    (sysfs / "drm" / "renderD128").mkdir()

    devices = scan_drm_devices(sysfs / "drm")

    assert [d.card_index for d in devices] == [0, 1]
    assert devices[0].vendor_id == VENDOR_AMD
    assert devices[1].vendor_id == VENDOR_NVIDIA
    assert devices[1].device_id == 0x2684
    assert devices[1].pci_slot == "0000:02:00.0"
    assert devices[1].pci_id == "10de:2684"


def test_scan_missing_root_returns_empty(tmp_path):
    assert scan_drm_devices(tmp_path / "nope") == []


def test_find_device_by_index(sysfs):
    make_card(sysfs, 0, "0x1002")
    make_card(sysfs, 2, "0x10de")

    assert find_device(2, sysfs / "drm").vendor_id == VENDOR_NVIDIA


def test_find_device_missing_index(sysfs):
    make_card(sysfs, 0, "0x1002")

    with pytest.raises(GpuNotFoundError, match="Cannot find GPU 3"):
        find_device(3, sysfs / "drm")


def test_powered_on_reads_runtime_status(sysfs):
    make_card(sysfs, 0, "0x1002", files={"power/runtime_status": "suspended"})
    make_card(sysfs, 1, "0x1002", files={"power/runtime_status": "active"})
    make_card(sysfs, 2, "0x1002")

    cards = scan_drm_devices(sysfs / "drm")

    assert cards[0].is_powered_on() is False
    assert cards[1].is_powered_on() is True
    assert cards[2].is_powered_on() is True  # no runtime PM


def test_dispatch_amd(sysfs):
    make_card(sysfs, 0, "0x1002")
    collector = open_collector(find_device(0, sysfs / "drm"))
    assert isinstance(collector, AmdCollector)


def test_dispatch_rejects_intel(sysfs):
    make_card(sysfs, 0, "0x8086", "0x46a6")
    device = find_device(0, sysfs / "drm")
    assert device.vendor_id == VENDOR_INTEL

    with pytest.raises(UnsupportedGpuError, match="Intel Corporation"):
        open_collector(device)


def test_dispatch_rejects_unreadable_vendor(sysfs):
    make_card(sysfs, 0, "garbage")
    device = find_device(0, sysfs / "drm")
    assert device.vendor_id is None

    with pytest.raises(UnsupportedGpuError, match="unknown vendor"):
        open_collector(device)
