"""Shared fixtures: a fake /sys/class/drm tree built under tmp_path."""

from pathlib import Path

import pytest


def make_card(root: Path, index: int, vendor: str, device: str = "0x73bf",
              slot: str = None, files: dict = None) -> Path:
    """Create drm/cardN with a `device` symlink into a fake PCI directory."""
    slot = slot or f"0000:0{index + 1}:00.0"
    pci_dir = root / "pci" / slot
    pci_dir.mkdir(parents=True)
    (pci_dir / "vendor").write_text(vendor + "\n")
    (pci_dir / "device").write_text(device + "\n")

    for rel_path, content in (files or {}).items():
        target = pci_dir / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(f"{content}\n")

    card_dir = root / "drm" / f"card{index}"
    card_dir.mkdir(parents=True)
    (card_dir / "device").symlink_to(pci_dir, target_is_directory=True)
    return pci_dir


@pytest.fixture
def sysfs(tmp_path):
    (tmp_path / "drm").mkdir()
    return tmp_path
