"""
NVIDIA GPU stats via NVML (the library behind nvidia-smi).

The device is looked up by PCI bus id so that --gpu N picks the same card
as /dev/dri/cardN, which NVML's own index ordering doesn't guarantee.
Metrics the card doesn't support (fan speed on laptops, encoder stats on
some datacenter parts) come back as None instead of failing the whole read.
"""

from __future__ import annotations

import logging

import pynvml

from gpu_usage_waybar.collector.base import GpuCollector
from gpu_usage_waybar.collector.drm import DrmDevice
from gpu_usage_waybar.errors import GpuInitError
from gpu_usage_waybar.metrics import GpuStatusData, PState

log = logging.getLogger(__name__)

KIB = 1024


def _safe(func, *args):
    """Call an NVML query, returning None if the device doesn't support it."""
    try:
        return func(*args)
    except pynvml.NVMLError as e:
        log.debug("%s unavailable: %s", getattr(func, "__name__", func), e)
        return None


def _decode(value):
    return value.decode("utf-8") if isinstance(value, bytes) else value


class NvidiaCollector(GpuCollector):
    """Reads GPU metrics from NVML. Raises GpuInitError if NVML can't be opened."""

    def __init__(self, device: DrmDevice):
        super().__init__(device)
        self._initialized = False

        try:
            pynvml.nvmlInit()
        except pynvml.NVMLError as e:
            raise GpuInitError(f"Failed to initialize NVML: {e}") from e
        self._initialized = True

        try:
            self._handle = pynvml.nvmlDeviceGetHandleByPciBusId(device.pci_slot)
        except pynvml.NVMLError as e:
            self.close()
            raise GpuInitError(f"NVML has no device at PCI {device.pci_slot}: {e}") from e

    def read(self) -> GpuStatusData:
        handle = self._handle

        util = _safe(pynvml.nvmlDeviceGetUtilizationRates, handle)
        mem = _safe(pynvml.nvmlDeviceGetMemoryInfo, handle)
        decoder = _safe(pynvml.nvmlDeviceGetDecoderUtilization, handle)    # [util, period_us]
        encoder = _safe(pynvml.nvmlDeviceGetEncoderUtilization, handle)
        temp = _safe(pynvml.nvmlDeviceGetTemperature, handle, pynvml.NVML_TEMPERATURE_GPU)
        power = _safe(pynvml.nvmlDeviceGetPowerUsage, handle)              # milliwatts
        pstate = _safe(pynvml.nvmlDeviceGetPerformanceState, handle)
        fan = _safe(pynvml.nvmlDeviceGetFanSpeed_v2, handle, 0)
        tx = _safe(pynvml.nvmlDeviceGetPcieThroughput, handle, pynvml.NVML_PCIE_UTIL_TX_BYTES)  # KB/s
        rx = _safe(pynvml.nvmlDeviceGetPcieThroughput, handle, pynvml.NVML_PCIE_UTIL_RX_BYTES)

        return GpuStatusData(
            powered_on=True,
            gpu_utilization=util.gpu if util is not None else None,
            mem_rw=util.memory if util is not None else None,
            mem_used=float(mem.used) if mem is not None else None,
            mem_total=float(mem.total) if mem is not None else None,
            decoder_utilization=decoder[0] if decoder is not None else None,
            encoder_utilization=encoder[0] if encoder is not None else None,
            temperature=float(temp) if temp is not None else None,
            power=power / 1000.0 if power is not None else None,
            p_state=PState.from_nvml(pstate) if pstate is not None else None,
            fan_speed=fan,
            tx=float(tx * KIB) if tx is not None else None,
            rx=float(rx * KIB) if rx is not None else None,
        )

    def name(self) -> str:
        gpu_name = _safe(pynvml.nvmlDeviceGetName, self._handle)
        return _decode(gpu_name) if gpu_name else f"NVIDIA GPU [{self.device.pci_id}]"

    def close(self):
        if self._initialized:
            try:
                pynvml.nvmlShutdown()
            except pynvml.NVMLError as e:
                log.debug("nvmlShutdown failed: %s", e)
            self._initialized = False
