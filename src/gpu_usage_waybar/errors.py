"""
Exceptions raised by gpu-usage-waybar.

Everything the CLI knows how to report derives from GpuUsageError;
anything else is a bug and gets a traceback.
"""


class GpuUsageError(Exception):
    """Base class for errors reported to the user."""


class ConfigError(GpuUsageError):
    """Config file is unreadable, not valid TOML, or has unknown keys."""


class FormatError(GpuUsageError):
    """A text/tooltip format string has a bad placeholder."""


class GpuNotFoundError(GpuUsageError):
    pass


class UnsupportedGpuError(GpuUsageError):
    pass


class GpuInitError(GpuUsageError):
    """The vendor backend (NVML or amdgpu sysfs) could not be opened."""
