"""gpu-usage-waybar: GPU telemetry for Waybar custom modules."""

__version__ = "0.2.0"
