from gpu_usage_waybar.formatter.template import Template, retain_lines_with_values

__all__ = ["Template", "retain_lines_with_values"]
