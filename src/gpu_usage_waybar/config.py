"""
Configuration for gpu-usage-waybar.

Settings come from a TOML file in the user's config directory and can be
overridden per invocation on the command line (CLI > file > defaults).
If the file doesn't exist yet, an example one is written so there's
something to edit.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from gpu_usage_waybar.errors import ConfigError

log = logging.getLogger(__name__)

CONFIG_FILENAME = "gpu_usage_waybar.toml"

DEFAULT_TEXT_FORMAT = "{gpu_utilization}%|{mem_utilization}%"

DEFAULT_TOOLTIP_FORMAT = "\n".join([
    "GPU: {gpu_utilization}%",
    "MEM USED: {mem_used:MiB.0}/{mem_total:MiB.0} MiB ({mem_utilization}%)",
    "MEM R/W: {mem_rw}%",
    "DEC: {decoder_utilization}%",
    "ENC: {encoder_utilization}%",
    "TEMP: {temperature:c}°C",
    "POWER: {power:w.1}W",
    "PSTATE: {p_state}",
    "PLEVEL: {p_level}",
    "FAN SPEED: {fan_speed}%",
    "TX: {tx:MiB.3} MiB/s",
    "RX: {rx:MiB.3} MiB/s",
])

EXAMPLE_CONFIG = '''\
# gpu-usage-waybar configuration
#
# Placeholders: {field}, {field:unit} or {field:unit.precision}
#   percentages:  gpu_utilization mem_utilization mem_rw decoder_utilization
#                 encoder_utilization fan_speed
#   states:       p_state (NVIDIA), p_level (AMD)
#   memory:       mem_used mem_total tx rx   units KiB MiB GiB KB MB GB Kib Mib Gib Kb Mb Gb
#   temperature:  units c f k
#   power:        units w kw

[general]
# Milliseconds between updates. Leave unset to print once and exit.
# interval = 1000

[text]
format = "{gpu_utilization}%|{mem_utilization}%"

[tooltip]
# Leave unset to use the built-in tooltip, which hides lines this GPU
# can't report.
# format = "GPU: {gpu_utilization}%\\nTEMP: {temperature:c}°C"
'''


@dataclass
class GeneralConfig:
    interval: Optional[int] = None    # milliseconds; None = run once


@dataclass
class TextConfig:
    format: str = DEFAULT_TEXT_FORMAT


@dataclass
class TooltipConfig:
    format: Optional[str] = None

    @property
    def is_format_set(self) -> bool:
        return self.format is not None

    def effective_format(self) -> str:
        return self.format if self.format is not None else DEFAULT_TOOLTIP_FORMAT


@dataclass
class Config:
    general: GeneralConfig = field(default_factory=GeneralConfig)
    text: TextConfig = field(default_factory=TextConfig)
    tooltip: TooltipConfig = field(default_factory=TooltipConfig)


_SECTIONS = {
    "general": GeneralConfig,
    "text": TextConfig,
    "tooltip": TooltipConfig,
}

_KEY_TYPES = {
    ("general", "interval"): int,
    ("text", "format"): str,
    ("tooltip", "format"): str,
}


def default_config_path() -> Path:
    """$XDG_CONFIG_HOME/gpu_usage_waybar.toml, falling back to ~/.config."""
    base = os.environ.get("XDG_CONFIG_HOME", "").strip()
    config_dir = Path(base) if base else Path.home() / ".config"
    return config_dir / CONFIG_FILENAME


def _build_section(name: str, raw, path: Path):
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: [{name}] must be a table")

    known = {f.name for f in dataclasses.fields(_SECTIONS[name])}
    for key, value in raw.items():
        if key not in known:
            raise ConfigError(f"{path}: unknown key `{key}` in [{name}]")

        expected = _KEY_TYPES[(name, key)]
        # bool is a subclass of int, but `interval = true` is still a mistake
        if isinstance(value, bool) or not isinstance(value, expected):
            raise ConfigError(
                f"{path}: `{name}.{key}` must be {expected.__name__}, got {type(value).__name__}"
            )

    if name == "general" and raw.get("interval") is not None and raw["interval"] <= 0:
        raise ConfigError(f"{path}: `general.interval` must be positive")

    return _SECTIONS[name](**raw)


def parse_config(text: str, path: Path = Path("<string>")) -> Config:
    """Parse TOML text into a Config. Unknown sections or keys are errors."""
    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e

    sections = {}
    for name, value in raw.items():
        if name not in _SECTIONS:
            raise ConfigError(f"{path}: unknown section [{name}]")
        sections[name] = _build_section(name, value, path)

    return Config(**sections)


def load_config(path: Optional[Path] = None) -> Config:
    """Read the config file, writing the example config first if it's missing."""
    path = Path(path) if path is not None else default_config_path()

    if not path.exists():
        log.info("No config at %s, writing example config", path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(EXAMPLE_CONFIG, encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot create config file {path}: {e}") from e

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    log.debug("Loaded config from %s", path)
    return parse_config(text, path)


def merge_cli_overrides(
    config: Config,
    interval: Optional[int] = None,
    text_format: Optional[str] = None,
    tooltip_format: Optional[str] = None,
) -> Config:
    """Apply command-line overrides on top of the file config. None = not given."""
    if interval is not None:
        config.general.interval = interval
    if text_format is not None:
        config.text.format = text_format
    if tooltip_format is not None:
        config.tooltip.format = tooltip_format
    return config
