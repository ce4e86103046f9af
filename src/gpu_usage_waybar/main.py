"""
gpu-usage-waybar entry point.

Usage:
    gpu-usage-waybar                          One reading, then exit
    gpu-usage-waybar --gpu 1                  Read /dev/dri/card1
    gpu-usage-waybar --interval 1000          Keep printing, once a second
    gpu-usage-waybar --text-format "{temperature:c}°C"
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from gpu_usage_waybar import __version__
from gpu_usage_waybar.collector import open_collector
from gpu_usage_waybar.collector.drm import find_device
from gpu_usage_waybar.config import load_config, merge_cli_overrides
from gpu_usage_waybar.errors import GpuUsageError
from gpu_usage_waybar.formatter import Template, retain_lines_with_values
from gpu_usage_waybar.waybar import run_loop, run_once


log = logging.getLogger("gpu_usage_waybar")

err_console = Console(stderr=True)


def _build_tooltip(config, collector):
    """Parse the tooltip format; for the built-in one, hide lines this GPU can't fill.

    Returns the template and the reading used for pruning (None for a custom
    format), so the first output line can reuse that reading.
    """
    tooltip_format = config.tooltip.effective_format()
    if config.tooltip.is_format_set:
        return Template.parse(tooltip_format), None

    # Skip pruning if the GPU is suspended, rather than waking it up
    reading = collector.collect()
    if reading.powered_on:
        tooltip_format = retain_lines_with_values(tooltip_format, reading)
    return Template.parse(tooltip_format), reading


def run(gpu: int, interval, text_format, tooltip_format, config_path):
    config = load_config(config_path)
    config = merge_cli_overrides(
        config,
        interval=interval,
        text_format=text_format,
        tooltip_format=tooltip_format,
    )

    # Parse the text format before touching the GPU so typos fail fast
    text = Template.parse(config.text.format)

    device = find_device(gpu)
    collector = open_collector(device)
    try:
        log.info(
            "GPU %d: %s (%s), PCI %s",
            device.card_index, collector.name(), device.vendor_name, device.pci_slot,
        )
        tooltip, reading = _build_tooltip(config, collector)

        if config.general.interval:
            run_loop(collector, text, tooltip, interval_ms=config.general.interval,
                     first_reading=reading)
        else:
            run_once(collector, text, tooltip, data=reading)
    finally:
        collector.close()


@click.command()
@click.version_option(version=__version__, prog_name="gpu-usage-waybar")
@click.option("--gpu", default=0, show_default=True,
              help="GPU to monitor; the X in /dev/dri/cardX")
@click.option("--interval", type=click.IntRange(min=1), default=None,
              help="Milliseconds between updates (default: print once and exit)")
@click.option("--text-format", default=None,
              help='Format for `text`, e.g. "{gpu_utilization}%|{mem_utilization}%"')
@click.option("--tooltip-format", default=None,
              help='Format for `tooltip`, e.g. "MEM: {mem_used:MiB.0}/{mem_total:MiB.0} MiB"')
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              default=None, help="Config file (default: $XDG_CONFIG_HOME/gpu_usage_waybar.toml)")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
def cli(gpu: int, interval, text_format, tooltip_format, config_path, verbose: bool):
    """Print GPU usage as Waybar JSON."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        run(gpu, interval, text_format, tooltip_format, config_path)
    except GpuUsageError as e:
        if verbose:
            err_console.print_exception()
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", highlight=False, soft_wrap=True)
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
