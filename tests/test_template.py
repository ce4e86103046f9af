"""Tests for format-string parsing and rendering."""

import pytest

from gpu_usage_waybar.errors import FormatError
from gpu_usage_waybar.formatter import Template, retain_lines_with_values
from gpu_usage_waybar.formatter.fields import Field, FieldKind
from gpu_usage_waybar.formatter.template import format_value, trim_trailing_zeros
from gpu_usage_waybar.formatter.units import MemUnit, TemperatureUnit
from gpu_usage_waybar.metrics import GpuStatusData, PState

MIB = 1024 ** 2


def _make_data(**overrides) -> GpuStatusData:
    defaults = dict(
        gpu_utilization=42,
        mem_rw=17,
        decoder_utilization=3,
        encoder_utilization=0,
        fan_speed=35,
        mem_used=2048.0 * MIB,
        mem_total=8192.0 * MIB,
        temperature=56.0,
        power=123.456,
        p_state=PState.P2,
        tx=1.5 * MIB,
        rx=0.25 * MIB,
    )
    defaults.update(overrides)
    return GpuStatusData(**defaults)


def test_parse_splits_static_and_fields():
    template = Template.parse("PSTATE: {p_state}\nFAN SPEED: {fan_speed}%\nTX: {tx:MiB.1} MiB/s")

    assert template.chunks == [
        "PSTATE: ",
        Field(FieldKind.PLAIN, "p_state"),
        "\nFAN SPEED: ",
        Field(FieldKind.PLAIN, "fan_speed"),
        "%\nTX: ",
        Field(FieldKind.MEMORY, "tx", MemUnit.MiB, 1),
        " MiB/s",
    ]


def test_parse_unit_without_precision():
    template = Template.parse("{temperature:c}")
    assert template.chunks == [Field(FieldKind.TEMPERATURE, "temperature", TemperatureUnit.CELSIUS, None)]


def test_missing_unit_is_an_error():
    with pytest.raises(FormatError, match="No unit"):
        Template.parse("{temperature}")
    with pytest.raises(FormatError, match="No unit"):
        Template.parse("{mem_used}")


def test_invalid_unit_is_an_error():
    with pytest.raises(FormatError, match="Invalid memory unit"):
        Template.parse("{mem_used:bytes}")
    with pytest.raises(FormatError, match="Invalid temperature unit"):
        Template.parse("{temperature:x}")
    with pytest.raises(FormatError, match="Invalid power unit"):
        Template.parse("{power:hp}")


def test_unknown_field_renders_na(caplog):
    template = Template.parse("{bogus}%")
    assert "Unknown field: bogus" in caplog.text
    assert template.render(_make_data()) == "N/A%"


def test_text_without_placeholders_passes_through():
    template = Template.parse("{not a field} 100%")
    assert template.render(_make_data()) == "{not a field} 100%"


@pytest.mark.parametrize("fmt, expected", [
    ("{gpu_utilization}", "42"),
    ("{mem_rw}", "17"),
    ("{mem_utilization}", "25"),
    ("{decoder_utilization}", "3"),
    ("{encoder_utilization}", "0"),
    ("{fan_speed}", "35"),
    ("{p_state}", "P2"),
    ("{mem_used:MiB}", "2048"),
    ("{mem_total:GiB}", "8"),
    ("{tx:MiB}", "1.5"),
    ("{rx:KiB}", "256"),
    ("{temperature:c}", "56"),
    ("{temperature:f.1}", "132.8"),
    ("{power:w.1}", "123.5"),
    ("{power:kw.3}", "0.123"),
])
def test_render_each_field(fmt, expected):
    assert Template.parse(fmt).render(_make_data()) == expected


def test_p_level_renders_as_is():
    data = _make_data(p_state=None, p_level="auto")
    assert Template.parse("{p_level}").render(data) == "auto"


def test_missing_values_render_na():
    data = GpuStatusData()
    template = Template.parse("{gpu_utilization}% {mem_used:MiB} {mem_utilization}% {power:w}")
    assert template.render(data) == "N/A% N/A N/A% N/A"


def test_precision_rounds():
    data = _make_data(temperature=35.12345)
    assert Template.parse("{temperature:c.2}").render(data) == "35.12"
    assert Template.parse("{temperature:c.0}").render(data) == "35"


def test_precision_trims_trailing_zeros():
    data = _make_data(temperature=35.0)
    assert Template.parse("{temperature:c.2}").render(data) == "35"


def test_trimming_leaves_earlier_text_alone():
    data = _make_data(temperature=120.0)
    template = Template.parse("100.00 {temperature:c.1}")
    assert template.render(data) == "100.00 120"


def test_trim_trailing_zeros():
    assert trim_trailing_zeros("1.50000") == "1.5"
    assert trim_trailing_zeros("1.00000") == "1"
    assert trim_trailing_zeros("10000") == "10000"


def test_format_value_ints_and_strings():
    assert format_value(7) == "7"
    assert format_value("manual") == "manual"
    assert format_value(0.1, None) == "0.1"


def test_retain_lines_with_values_drops_empty_lines():
    fmt = "GPU: {gpu_utilization}%\nPSTATE: {p_state}\nPLEVEL: {p_level}\n--"
    data = _make_data(p_level=None)
    assert retain_lines_with_values(fmt, data) == "GPU: {gpu_utilization}%\nPSTATE: {p_state}\n--"


def test_retain_lines_keeps_partially_available_lines():
    fmt = "MEM: {mem_used:MiB}/{mem_total:MiB}\nTX: {tx:MiB}"
    data = _make_data(mem_used=None, tx=None)
    assert retain_lines_with_values(fmt, data) == "MEM: {mem_used:MiB}/{mem_total:MiB}"


def test_unrounded_values_render_at_single_precision():
    # 36.6 C is 97.88000000000001 F in double precision
    data = _make_data(temperature=36.6)
    assert Template.parse("{temperature:f}").render(data) == "97.88"
    assert format_value(97.88000000000001) == "97.88"


def test_large_values_render_without_exponent():
    data = _make_data(mem_total=16.0 * 1024 ** 3)
    assert Template.parse("{mem_total:KiB}").render(data) == "16777216"
    assert format_value(1.5e10) == "15000000000"
