from fractions import Fraction

import pytest

from pwmdemo.data.models import ClockVariant, PWMMode, PWMType, RuleTable
from pwmdemo.drivers.validator import parse_int, validate_parameters
from pwmdemo.errors import ParameterRejected


def test_defaults_when_nothing_given():
    result = validate_parameters()
    params = result.params
    assert params.clock == 9_600_000
    assert params.range == 2_400_000
    assert params.pulse_width == 4
    assert params.pin == 18
    assert params.pwm_type == PWMType.HARDWARE
    assert params.mode == PWMMode.BALANCED
    assert result.warnings == []
    assert not result.corrected


def test_low_clock_clamped_to_band_minimum():
    result = validate_parameters(clock="100")
    assert result.params.clock == 4688
    assert result.corrected
    assert "4688" in result.warnings[0]


def test_high_clock_clamped_to_band_maximum():
    result = validate_parameters(clock="50000000")
    assert result.params.clock == 9_600_000


def test_thousands_separators_accepted():
    result = validate_parameters(clock="4,800,000", range_="2_000")
    assert result.params.clock == 4_800_000
    assert result.params.range == 2000
    assert result.warnings == []


def test_range_clamped():
    assert validate_parameters(range_="2").params.range == 4
    assert validate_parameters(range_="99999999999").params.range == 38_400_000


def test_software_mark_space_rejected():
    with pytest.raises(ParameterRejected) as info:
        validate_parameters(pwm_type="software", mode="mark-space", pin="17")
    assert info.value.rule == "incompatible-mode"


def test_mode_aliases():
    result = validate_parameters(mode="ms")
    assert result.params.mode == PWMMode.MARK_SPACE


def test_unknown_type_and_mode_rejected():
    with pytest.raises(ParameterRejected) as info:
        validate_parameters(pwm_type="quantum")
    assert info.value.rule == "unknown-type"
    with pytest.raises(ParameterRejected) as info:
        validate_parameters(mode="wobbly")
    assert info.value.rule == "unknown-mode"


def test_malformed_pulse_width_uses_default():
    result = validate_parameters(pulse_width="abc")
    assert result.params.pulse_width == 4
    assert any("abc" in w for w in result.warnings)


def test_quarter_duty():
    result = validate_parameters(range_="2400000", pulse_width="600000")
    assert result.params.duty_fraction == Fraction(1, 4)
    assert result.params.output_hz == pytest.approx(4.0)


def test_pulse_width_clamped_to_range():
    result = validate_parameters(range_="1000", pulse_width="5000")
    assert result.params.pulse_width == 1000
    assert result.corrected


def test_negative_pulse_width_clamped_to_zero():
    result = validate_parameters(pulse_width="-5")
    assert result.params.pulse_width == 0


def test_divisor_variant():
    result = validate_parameters(clock="192", variant=ClockVariant.DIVISOR)
    assert result.params.clock == 192
    assert result.params.clock_hz == pytest.approx(100_000)

    result = validate_parameters(clock="1", variant=ClockVariant.DIVISOR)
    assert result.params.clock == 2
    result = validate_parameters(clock="5000", variant=ClockVariant.DIVISOR)
    assert result.params.clock == 4095


def test_divisor_default_when_absent():
    result = validate_parameters(variant=ClockVariant.DIVISOR)
    assert result.params.clock == 2


def test_empty_clock_rejected_for_hardware():
    with pytest.raises(ParameterRejected) as info:
        validate_parameters(clock="  ")
    assert info.value.rule == "clock-required"


def test_empty_clock_fine_for_software():
    result = validate_parameters(clock="", pwm_type="software", pin="17")
    assert result.params.pwm_type == PWMType.SOFTWARE


def test_hardware_needs_pwm_pin():
    with pytest.raises(ParameterRejected) as info:
        validate_parameters(pin="17")
    assert info.value.rule == "hardware-pin"

    result = validate_parameters(pin="17", pwm_type="software")
    assert result.params.pin == 17


def test_tick_must_be_positive():
    result = validate_parameters(pwm_type="software", pin="17", tick_us="0")
    assert result.params.tick_us == 1
    assert result.corrected


def test_custom_rule_table():
    rules = RuleTable(incompatible=frozenset({(PWMType.HARDWARE, PWMMode.MARK_SPACE)}))
    with pytest.raises(ParameterRejected):
        validate_parameters(mode="mark-space", rules=rules)
    result = validate_parameters(mode="mark-space", pwm_type="software", pin="4", rules=rules)
    assert result.params.mode == PWMMode.MARK_SPACE


def test_parse_int():
    warnings = []
    assert parse_int(None, 7, "x", warnings) == 7
    assert parse_int("", 7, "x", warnings) == 7
    assert parse_int(" 12 ", 7, "x", warnings) == 12
    assert warnings == []
    assert parse_int("1.5", 7, "x", warnings) == 7
    assert len(warnings) == 1
