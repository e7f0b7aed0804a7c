"""
PWM parameter validation.

Turns raw text (command-line flags, explorer input) into PWMParameters.
The policy is best effort:

- Absent or malformed numbers fall back to their defaults.
- Numbers outside the hardware-safe bands are clamped to the nearest
  bound, with a warning.
- Combinations the rule table forbids are rejected with ParameterRejected.
"""

import logging
from typing import List, Optional

from ..data.models import (ClockVariant, PWMMode, PWMParameters, PWMType,
                           RuleTable, ValidationResult)
from ..data.presets import Bands, Defaults
from ..errors import ParameterRejected

LOG = logging.getLogger(__name__)

_MODE_ALIASES = {
    "balanced": PWMMode.BALANCED,
    "bal": PWMMode.BALANCED,
    "mark-space": PWMMode.MARK_SPACE,
    "mark/space": PWMMode.MARK_SPACE,
    "markspace": PWMMode.MARK_SPACE,
    "ms": PWMMode.MARK_SPACE,
}


def parse_int(text: Optional[str], default: int, name: str,
              warnings: Optional[List[str]] = None) -> int:
    """
    Parse an integer, falling back to `default`.

    Thousands separators ("9,600,000" or "9_600_000") are accepted.
    """
    if text is None:
        return default
    cleaned = str(text).strip().replace(",", "").replace("_", "")
    if not cleaned:
        return default
    try:
        return int(cleaned)
    except ValueError:
        message = f"{name}: '{text}' is not a number, using default {default}"
        LOG.debug(message)
        if warnings is not None:
            warnings.append(message)
        return default


def parse_type(text: Optional[str], default: PWMType) -> PWMType:
    if text is None or not str(text).strip():
        return default
    try:
        return PWMType(str(text).strip().lower())
    except ValueError:
        raise ParameterRejected(
            "unknown-type",
            f"PWM type '{text}' is not one of: {', '.join(t.value for t in PWMType)}"
        )


def parse_mode(text: Optional[str], default: PWMMode) -> PWMMode:
    if text is None or not str(text).strip():
        return default
    mode = _MODE_ALIASES.get(str(text).strip().lower())
    if mode is None:
        raise ParameterRejected(
            "unknown-mode",
            f"PWM mode '{text}' is not one of: {', '.join(m.value for m in PWMMode)}"
        )
    return mode


def _warn(warnings: List[str], message: str):
    LOG.debug(message)
    warnings.append(message)


def _clamp(value: int, band, name: str, warnings: List[str]) -> int:
    clamped = band.clamp(value)
    if clamped != value:
        _warn(warnings, f"{name} {value} is outside {band.minimum}..{band.maximum}, "
                        f"using {clamped}")
    return clamped


def validate_parameters(clock: Optional[str] = None,
                        range_: Optional[str] = None,
                        pulse_width: Optional[str] = None,
                        pin: Optional[str] = None,
                        mode: Optional[str] = None,
                        pwm_type: Optional[str] = None,
                        *,
                        variant: ClockVariant = ClockVariant.FREQUENCY,
                        tick_us: Optional[str] = None,
                        rules: Optional[RuleTable] = None,
                        defaults: Optional[Defaults] = None,
                        bands: Optional[Bands] = None) -> ValidationResult:
    """
    Validate raw PWM parameter text.

    Args:
        clock: Clock frequency in Hz (or divisor, see `variant`)
        range_: Cycle/period length
        pulse_width: On-time within the cycle, must not exceed the range
        pin: BCM pin number
        mode: "balanced" or "mark-space"
        pwm_type: "hardware" or "software"
        variant: Whether `clock` is a frequency or an oscillator divisor
        tick_us: Software PWM base time unit in microseconds
        rules: Cross-field rule table
        defaults: Values used for absent or malformed fields
        bands: Safe bands used for clamping

    Returns:
        ValidationResult with the parameters and any correction warnings

    Raises:
        ParameterRejected: If the combination violates a rule
    """
    rules = rules or RuleTable()
    defaults = defaults or Defaults()
    bands = bands or Bands()
    warnings: List[str] = []

    pwm_type_value = parse_type(pwm_type, defaults.pwm_type)
    mode_value = parse_mode(mode, defaults.mode)

    if not rules.is_compatible(pwm_type_value, mode_value):
        raise ParameterRejected(
            "incompatible-mode",
            f"PWM mode '{mode_value.value}' is not available with {pwm_type_value.value} PWM"
        )

    if (pwm_type_value == PWMType.HARDWARE and rules.require_clock_for_hardware
            and clock is not None and not str(clock).strip()):
        raise ParameterRejected(
            "clock-required",
            f"Hardware PWM requires a clock {variant.value}"
        )

    pin_value = parse_int(pin, defaults.pin, "pin", warnings)
    if pwm_type_value == PWMType.HARDWARE and pin_value not in rules.hardware_pins:
        raise ParameterRejected(
            "hardware-pin",
            f"GPIO{pin_value} is not a hardware PWM pin (use one of "
            f"{', '.join(str(p) for p in sorted(rules.hardware_pins))})"
        )

    clock_value = parse_int(clock, defaults.clock_for(variant), variant.value, warnings)
    clock_value = _clamp(clock_value, bands.clock_for(variant), variant.value, warnings)

    range_value = parse_int(range_, defaults.range, "range", warnings)
    range_value = _clamp(range_value, bands.range, "range", warnings)

    pulse_value = parse_int(pulse_width, defaults.pulse_width, "pulse width", warnings)
    if pulse_value < 0:
        _warn(warnings, f"pulse width {pulse_value} is negative, using 0")
        pulse_value = 0
    elif pulse_value > range_value:
        _warn(warnings, f"pulse width {pulse_value} exceeds range {range_value}, "
                        f"using {range_value}")
        pulse_value = range_value

    tick_value = parse_int(tick_us, defaults.tick_us, "tick", warnings)
    if tick_value < 1:
        _warn(warnings, f"tick {tick_value}us is not positive, using 1")
        tick_value = 1

    params = PWMParameters(
        clock=clock_value,
        range=range_value,
        pulse_width=pulse_value,
        pin=pin_value,
        pwm_type=pwm_type_value,
        mode=mode_value,
        clock_variant=variant,
        tick_us=tick_value
    )
    return ValidationResult(params=params, warnings=warnings)
