"""
Data models for PWM demo runs.
"""

from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import Dict, FrozenSet, List, Tuple

# BCM2835 PWM oscillator; a divisor N gives a clock of OSCILLATOR_HZ / N
OSCILLATOR_HZ = 19_200_000


class PWMType(str, Enum):
    HARDWARE = "hardware"
    SOFTWARE = "software"


class PWMMode(str, Enum):
    BALANCED = "balanced"
    MARK_SPACE = "mark-space"


class ClockVariant(str, Enum):
    """How the clock field is interpreted."""
    FREQUENCY = "frequency"  # clock frequency in Hz
    DIVISOR = "divisor"      # oscillator divisor (WiringPi style)


@dataclass(frozen=True)
class Band:
    """Inclusive safe range for an integer setting."""
    minimum: int
    maximum: int

    def clamp(self, value: int) -> int:
        return max(self.minimum, min(self.maximum, value))

    def contains(self, value: int) -> bool:
        return self.minimum <= value <= self.maximum

    def to_dict(self) -> dict:
        return {'min': self.minimum, 'max': self.maximum}

    @classmethod
    def from_dict(cls, data: dict) -> 'Band':
        return cls(minimum=int(data['min']), maximum=int(data['max']))


# Values outside these bands made the LED behave erratically
FREQUENCY_BAND = Band(4688, 9_600_000)
DIVISOR_BAND = Band(2, 4095)
RANGE_BAND = Band(4, 38_400_000)


def _pair_set(pairs) -> FrozenSet[Tuple[PWMType, PWMMode]]:
    return frozenset((PWMType(t), PWMMode(m)) for t, m in pairs)


@dataclass(frozen=True)
class RuleTable:
    """
    Cross-field validation policy.

    Which PWM mode a PWM type cannot use has varied between versions of
    these programs, so the pairs are data rather than code.
    """
    incompatible: FrozenSet[Tuple[PWMType, PWMMode]] = field(
        default_factory=lambda: _pair_set([(PWMType.SOFTWARE, PWMMode.MARK_SPACE)])
    )
    hardware_pins: FrozenSet[int] = frozenset({12, 13, 18, 19})
    require_clock_for_hardware: bool = True

    def is_compatible(self, pwm_type: PWMType, mode: PWMMode) -> bool:
        return (pwm_type, mode) not in self.incompatible

    def to_dict(self) -> dict:
        incompatible: Dict[str, List[str]] = {}
        for pwm_type, mode in sorted(self.incompatible):
            incompatible.setdefault(pwm_type.value, []).append(mode.value)
        return {
            'incompatible_modes': incompatible,
            'hardware_pins': sorted(self.hardware_pins),
            'require_clock_for_hardware': self.require_clock_for_hardware
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'RuleTable':
        default = cls()
        pairs = default.incompatible
        if 'incompatible_modes' in data:
            pairs = _pair_set(
                (pwm_type, mode)
                for pwm_type, modes in data['incompatible_modes'].items()
                for mode in modes
            )
        return cls(
            incompatible=pairs,
            hardware_pins=frozenset(int(p) for p in data.get('hardware_pins', default.hardware_pins)),
            require_clock_for_hardware=bool(
                data.get('require_clock_for_hardware', default.require_clock_for_hardware)
            )
        )


@dataclass(frozen=True)
class PWMParameters:
    """
    Validated settings for one PWM run.

    For hardware PWM `clock` is the PWM clock frequency (or divisor) and
    `range` is counted in clock ticks. For software PWM `range` and
    `pulse_width` are counted in ticks of `tick_us` microseconds.
    """
    clock: int = 9_600_000
    range: int = 2_400_000
    pulse_width: int = 4
    pin: int = 18
    pwm_type: PWMType = PWMType.HARDWARE
    mode: PWMMode = PWMMode.BALANCED
    clock_variant: ClockVariant = ClockVariant.FREQUENCY
    tick_us: int = 1

    def __post_init__(self):
        if self.range <= 0:
            raise ValueError(f"range must be positive (got {self.range})")
        if not 0 <= self.pulse_width <= self.range:
            raise ValueError(
                f"pulse width must be between 0 and {self.range} (got {self.pulse_width})"
            )
        if self.tick_us <= 0:
            raise ValueError(f"tick_us must be positive (got {self.tick_us})")

    @property
    def clock_hz(self) -> float:
        """PWM clock frequency in Hz regardless of clock variant."""
        if self.clock_variant == ClockVariant.DIVISOR:
            return OSCILLATOR_HZ / self.clock
        return float(self.clock)

    @property
    def output_hz(self) -> float:
        """Frequency of the waveform seen at the pin."""
        if self.pwm_type == PWMType.SOFTWARE:
            return 1_000_000 / self.period_us
        return self.clock_hz / self.range

    @property
    def duty_fraction(self) -> Fraction:
        return Fraction(self.pulse_width, self.range)

    @property
    def on_ticks(self) -> int:
        return self.pulse_width

    @property
    def off_ticks(self) -> int:
        return self.range - self.pulse_width

    @property
    def period_us(self) -> int:
        return self.range * self.tick_us

    def describe(self) -> str:
        return (f"pin: {self.pin}, type: {self.pwm_type.value}, mode: {self.mode.value}, "
                f"{self.clock_variant.value}: {self.clock}, range: {self.range}, "
                f"pulse width: {self.pulse_width}, duty: {float(self.duty_fraction) * 100:.2f}%, "
                f"output Hz: {self.output_hz:f}")

    def to_dict(self) -> dict:
        return {
            'clock': self.clock,
            'range': self.range,
            'pulse_width': self.pulse_width,
            'pin': self.pin,
            'pwm_type': self.pwm_type.value,
            'mode': self.mode.value,
            'clock_variant': self.clock_variant.value,
            'tick_us': self.tick_us
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PWMParameters':
        data = data.copy()
        for key, enum in (('pwm_type', PWMType), ('mode', PWMMode),
                          ('clock_variant', ClockVariant)):
            if key in data:
                data[key] = enum(data[key])
        return cls(**data)


@dataclass
class ValidationResult:
    """Validated parameters plus any corrections made along the way."""
    params: PWMParameters
    warnings: List[str] = field(default_factory=list)

    @property
    def corrected(self) -> bool:
        return bool(self.warnings)
