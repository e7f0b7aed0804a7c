"""
RGB LED on three hardware PWM pins.

The Pi's four hardware PWM pins form two channels: 12/18 and 13/19.
Two pins on the same channel always output the same waveform, so an RGB
LED wired to a linked pair can't show both colours independently. When
that happens only the brighter colour of the pair is driven and its
partner is held at zero duty. Held-off colours are written first: on
backends where a linked pair is one physical channel (sysfs) the
winning colour's duty is the last write.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..data.models import PWMMode
from ..hardware.gpio import PinHandle, PinMode

LOG = logging.getLogger(__name__)

RGB_CLOCK_HZ = 100_000
RGB_RANGE = 1024
DEFAULT_PINS = {'red': 19, 'green': 18, 'blue': 13}


@dataclass
class ColorResult:
    """What set_color actually drove."""
    values: Dict[str, int]
    held_off: List[str]
    warnings: List[str]


class RGBLed:
    """Three PWM pins driving one RGB LED."""

    def __init__(self, red: PinHandle, green: PinHandle, blue: PinHandle,
                 linked_partner: Callable[[int], Optional[int]] = lambda pin: None,
                 clock_hz: float = RGB_CLOCK_HZ, range_: int = RGB_RANGE):
        """
        Args:
            red, green, blue: Pins for each colour
            linked_partner: Returns the pin sharing a PWM channel with a pin
            clock_hz: PWM clock frequency
            range_: Duty cycle range; colour values are 0..range_-1
        """
        self.pins: Dict[str, PinHandle] = {'red': red, 'green': green, 'blue': blue}
        self.clock_hz = clock_hz
        self.range = range_
        self._linked_partner = linked_partner

    def linked_pairs(self) -> List[Tuple[str, str]]:
        """Colour pairs whose pins share a hardware PWM channel."""
        by_pin = {pin.pin: name for name, pin in self.pins.items()}
        pairs = []
        for name, pin in self.pins.items():
            partner = self._linked_partner(pin.pin)
            if partner in by_pin:
                pair = tuple(sorted((name, by_pin[partner])))
                if pair not in pairs:
                    pairs.append(pair)
        return pairs

    def init(self):
        """Configure every colour for PWM, all off."""
        for pin in self.pins.values():
            self._enable_pwm(pin)
            pin.set_duty_cycle(0, self.range, PWMMode.BALANCED)

    def _enable_pwm(self, pin: PinHandle):
        pin.set_mode(PinMode.PWM)
        pin.set_frequency(self.clock_hz)

    def set_color(self, red: int, green: int, blue: int) -> ColorResult:
        """
        Set colour intensities (0 to range - 1).

        Returns:
            ColorResult describing what was driven
        """
        values = {'red': red, 'green': green, 'blue': blue}
        warnings = []
        for name, value in values.items():
            clamped = max(0, min(self.range - 1, value))
            if clamped != value:
                warnings.append(f"{name} {value} is outside 0..{self.range - 1}, using {clamped}")
                values[name] = clamped

        held_off = []
        for first, second in self.linked_pairs():
            if values[first] and values[second]:
                loser = first if values[first] < values[second] else second
                warnings.append(
                    f"{first} and {second} share a PWM channel, "
                    f"only {second if loser == first else first} can be lit"
                )
            elif values[first] or values[second]:
                loser = first if not values[first] else second
            else:
                continue
            held_off.append(loser)

        for message in warnings:
            LOG.debug(message)

        for name in held_off:
            values[name] = 0
        ordered = held_off + [name for name in self.pins if name not in held_off]
        for name in ordered:
            pin = self.pins[name]
            if pin.mode != PinMode.PWM:
                self._enable_pwm(pin)
            pin.set_duty_cycle(values[name], self.range, PWMMode.BALANCED)

        return ColorResult(values=values, held_off=held_off, warnings=warnings)

    def off(self):
        self.set_color(0, 0, 0)


def parse_color_value(text: str, range_: int = RGB_RANGE) -> int:
    """Parse a colour value, treating anything unparseable as 0."""
    try:
        value = int(text.strip())
    except ValueError:
        return 0
    return max(0, min(range_ - 1, value))
