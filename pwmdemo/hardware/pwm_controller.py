"""
PCA9685 PWM controller backend.
Based on the Adafruit PCA9685 library.

The PCA9685 has one shared frequency for all 16 channels and a 16-bit
duty cycle per channel. Output frequency is limited to roughly
24-1526 Hz by its prescaler.
"""

import logging
from typing import Optional

from ..data.models import PWMMode
from ..errors import GPIOAccessError
from .gpio import PinHandle, PinMode

# Hardware imports - will fail gracefully on non-Pi systems
# (blinka raises NotImplementedError on boards it doesn't recognise)
try:
    import board
    import busio
    from adafruit_pca9685 import PCA9685
    HARDWARE_AVAILABLE = True
except (ImportError, NotImplementedError):
    HARDWARE_AVAILABLE = False

LOG = logging.getLogger(__name__)

FULL_DUTY = 0xFFFF

# Limits of the PCA9685 prescaler with its 25 MHz internal oscillator
MIN_OUTPUT_HZ = 24
MAX_OUTPUT_HZ = 1526


class PCA9685Pin(PinHandle):
    """
    One PCA9685 channel treated as a PWM pin.

    Duty cycle conversion:
    - range ticks map onto the 16-bit duty cycle (0-65535)
    - Formula: duty_cycle = pulse_width * 65535 // range
    """

    backend = "pca9685"

    def __init__(self, pin: int, active_low: bool = False,
                 address: int = 0x40, pca=None):
        """
        Initialize PWM controller.

        Args:
            pin: PWM channel to use (0-15)
            active_low: If True, the duty cycle is inverted
            address: I2C address of PCA9685 (default 0x40)
            pca: Already-initialized PCA9685 object to use instead of opening I2C

        Raises:
            GPIOAccessError: If the board can't be reached
        """
        super().__init__(pin, active_low=active_low)
        if not 0 <= pin <= 15:
            raise GPIOAccessError(f"PCA9685 channel must be 0-15 (got {pin})")

        self.address = address
        self._clock_hz = None
        self._requested_hz = None
        self._duty = 0
        self._pca: Optional[object] = pca

        if self._pca is None:
            self._init_hardware()

    def _init_hardware(self):
        """Initialize PCA9685 hardware."""
        if not HARDWARE_AVAILABLE:
            raise GPIOAccessError("adafruit-circuitpython-pca9685 is not installed")
        try:
            i2c = busio.I2C(board.SCL, board.SDA)
            self._pca = PCA9685(i2c, address=self.address)
        except (OSError, ValueError, RuntimeError) as e:
            raise GPIOAccessError(f"Failed to initialize PCA9685: {e}") from e

    def _set_raw_duty(self, duty: int):
        if self.active_low:
            duty = FULL_DUTY - duty
        self._pca.channels[self.pin].duty_cycle = duty
        self._duty = duty

    def _set_mode(self, mode: PinMode):
        # Every PCA9685 channel is a PWM output; output mode is 0% or 100% duty
        self.mode = PinMode(mode)

    def _write(self, level: int):
        self._set_raw_duty(FULL_DUTY if level == self.on_level else 0)

    def read(self) -> int:
        on = (self._duty > 0) != self.active_low
        return self.on_level if on else self.off_level

    def _set_frequency(self, clock_hz: float):
        self._clock_hz = clock_hz

    def _set_duty_cycle(self, pulse_width: int, range_: int, mode: PWMMode):
        if self._clock_hz is None:
            raise GPIOAccessError("set_frequency must be called before set_duty_cycle")

        requested_hz = self._clock_hz / range_
        output_hz = max(MIN_OUTPUT_HZ, min(MAX_OUTPUT_HZ, round(requested_hz)))
        if output_hz != round(requested_hz) and requested_hz != self._requested_hz:
            LOG.warning("PCA9685 channel %d: %.4g Hz is outside %d-%d Hz, using %d Hz",
                        self.pin, requested_hz, MIN_OUTPUT_HZ, MAX_OUTPUT_HZ, output_hz)
        self._requested_hz = requested_hz
        if self._pca.frequency != output_hz:
            self._pca.frequency = output_hz
        self._set_raw_duty(pulse_width * FULL_DUTY // range_)
        self._remember_duty(range_, mode)

    def _close(self):
        """Clean up resources."""
        if self._pca is None:
            return
        try:
            # Return to off before cleanup
            self._set_raw_duty(0)
            self._pca.deinit()
        finally:
            self._pca = None
