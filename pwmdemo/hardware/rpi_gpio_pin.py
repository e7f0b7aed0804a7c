"""
RPi.GPIO backend.

PWM mode uses RPi.GPIO's software PWM (GPIO.PWM), which takes a
frequency in Hz and a duty cycle in percent.
"""

import logging

from ..data.models import PWMMode
from ..errors import GPIOAccessError
from .gpio import PinHandle, PinMode

# Hardware imports - will fail gracefully on non-Pi systems
try:
    import RPi.GPIO as GPIO
    HARDWARE_AVAILABLE = True
except ImportError:
    HARDWARE_AVAILABLE = False

LOG = logging.getLogger(__name__)


class RPiGPIOPin(PinHandle):
    """PinHandle using RPi.GPIO with BCM numbering."""

    backend = "rpigpio"

    def __init__(self, pin: int, active_low: bool = False):
        super().__init__(pin, active_low=active_low)
        self._pwm = None
        self._clock_hz = None

        if not HARDWARE_AVAILABLE:
            raise GPIOAccessError("RPi.GPIO is not installed")
        try:
            GPIO.setmode(GPIO.BCM)
            GPIO.setwarnings(False)
        except RuntimeError as e:
            # RPi.GPIO raises RuntimeError when /dev/gpiomem isn't accessible
            raise GPIOAccessError(f"Failed to initialize RPi.GPIO: {e}") from e

    def _set_mode(self, mode: PinMode):
        self.mode = PinMode(mode)
        GPIO.setup(self.pin, GPIO.OUT)
        GPIO.output(self.pin, self.off_level)

    def _write(self, level: int):
        GPIO.output(self.pin, GPIO.HIGH if level else GPIO.LOW)

    def read(self) -> int:
        return GPIO.input(self.pin)

    def _set_frequency(self, clock_hz: float):
        self._clock_hz = clock_hz

    def _set_duty_cycle(self, pulse_width: int, range_: int, mode: PWMMode):
        if self._clock_hz is None:
            raise GPIOAccessError("set_frequency must be called before set_duty_cycle")

        output_hz = self._clock_hz / range_
        duty_percent = 100.0 * pulse_width / range_
        if self.active_low:
            # Inverted logic: 100% duty = off
            duty_percent = 100.0 - duty_percent

        if self._pwm is None:
            self._pwm = GPIO.PWM(self.pin, output_hz)
            self._pwm.start(duty_percent)
        else:
            self._pwm.ChangeFrequency(output_hz)
            self._pwm.ChangeDutyCycle(duty_percent)
        self._remember_duty(range_, mode)

    def _close(self):
        """Stop software PWM and release the pin."""
        if self._pwm is not None:
            self._pwm.stop()
            self._pwm = None
        GPIO.cleanup(self.pin)
