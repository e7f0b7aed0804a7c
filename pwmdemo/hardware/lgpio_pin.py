"""
lgpio backend.

Works on every Pi model including the Pi 5. PWM mode uses lgpio's
tx_pwm, which is timed by the lgpio library rather than the PWM
peripheral, so it is always mark-space shaped.
"""

import logging

from ..data.models import PWMMode
from ..errors import GPIOAccessError
from .gpio import LOW, PinHandle, PinMode

# Hardware imports - will fail gracefully on non-Pi systems
try:
    import lgpio
    HARDWARE_AVAILABLE = True
except ImportError:
    HARDWARE_AVAILABLE = False

LOG = logging.getLogger(__name__)

# tx_pwm accepts 0.1 - 10000 Hz
TX_PWM_MIN_HZ = 0.1
TX_PWM_MAX_HZ = 10_000


class LgpioPin(PinHandle):
    """PinHandle on a gpiochip via lgpio."""

    backend = "lgpio"

    def __init__(self, pin: int, active_low: bool = False, chip: int = 0):
        """
        Open the gpiochip.

        Args:
            pin: BCM pin number
            active_low: If True, the pin is "on" when driven LOW
            chip: gpiochip number (Pi 5 on older kernels uses 4)

        Raises:
            GPIOAccessError: If lgpio is missing or the chip can't be opened
        """
        super().__init__(pin, active_low=active_low)
        self.chip = chip
        self._clock_hz = None
        self._requested_hz = None
        self._claimed = False

        if not HARDWARE_AVAILABLE:
            raise GPIOAccessError("lgpio is not installed")
        try:
            self._handle = lgpio.gpiochip_open(chip)
        except lgpio.error as e:
            raise GPIOAccessError(f"Failed to open gpiochip{chip}: {e}") from e

    def _claim(self):
        if not self._claimed:
            lgpio.gpio_claim_output(self._handle, self.pin, self.off_level)
            self._claimed = True

    def _set_mode(self, mode: PinMode):
        self.mode = PinMode(mode)
        self._claim()

    def _write(self, level: int):
        lgpio.gpio_write(self._handle, self.pin, level)

    def read(self) -> int:
        return lgpio.gpio_read(self._handle, self.pin)

    def _set_frequency(self, clock_hz: float):
        self._clock_hz = clock_hz

    def _set_duty_cycle(self, pulse_width: int, range_: int, mode: PWMMode):
        if self._clock_hz is None:
            raise GPIOAccessError("set_frequency must be called before set_duty_cycle")
        if mode == PWMMode.BALANCED:
            LOG.debug("lgpio tx_pwm has no balanced mode, using mark-space on pin %d", self.pin)

        self._remember_duty(range_, mode)
        requested_hz = self._clock_hz / range_
        output_hz = max(TX_PWM_MIN_HZ, min(TX_PWM_MAX_HZ, requested_hz))
        if output_hz != requested_hz and requested_hz != self._requested_hz:
            LOG.warning("GPIO%d: %.4g Hz is outside tx_pwm's %g-%d Hz, using %g Hz",
                        self.pin, requested_hz, TX_PWM_MIN_HZ, TX_PWM_MAX_HZ, output_hz)
        self._requested_hz = requested_hz
        duty_percent = 100.0 * pulse_width / range_
        if self.active_low:
            duty_percent = 100.0 - duty_percent
        lgpio.tx_pwm(self._handle, self.pin, output_hz, duty_percent)

    def _close(self):
        """Stop any PWM, free the pin and close the chip."""
        if self._handle is None:
            return
        try:
            if self._claimed:
                if self.mode == PinMode.PWM:
                    lgpio.tx_pwm(self._handle, self.pin, 0, 0)
                lgpio.gpio_free(self._handle, self.pin)
        finally:
            lgpio.gpiochip_close(self._handle)
            self._handle = None
