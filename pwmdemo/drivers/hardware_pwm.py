"""
Hardware PWM driver.

Configures the PWM peripheral once and then only waits: the hardware
generates the waveform by itself.
"""

import logging
import threading

from ..data.models import PWMParameters
from ..hardware.gpio import PinHandle, PinMode

LOG = logging.getLogger(__name__)

POLL_INTERVAL_S = 0.02


class HardwarePWMDriver:
    """Configure a PWM-capable pin and hold it until cancelled."""

    def __init__(self, poll_interval: float = POLL_INTERVAL_S):
        self.poll_interval = poll_interval

    def configure(self, pin: PinHandle, params: PWMParameters):
        """Set PWM mode, clock and duty cycle without blocking."""
        pin.set_mode(PinMode.PWM)
        pin.set_frequency(params.clock_hz)
        pin.set_duty_cycle(params.pulse_width, params.range, params.mode)
        LOG.info("Hardware PWM on GPIO%d: %s", pin.pin, params.describe())

    def run(self, pin: PinHandle, params: PWMParameters,
            cancel: threading.Event):
        """
        Configure the pin, block until `cancel` is set, then zero the duty cycle.

        Args:
            pin: PWM-capable pin
            params: Validated parameters
            cancel: Cancellation token shared with the cleanup path
        """
        self.configure(pin, params)
        try:
            while not cancel.wait(self.poll_interval):
                pass
        finally:
            pin.set_duty_cycle(0, params.range, params.mode)
        LOG.info("Hardware PWM on GPIO%d stopped", pin.pin)
