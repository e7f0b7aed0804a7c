"""
Pin control interface shared by all GPIO backends.

A PinHandle owns one GPIO line for the lifetime of a run. Drivers talk to
pins only through this interface so the same loop can run on lgpio,
RPi.GPIO, the kernel sysfs PWM interface, a PCA9685 board or a simulated
pin.
"""

import logging
from abc import ABC, abstractmethod
from enum import Enum

from ..data.models import PWMMode
from ..errors import GPIOAccessError

LOG = logging.getLogger(__name__)

LOW = 0
HIGH = 1


class PinMode(str, Enum):
    OUTPUT = "output"
    PWM = "pwm"


class PinHandle(ABC):
    """
    Interface to a single GPIO pin.

    `active_low` inverts the meaning of on/off: some LEDs are wired so
    that driving the pin LOW turns them on.
    """

    backend = "abstract"

    def __init__(self, pin: int, active_low: bool = False):
        self.pin = pin
        self.active_low = active_low
        self.mode = None
        self.closed = False
        self._range = 1
        self._pwm_mode = PWMMode.BALANCED

    @property
    def on_level(self) -> int:
        return LOW if self.active_low else HIGH

    @property
    def off_level(self) -> int:
        return HIGH if self.active_low else LOW

    def on(self):
        self.write(self.on_level)

    def off(self):
        """Drive the pin to its idle state: duty zero in PWM mode, off otherwise."""
        if self.mode == PinMode.PWM:
            self.set_duty_cycle(0, self._range, self._pwm_mode)
        else:
            self.write(self.off_level)

    # Once closed, the pin is released and every state change is ignored

    def set_mode(self, mode: PinMode):
        """Configure the pin as a plain output or a PWM output."""
        if not self.closed:
            self._set_mode(PinMode(mode))

    def write(self, level: int):
        """Set the pin HIGH or LOW."""
        if not self.closed:
            self._write(level)

    def set_frequency(self, clock_hz: float):
        """Set the PWM clock frequency in Hz."""
        if not self.closed:
            self._set_frequency(clock_hz)

    def set_duty_cycle(self, pulse_width: int, range_: int,
                       mode: PWMMode = PWMMode.BALANCED):
        """Set pulse width out of range ticks."""
        if not self.closed:
            self._set_duty_cycle(pulse_width, range_, mode)

    def close(self):
        """Release the underlying library resources. Safe to call twice."""
        if self.closed:
            return
        try:
            self._close()
        finally:
            self.closed = True

    @abstractmethod
    def _set_mode(self, mode: PinMode):
        pass

    @abstractmethod
    def _write(self, level: int):
        pass

    @abstractmethod
    def read(self) -> int:
        """Read back the current pin level."""

    @abstractmethod
    def _set_frequency(self, clock_hz: float):
        pass

    @abstractmethod
    def _set_duty_cycle(self, pulse_width: int, range_: int, mode: PWMMode):
        pass

    @abstractmethod
    def _close(self):
        pass

    def _remember_duty(self, range_: int, mode: PWMMode):
        self._range = range_
        self._pwm_mode = mode

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self):
        return f"{type(self).__name__}(pin={self.pin}, active_low={self.active_low})"


BACKENDS = ("lgpio", "rpigpio", "sysfs", "pca9685", "simulated")


def open_pin(backend: str, pin: int, simulate: bool = False,
             active_low: bool = False, **options) -> PinHandle:
    """
    Acquire a pin from the named backend.

    Args:
        backend: One of BACKENDS
        pin: BCM pin number (channel number for pca9685)
        simulate: If True, return a simulated pin whatever the backend
        active_low: If True, the pin is "on" when driven LOW
        **options: Backend-specific options (chip, address, base_path, ...)

    Returns:
        An open PinHandle

    Raises:
        GPIOAccessError: If the backend or its hardware can't be used
    """
    if simulate or backend == "simulated":
        from .simulated import SimulatedPin
        return SimulatedPin(pin, active_low=active_low)

    if backend == "lgpio":
        from .lgpio_pin import LgpioPin
        return LgpioPin(pin, active_low=active_low, **options)
    if backend == "rpigpio":
        from .rpi_gpio_pin import RPiGPIOPin
        return RPiGPIOPin(pin, active_low=active_low, **options)
    if backend == "sysfs":
        from .sysfs_pwm import SysfsPWMPin
        return SysfsPWMPin(pin, active_low=active_low, **options)
    if backend == "pca9685":
        from .pwm_controller import PCA9685Pin
        return PCA9685Pin(pin, active_low=active_low, **options)

    raise GPIOAccessError(f"Unknown GPIO backend '{backend}' (choose from {', '.join(BACKENDS)})")
