"""
Dim an LED with software PWM.

The LED runs at the chosen brightness for a number of cycles, then at
full brightness for a second, repeating until cancelled. Low brightness
values flicker noticeably because sleep timing isn't uniform.
"""

import threading
from typing import Callable, Optional

from ..data.models import Band, PWMMode, PWMParameters, PWMType
from ..hardware.gpio import PinHandle
from ..drivers.software_pwm import SoftwarePWMDriver

# 10 ms cycle in 1 us ticks
DIM_RANGE = 10_000
BRIGHTNESS_BAND = Band(10, DIM_RANGE)


def dim_params(pin: int, brightness: int) -> PWMParameters:
    """Software PWM parameters for a brightness of 10-10000 (out of 10000)."""
    return PWMParameters(
        clock=1_000_000,
        range=DIM_RANGE,
        pulse_width=BRIGHTNESS_BAND.clamp(brightness),
        pin=pin,
        pwm_type=PWMType.SOFTWARE,
        mode=PWMMode.BALANCED,
        tick_us=1
    )


def dim_led(pin: PinHandle, brightness: int, cancel: threading.Event,
            dim_cycles: int = 500, bright_s: float = 1.0,
            rounds: Optional[int] = None,
            sleep_us: Optional[Callable[[int], None]] = None) -> int:
    """
    Alternate between dimmed and full brightness.

    Args:
        pin: LED pin
        brightness: Pulse width out of 10000 (clamped to 10-10000)
        cancel: Stops the demo when set
        dim_cycles: Software PWM cycles per dim phase
        bright_s: Duration of the full-brightness phase
        rounds: Number of dim/bright rounds (None = until cancelled)
        sleep_us: Passed to the software PWM driver

    Returns:
        Number of rounds completed
    """
    params = dim_params(pin.pin, brightness)
    driver = SoftwarePWMDriver(sleep_us=sleep_us, max_cycles=dim_cycles)
    completed = 0

    while not cancel.is_set():
        if rounds is not None and completed >= rounds:
            break
        driver.run(pin, params, cancel)
        if cancel.is_set():
            break
        pin.on()
        cancel.wait(bright_s)
        pin.off()
        completed += 1

    return completed
