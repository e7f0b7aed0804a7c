"""
Blink an LED a few times.
"""

import threading
import time
from typing import Callable, List, Optional

from ..hardware.gpio import PinHandle, PinMode


def blink(pin: PinHandle, times: int = 5, interval_s: float = 0.5,
          cancel: Optional[threading.Event] = None,
          sleep: Callable[[float], None] = time.sleep) -> List[int]:
    """
    Turn the LED on and off `times` times, then leave it off.

    Returns:
        Levels read back after each write, in order
    """
    pin.set_mode(PinMode.OUTPUT)
    readings = []

    for _ in range(times):
        if cancel is not None and cancel.is_set():
            break

        pin.on()
        level = pin.read()
        readings.append(level)
        print(f"LED on, pin value should be {pin.on_level}: {level}")
        sleep(interval_s)

        pin.off()
        level = pin.read()
        readings.append(level)
        print(f"\tLED off, pin value should be {pin.off_level}: {level}")
        sleep(interval_s)

    pin.off()
    return readings
