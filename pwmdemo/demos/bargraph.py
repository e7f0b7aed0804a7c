"""
LED bar graph demo.

Flashes every segment, lights each one in sequence, then lights random
segments until cancelled.
"""

import random
import threading
import time
from typing import Callable, List, Optional, Sequence

from ..hardware.gpio import PinHandle, PinMode

DEFAULT_PINS = (17, 18, 27, 22, 23, 24, 25, 2, 3, 8)


class BarGraph:
    """A row of LEDs, one pin per segment."""

    def __init__(self, pins: Sequence[PinHandle],
                 rng: Optional[random.Random] = None,
                 sleep: Callable[[float], None] = time.sleep):
        if not pins:
            raise ValueError("a bar graph needs at least one pin")
        self.pins: List[PinHandle] = list(pins)
        self._rng = rng or random.Random()
        self._sleep = sleep

    def init_pins(self, flash_s: float = 0.3):
        """Set every pin to output and briefly flash all segments."""
        for pin in self.pins:
            pin.set_mode(PinMode.OUTPUT)
        for pin in self.pins:
            pin.on()
        self._sleep(flash_s)
        self.all_off()
        self._sleep(flash_s)

    def all_off(self):
        for pin in self.pins:
            pin.off()

    def light_each(self, cancel: threading.Event, delay_s: float = 0.3):
        """Light each segment in turn."""
        for pin in self.pins:
            if cancel.is_set():
                return
            pin.on()
            self._sleep(delay_s)
            pin.off()
            self._sleep(delay_s)

    def random_walk(self, cancel: threading.Event, delay_s: float = 0.03,
                    max_steps: Optional[int] = None) -> List[int]:
        """
        Flash randomly chosen segments until cancelled.

        Returns:
            Indexes of the segments lit, in order
        """
        lit = []
        while not cancel.is_set():
            if max_steps is not None and len(lit) >= max_steps:
                break
            index = self._rng.randrange(len(self.pins))
            lit.append(index)
            self.pins[index].on()
            self._sleep(delay_s)
            self.pins[index].off()
            self._sleep(delay_s)
        return lit

    def run(self, cancel: threading.Event, max_steps: Optional[int] = None):
        self.init_pins()
        self.light_each(cancel)
        self.random_walk(cancel, max_steps=max_steps)
        self.all_off()
