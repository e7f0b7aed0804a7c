"""
Software PWM driver.

Emulates PWM on a pin without PWM hardware by toggling it on and off.
Each phase duration is recomputed from the fixed range and pulse width
every cycle, so on-time + off-time always equals the period exactly and
timing errors never accumulate into frequency drift.

Actual timing depends on the OS scheduler, so expect visible flicker at
short periods.
"""

import logging
import threading
from typing import Callable, Optional, Tuple

from ..data.models import PWMParameters
from ..hardware.gpio import PinHandle, PinMode

LOG = logging.getLogger(__name__)


def phase_durations_us(params: PWMParameters) -> Tuple[int, int]:
    """
    Get (on, off) durations in microseconds for one cycle.

    Returns:
        Tuple of (on_us, off_us); their sum is always params.period_us
    """
    on_us = params.on_ticks * params.tick_us
    off_us = params.off_ticks * params.tick_us
    return on_us, off_us


class SoftwarePWMDriver:
    """Toggle loop that drives one pin according to PWMParameters."""

    def __init__(self, sleep_us: Optional[Callable[[int], None]] = None,
                 max_cycles: Optional[int] = None):
        """
        Args:
            sleep_us: Called with each phase duration in microseconds.
                      Defaults to waiting on the cancel event.
            max_cycles: Stop after this many cycles (None = until cancelled)
        """
        self._sleep_us = sleep_us
        self.max_cycles = max_cycles
        self.cycles = 0

    def run(self, pin: PinHandle, params: PWMParameters,
            cancel: threading.Event) -> int:
        """
        Run the toggle loop until `cancel` is set.

        Args:
            pin: Pin to drive; its active_low flag decides the "on" level
            params: Validated parameters (range/pulse width in ticks)
            cancel: Cancellation token shared with the cleanup path

        Returns:
            Number of complete cycles run
        """
        if self._sleep_us is not None:
            sleep_us = self._sleep_us
        else:
            def sleep_us(us):
                cancel.wait(us / 1_000_000)

        pin.set_mode(PinMode.OUTPUT)
        pin.off()
        is_on = False
        self.cycles = 0

        LOG.info("Software PWM on GPIO%d: %s", pin.pin, params.describe())
        try:
            while not cancel.is_set():
                if self.max_cycles is not None and self.cycles >= self.max_cycles:
                    break

                on_us, off_us = phase_durations_us(params)

                if on_us:
                    if not is_on:
                        pin.on()
                        is_on = True
                    sleep_us(on_us)
                    if cancel.is_set():
                        break

                if off_us:
                    if is_on:
                        pin.off()
                        is_on = False
                    sleep_us(off_us)

                self.cycles += 1
        finally:
            pin.off()

        LOG.info("Software PWM on GPIO%d stopped after %d cycles", pin.pin, self.cycles)
        return self.cycles
