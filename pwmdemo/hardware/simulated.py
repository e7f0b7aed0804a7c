"""
Simulated pin for running demos without hardware.

Every operation is recorded with a timestamp so a run can be inspected
afterwards.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, List, Tuple

from ..data.models import PWMMode
from .gpio import LOW, PinHandle, PinMode


@dataclass
class PinEvent:
    """One recorded pin operation."""
    op: str
    args: Tuple = ()
    timestamp: float = field(default_factory=time.monotonic)


class SimulatedPin(PinHandle):
    """PinHandle that keeps state in memory and logs each call."""

    backend = "simulated"

    def __init__(self, pin: int, active_low: bool = False,
                 clock: Callable[[], float] = time.monotonic):
        super().__init__(pin, active_low=active_low)
        self._clock = clock
        self.level = LOW
        self.frequency = None
        self.pulse_width = 0
        self.events: List[PinEvent] = []

    def _record(self, op: str, *args):
        self.events.append(PinEvent(op, args, self._clock()))

    def _set_mode(self, mode: PinMode):
        self.mode = PinMode(mode)
        self._record("set_mode", self.mode)

    def _write(self, level: int):
        self.level = level
        self._record("write", level)

    def read(self) -> int:
        return self.level

    def _set_frequency(self, clock_hz: float):
        self.frequency = clock_hz
        self._record("set_frequency", clock_hz)

    def _set_duty_cycle(self, pulse_width: int, range_: int, mode: PWMMode):
        self.pulse_width = pulse_width
        self._remember_duty(range_, mode)
        self._record("set_duty_cycle", pulse_width, range_, mode)

    def _close(self):
        self._record("close")

    def ops(self) -> List[str]:
        """Names of the recorded operations, in order."""
        return [event.op for event in self.events]

    def writes(self) -> List[int]:
        """Levels written, in order."""
        return [event.args[0] for event in self.events if event.op == "write"]
