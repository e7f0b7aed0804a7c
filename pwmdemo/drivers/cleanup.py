"""
Cancellation and cleanup on interrupt or normal termination.

The cleanup sequence runs at most once per run:

1. set the cancellation token so driver loops stop
2. drive every owned pin to its idle state (duty cycle 0 / off)
3. release the underlying library resources
4. terminate the process

Pins are zeroed before they are released: releasing first can leave the
PWM peripheral generating its last waveform indefinitely.

A second interrupt arriving while cleanup is running (Python runs signal
handlers on the main thread, so it can re-enter) returns immediately
instead of blocking on the first.
"""

import logging
import signal
import sys
import threading
from typing import Callable, Iterable, List, Optional

from ..hardware.gpio import PinHandle

LOG = logging.getLogger(__name__)

DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CleanupHandler:
    """Run-once cleanup for a set of owned pins."""

    def __init__(self, pins: Iterable[PinHandle] = (),
                 cancel: Optional[threading.Event] = None,
                 exit_fn: Optional[Callable[[int], None]] = sys.exit,
                 message: str = "\nExiting..."):
        """
        Args:
            pins: Pins owned by this run
            cancel: Cancellation token shared with the driver loop
            exit_fn: Called with the exit code once cleanup is done;
                     None to return instead of terminating
            message: Printed when cleanup starts
        """
        self.pins: List[PinHandle] = list(pins)
        self.cancel = cancel or threading.Event()
        self.exit_fn = exit_fn
        self.message = message
        self._once = threading.Lock()
        self._previous_handlers = {}

    @property
    def triggered(self) -> bool:
        return self._once.locked()

    def add_pin(self, pin: PinHandle):
        self.pins.append(pin)

    def trigger(self, exit_code: int = 0) -> bool:
        """
        Run the cleanup sequence if it hasn't run yet.

        Returns:
            True if this call performed the cleanup, False if it had
            already been triggered
        """
        # Never released: every later call is a no-op
        if not self._once.acquire(blocking=False):
            LOG.debug("Cleanup already triggered, ignoring")
            return False

        self.cancel.set()
        if self.message:
            print(self.message)

        for pin in self.pins:
            try:
                pin.off()
            except Exception:
                LOG.exception("Failed to turn off GPIO%d", pin.pin)

        for pin in self.pins:
            try:
                pin.close()
            except Exception:
                LOG.exception("Failed to release GPIO%d", pin.pin)

        LOG.info("Cleanup complete for %d pin(s)", len(self.pins))

        if self.exit_fn is not None:
            self.exit_fn(exit_code)
        return True

    def _on_signal(self, signum, frame):
        LOG.debug("Received signal %d", signum)
        self.trigger(0)

    def install(self, signals=DEFAULT_SIGNALS):
        """Route the given signals to trigger(). Must be called from the main thread."""
        for sig in signals:
            self._previous_handlers[sig] = signal.signal(sig, self._on_signal)

    def restore(self):
        """Put back the signal handlers replaced by install()."""
        for sig, handler in self._previous_handlers.items():
            signal.signal(sig, handler)
        self._previous_handlers.clear()

    def __enter__(self):
        self.install()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.restore()
        return False
