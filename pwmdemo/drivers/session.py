"""
PWM session for the explorer.

Runs one software or hardware PWM driver at a time on a background
thread, and refuses to start a second run while one is active.
"""

import logging
import threading
from typing import Callable, Optional

from ..data.models import PWMParameters, PWMType
from ..hardware.gpio import PinHandle
from .hardware_pwm import HardwarePWMDriver
from .software_pwm import SoftwarePWMDriver

LOG = logging.getLogger(__name__)


class PWMSession:
    """
    Start/stop control around the PWM drivers.

    The pin for a run is opened by `open_pin_fn` when the run starts and
    closed when it ends, so each run owns its pin exclusively.
    """

    def __init__(self,
                 open_pin_fn: Callable[[PWMParameters], PinHandle],
                 software_driver: Optional[SoftwarePWMDriver] = None,
                 hardware_driver: Optional[HardwarePWMDriver] = None):
        """
        Args:
            open_pin_fn: Opens the pin for a set of parameters
            software_driver: Driver used for software PWM runs
            hardware_driver: Driver used for hardware PWM runs
        """
        self._open_pin = open_pin_fn
        self.software_driver = software_driver or SoftwarePWMDriver()
        self.hardware_driver = hardware_driver or HardwarePWMDriver()

        self._lock = threading.Lock()
        self._running = False
        self._cancel: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._pin: Optional[PinHandle] = None
        self.params: Optional[PWMParameters] = None
        self.error_message: Optional[str] = None

        self._on_error_callback: Optional[Callable[[str], None]] = None

    @property
    def running(self) -> bool:
        return self._running

    def set_callbacks(self, on_error: Optional[Callable[[str], None]] = None):
        """
        Args:
            on_error: Called with a message if a run fails
        """
        self._on_error_callback = on_error

    def start(self, params: PWMParameters) -> bool:
        """
        Start a run in a background thread.

        Returns:
            False if a run is already active

        Raises:
            GPIOAccessError: If the pin can't be opened
        """
        with self._lock:
            if self._running:
                return False

            self._pin = self._open_pin(params)
            self.params = params
            self.error_message = None
            self._cancel = threading.Event()
            self._running = True

            self._thread = threading.Thread(
                target=self._run, args=(self._pin, params, self._cancel)
            )
            self._thread.daemon = True
            self._thread.start()
        return True

    def stop(self, timeout: float = 5.0) -> bool:
        """
        Stop the active run and wait for its pin to be released.

        Returns:
            False if nothing was running
        """
        with self._lock:
            if not self._running:
                return False
            cancel, thread = self._cancel, self._thread

        cancel.set()
        if thread is not None:
            thread.join(timeout=timeout)
            if thread.is_alive():
                LOG.warning("PWM run did not stop within %.1fs", timeout)
        return True

    def _run(self, pin: PinHandle, params: PWMParameters, cancel: threading.Event):
        """Worker thread body."""
        try:
            if params.pwm_type == PWMType.SOFTWARE:
                self.software_driver.run(pin, params, cancel)
            else:
                self.hardware_driver.run(pin, params, cancel)
        except Exception as e:
            self.error_message = f"PWM error: {e}"
            LOG.exception("PWM run on GPIO%d failed", pin.pin)
            if self._on_error_callback:
                self._on_error_callback(self.error_message)
        finally:
            try:
                pin.off()
                pin.close()
            finally:
                with self._lock:
                    self._running = False
                    self._pin = None
