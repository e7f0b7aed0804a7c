"""
Hardware PWM via the kernel sysfs interface.
Requires: dtoverlay=pwm-2chan in /boot/firmware/config.txt

The kernel driver always generates a mark-space waveform; there is no
knob for balanced mode.
"""

import logging
import os
import time

from ..data.models import PWMMode
from ..errors import GPIOAccessError, UnsupportedOperation
from .gpio import PinHandle, PinMode

LOG = logging.getLogger(__name__)

SYSFS_PWM_ROOT = "/sys/class/pwm"

# BCM pin -> PWM channel. 12/18 share channel 0 and 13/19 share channel 1.
PIN_CHANNELS = {12: 0, 18: 0, 13: 1, 19: 1}


class SysfsPWMPin(PinHandle):
    """Hardware PWM control via sysfs."""

    backend = "sysfs"

    def __init__(self, pin: int, active_low: bool = False, chip: int = 0,
                 base_path: str = SYSFS_PWM_ROOT):
        """
        Args:
            pin: BCM pin number (12, 13, 18 or 19)
            active_low: If True, output polarity is inverted
            chip: pwmchip number
            base_path: Root of the sysfs PWM tree

        Raises:
            GPIOAccessError: If the pin has no PWM channel or pwmchip is missing
        """
        super().__init__(pin, active_low=active_low)
        if pin not in PIN_CHANNELS:
            raise GPIOAccessError(f"GPIO{pin} is not a hardware PWM pin")

        self.chip = chip
        self.channel = PIN_CHANNELS[pin]
        self.pwm_path = os.path.join(base_path, f"pwmchip{chip}")
        self.channel_path = os.path.join(self.pwm_path, f"pwm{self.channel}")
        self.exported = False
        self._clock_hz = None
        self._period_ns = 0
        self._duty_ns = 0
        self._enabled = False

        if not os.path.exists(self.pwm_path):
            raise GPIOAccessError(
                f"{self.pwm_path} not found. Add 'dtoverlay=pwm-2chan' to "
                "/boot/firmware/config.txt and reboot"
            )

    def _write_attr(self, filename: str, value):
        with open(os.path.join(self.channel_path, filename), "w") as f:
            f.write(str(value))

    def export(self):
        """Export the PWM channel."""
        if os.path.exists(self.channel_path):
            LOG.debug("PWM channel %d already exported", self.channel)
            self.exported = True
            return

        try:
            with open(os.path.join(self.pwm_path, "export"), "w") as f:
                f.write(str(self.channel))
        except PermissionError as e:
            raise GPIOAccessError(
                "Permission denied exporting PWM channel. Run with sudo or add user to gpio group"
            ) from e
        except OSError as e:
            raise GPIOAccessError(f"Failed to export PWM channel {self.channel}: {e}") from e
        # Wait for sysfs to create the channel
        time.sleep(0.1)
        self.exported = True
        LOG.info("Exported PWM channel %d", self.channel)

    def unexport(self):
        """Unexport the PWM channel."""
        if not self.exported:
            return
        with open(os.path.join(self.pwm_path, "unexport"), "w") as f:
            f.write(str(self.channel))
        self.exported = False

    def set_period_ns(self, period_ns: int):
        self._write_attr("period", int(period_ns))
        self._period_ns = int(period_ns)

    def set_duty_ns(self, duty_ns: int):
        self._write_attr("duty_cycle", int(duty_ns))
        self._duty_ns = int(duty_ns)

    def enable(self):
        self._write_attr("enable", 1)
        self._enabled = True

    def disable(self):
        self._write_attr("enable", 0)
        self._enabled = False

    def _set_mode(self, mode: PinMode):
        if PinMode(mode) != PinMode.PWM:
            raise UnsupportedOperation("sysfs PWM pins only support PWM mode")
        self.mode = PinMode.PWM
        self.export()
        self._write_attr("polarity", "inversed" if self.active_low else "normal")

    def _write(self, level: int):
        if self.mode != PinMode.PWM or not self._period_ns:
            raise UnsupportedOperation("configure the PWM period before writing a level")
        self.set_duty_ns(self._period_ns if level == self.on_level else 0)

    def read(self) -> int:
        return self.on_level if self._enabled and self._duty_ns > 0 else self.off_level

    def _set_frequency(self, clock_hz: float):
        self._clock_hz = clock_hz

    def _set_duty_cycle(self, pulse_width: int, range_: int, mode: PWMMode):
        if self._clock_hz is None:
            raise GPIOAccessError("set_frequency must be called before set_duty_cycle")

        tick_ns = 1e9 / self._clock_hz
        period_ns = int(range_ * tick_ns)
        duty_ns = int(pulse_width * tick_ns)

        # Duty must never exceed the period, so drop it before changing period
        if period_ns != self._period_ns:
            if self._duty_ns:
                self.set_duty_ns(0)
            self.set_period_ns(period_ns)
        self.set_duty_ns(duty_ns)
        self._remember_duty(range_, mode)
        if not self._enabled:
            self.enable()

    def _close(self):
        """Zero the duty cycle, disable and unexport."""
        if not self.exported:
            return
        if not os.path.exists(self.channel_path):
            # Already released through the other pin on this channel
            self.exported = False
            return
        try:
            if self._period_ns:
                self.set_duty_ns(0)
            self.disable()
        finally:
            self.unexport()
