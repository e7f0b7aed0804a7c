import threading

import pytest

from pwmdemo.data.models import ClockVariant, PWMMode, PWMParameters
from pwmdemo.drivers.hardware_pwm import HardwarePWMDriver
from pwmdemo.hardware.gpio import PinMode


def test_configure_then_zero_on_cancel(pin, cancel):
    params = PWMParameters(range=2_400_000, pulse_width=600_000)
    cancel.set()

    HardwarePWMDriver().run(pin, params, cancel)

    assert pin.ops() == ["set_mode", "set_frequency", "set_duty_cycle", "set_duty_cycle"]
    assert pin.mode == PinMode.PWM
    assert pin.frequency == pytest.approx(9_600_000)
    assert pin.events[2].args == (600_000, 2_400_000, PWMMode.BALANCED)
    assert pin.pulse_width == 0


def test_divisor_clock_converted_to_hz(pin):
    params = PWMParameters(clock=192, clock_variant=ClockVariant.DIVISOR,
                           range=1000, pulse_width=500, mode=PWMMode.MARK_SPACE)
    HardwarePWMDriver().configure(pin, params)

    assert pin.frequency == pytest.approx(100_000)
    assert pin.pulse_width == 500


def test_holds_until_cancelled(pin, cancel):
    params = PWMParameters(range=1000, pulse_width=250)
    timer = threading.Timer(0.05, cancel.set)
    timer.start()

    HardwarePWMDriver(poll_interval=0.01).run(pin, params, cancel)

    assert cancel.is_set()
    assert pin.pulse_width == 0
    # off() after a run zeroes the duty rather than writing a level
    pin.off()
    assert "write" not in pin.ops()
