import threading

import pytest

from pwmdemo.data.models import PWMParameters, PWMType
from pwmdemo.drivers.hardware_pwm import HardwarePWMDriver
from pwmdemo.drivers.session import PWMSession
from pwmdemo.errors import GPIOAccessError
from pwmdemo.hardware.simulated import SimulatedPin


@pytest.fixture
def opened():
    return []


@pytest.fixture
def session(opened):
    def open_pin(params):
        pin = SimulatedPin(params.pin)
        opened.append(pin)
        return pin

    return PWMSession(open_pin, hardware_driver=HardwarePWMDriver(poll_interval=0.01))


def test_start_and_stop(session, opened):
    assert session.start(PWMParameters(range=1000, pulse_width=100)) is True
    assert session.running

    assert session.stop() is True
    assert not session.running
    assert opened[0].closed
    assert opened[0].pulse_width == 0


def test_second_start_refused(session, opened):
    session.start(PWMParameters())
    try:
        assert session.start(PWMParameters(pin=19)) is False
        assert len(opened) == 1
    finally:
        session.stop()


def test_stop_when_idle(session):
    assert session.stop() is False


def test_software_run(session, opened):
    params = PWMParameters(range=100, pulse_width=50, tick_us=100, pin=17,
                           pwm_type=PWMType.SOFTWARE)
    session.start(params)
    session.stop()
    assert opened[0].closed
    assert opened[0].read() == 0


def test_open_failure_leaves_session_idle():
    def open_pin(params):
        raise GPIOAccessError("no gpiochip")

    session = PWMSession(open_pin)
    with pytest.raises(GPIOAccessError):
        session.start(PWMParameters())
    assert not session.running


def test_run_error_reported(opened):
    class BrokenDriver(HardwarePWMDriver):
        def run(self, pin, params, cancel):
            raise OSError("bus error")

    def open_pin(params):
        pin = SimulatedPin(params.pin)
        opened.append(pin)
        return pin

    reported = threading.Event()
    messages = []

    def on_error(message):
        messages.append(message)
        reported.set()

    session = PWMSession(open_pin, hardware_driver=BrokenDriver())
    session.set_callbacks(on_error=on_error)
    session.start(PWMParameters())

    assert reported.wait(2.0)
    session._thread.join(2.0)
    assert not session.running
    assert "bus error" in messages[0]
    assert session.error_message == messages[0]
    assert opened[0].closed
