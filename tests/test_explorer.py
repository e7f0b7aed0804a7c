import pytest

from pwmdemo.drivers.hardware_pwm import HardwarePWMDriver
from pwmdemo.drivers.session import PWMSession
from pwmdemo.errors import GPIOAccessError
from pwmdemo.explorer import Explorer
from pwmdemo.hardware.simulated import SimulatedPin


@pytest.fixture
def opened():
    return []


@pytest.fixture
def explorer(opened):
    def open_pin(params):
        pin = SimulatedPin(params.pin)
        opened.append(pin)
        return pin

    session = PWMSession(open_pin, hardware_driver=HardwarePWMDriver(poll_interval=0.01))
    yield Explorer(session)
    session.stop()


def test_set_and_show(explorer, capsys):
    explorer.handle("set pulse-width 600,000")
    explorer.handle("set range 2400000")
    explorer.handle("show")

    out = capsys.readouterr().out
    assert "pulse width: 600000" in out
    assert "25.00%" in out
    assert "Status: stopped" in out


def test_stop_when_idle(explorer, capsys):
    explorer.handle("stop")
    assert "No tests running" in capsys.readouterr().out


def test_start_twice_then_stop(explorer, opened, capsys):
    explorer.handle("start")
    assert explorer.session.running
    explorer.handle("start")
    explorer.handle("stop")

    out = capsys.readouterr().out
    assert "Started: pin: 18" in out
    assert "There is a running test. Stop that test and try again" in out
    assert "Test stopped" in out
    assert not explorer.session.running
    assert len(opened) == 1
    assert opened[0].closed


def test_incompatible_mode_refused_at_entry(explorer, capsys):
    explorer.handle("set type software")
    explorer.handle("set mode mark-space")

    assert explorer.fields["mode"] is None
    assert "not available with software PWM" in capsys.readouterr().out


def test_incompatible_type_refused_at_entry(explorer, capsys):
    explorer.handle("set mode mark-space")
    explorer.handle("set type software")

    assert explorer.fields["type"] is None
    assert explorer.fields["mode"] == "mark-space"
    assert "keeping type unchanged" in capsys.readouterr().out


def test_rejected_parameters_do_not_start(explorer, capsys):
    explorer.handle("set pin 17")
    explorer.handle("start")

    assert not explorer.session.running
    assert "GPIO17 is not a hardware PWM pin" in capsys.readouterr().out


def test_clamping_warning_printed(explorer, capsys):
    explorer.handle("set clock 100")
    explorer.handle("start")
    explorer.handle("stop")

    out = capsys.readouterr().out
    assert "Warning: frequency 100 is outside 4688..9600000, using 4688" in out


def test_gpio_failure_reported(capsys):
    def open_pin(params):
        raise GPIOAccessError("no gpiochip")

    Explorer(PWMSession(open_pin)).handle("start")
    assert "Error starting test: no gpiochip" in capsys.readouterr().out


def test_reset(explorer, capsys):
    explorer.handle("set pin 12")
    explorer.handle("reset")
    assert explorer.fields["pin"] is None
    assert "Settings reset to defaults" in capsys.readouterr().out


def test_help_topics(explorer, capsys):
    explorer.handle("help")
    explorer.handle("help clock")
    explorer.handle("help nonsense")

    out = capsys.readouterr().out
    assert "pulse-width" in out
    assert "4688" in out
    assert "No help for 'nonsense'" in out


def test_help_mode_lists_unavailable_modes(explorer, capsys):
    explorer.handle("set type software")
    explorer.handle("help mode")
    assert "Not available with software PWM: mark-space" in capsys.readouterr().out


def test_unknown_input(explorer, capsys):
    explorer.handle("set colour blue")
    explorer.handle("dance")
    out = capsys.readouterr().out
    assert "Unknown field 'colour'" in out
    assert "Unknown command 'dance'" in out


def test_quit(explorer):
    assert explorer.handle("") is True
    assert explorer.handle("quit") is False
    assert explorer.handle("q") is False


def test_run_stops_session_at_end_of_input(opened, capsys):
    def open_pin(params):
        pin = SimulatedPin(params.pin)
        opened.append(pin)
        return pin

    lines = iter(["set pulse-width 10", "start"])

    def input_fn(prompt):
        try:
            return next(lines)
        except StopIteration:
            raise EOFError

    session = PWMSession(open_pin, hardware_driver=HardwarePWMDriver(poll_interval=0.01))
    Explorer(session, input_fn=input_fn).run()

    assert not session.running
    assert opened[0].closed
    assert "Test stopped" in capsys.readouterr().out


def test_ctrl_c_stops_run_and_returns(opened, capsys):
    def open_pin(params):
        pin = SimulatedPin(params.pin)
        opened.append(pin)
        return pin

    lines = iter(["start"])

    def input_fn(prompt):
        try:
            return next(lines)
        except StopIteration:
            raise KeyboardInterrupt

    session = PWMSession(open_pin, hardware_driver=HardwarePWMDriver(poll_interval=0.01))
    Explorer(session, input_fn=input_fn).run()

    out = capsys.readouterr().out
    assert "Exiting..." in out
    assert "Test stopped" in out
    assert not session.running
    assert opened[0].closed
