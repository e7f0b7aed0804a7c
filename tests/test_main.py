import os
import signal
import threading

import pytest

from pwmdemo import main as cli
from pwmdemo.errors import GPIOAccessError
from pwmdemo.hardware.simulated import SimulatedPin
from pwmdemo.main import EXIT_GPIO_ERROR, EXIT_REJECTED, build_parser, main


def test_rejected_parameters_exit_2(capsys):
    code = main(["--simulate", "pwm", "--type", "software", "--mode", "mark-space",
                 "--pin", "17"])
    assert code == EXIT_REJECTED
    assert "not available with software PWM" in capsys.readouterr().err


def test_hardware_pwm_on_plain_pin_exit_2():
    assert main(["--simulate", "pwm", "--pin", "17"]) == EXIT_REJECTED


def test_unknown_preset_exit_2(capsys):
    assert main(["--simulate", "pwm", "--preset", "missing"]) == EXIT_REJECTED
    assert "unknown preset" in capsys.readouterr().err


def test_gpio_failure_exit_1(monkeypatch, capsys):
    def no_gpio(*args, **kwargs):
        raise GPIOAccessError("Failed to open gpiochip0")

    monkeypatch.setattr(cli, "open_pin", no_gpio)
    assert main(["pwm"]) == EXIT_GPIO_ERROR
    assert "Failed to open gpiochip0" in capsys.readouterr().err


def test_simulated_hardware_run(capsys):
    with pytest.raises(SystemExit) as info:
        main(["--simulate", "pwm", "--freq", "100", "--range", "2400000",
              "--pulse-width", "600000", "--duration", "0.05"])

    assert info.value.code == 0
    out = capsys.readouterr().out
    assert "Warning: frequency 100 is outside 4688..9600000, using 4688" in out
    assert "Exiting..." in out


def test_simulated_software_run_from_preset(capsys):
    with pytest.raises(SystemExit) as info:
        main(["--simulate", "pwm", "--preset", "soft-dim", "--duration", "0.05"])

    assert info.value.code == 0
    assert "type: software" in capsys.readouterr().out


def test_simulated_blink(capsys):
    with pytest.raises(SystemExit) as info:
        main(["--simulate", "blink", "--times", "1", "--interval", "0"])
    assert info.value.code == 0
    assert "LED on" in capsys.readouterr().out


def test_freq_and_div_are_exclusive():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["pwm", "--freq", "100000", "--div", "192"])


def test_divisor_flag(capsys):
    with pytest.raises(SystemExit):
        main(["--simulate", "pwm", "--div", "192", "--range", "1000",
              "--duration", "0.01"])
    assert "divisor: 192" in capsys.readouterr().out


class GuardedPin(SimulatedPin):
    """Simulated pin that fails like real hardware when used after release."""

    def _write(self, level):
        if self.closed:
            raise TypeError("pin used after release")
        super()._write(level)

    def _set_duty_cycle(self, pulse_width, range_, mode):
        if self.closed:
            raise TypeError("pin used after release")
        super()._set_duty_cycle(pulse_width, range_, mode)


class BadFrequencyPin(SimulatedPin):
    def _set_duty_cycle(self, pulse_width, range_, mode):
        if pulse_width:
            raise ValueError("PWM frequency too low")
        super()._set_duty_cycle(pulse_width, range_, mode)


def opener(pin_class, opened):
    def open_fake(backend, pin, simulate=False, active_low=False, **options):
        handle = pin_class(pin, active_low=active_low)
        opened.append(handle)
        return handle
    return open_fake


@pytest.mark.parametrize("argv", [
    ["--type", "software", "--pin", "17", "--range", "1000", "--pulse-width", "250"],
    ["--pin", "18", "--pulse-width", "1000"],
])
def test_sigint_during_run_exits_0(monkeypatch, capsys, argv):
    opened = []
    monkeypatch.setattr(cli, "open_pin", opener(GuardedPin, opened))
    interrupt = threading.Timer(0.2, os.kill, args=(os.getpid(), signal.SIGINT))
    interrupt.start()

    try:
        with pytest.raises(SystemExit) as info:
            main(["pwm", *argv, "--duration", "5"])
    finally:
        interrupt.cancel()

    assert info.value.code == 0
    pin = opened[0]
    assert pin.closed
    assert pin.ops()[-1] == "close"
    assert pin.read() == pin.off_level or pin.pulse_width == 0
    assert "Exiting..." in capsys.readouterr().out


def test_driver_error_still_cleans_up(monkeypatch, capsys):
    opened = []
    monkeypatch.setattr(cli, "open_pin", opener(BadFrequencyPin, opened))

    with pytest.raises(SystemExit) as info:
        main(["pwm", "--duration", "0.05"])

    assert info.value.code == EXIT_GPIO_ERROR
    pin = opened[0]
    assert pin.closed
    assert pin.ops()[-2:] == ["set_duty_cycle", "close"]
    assert pin.pulse_width == 0
    assert "PWM frequency too low" in capsys.readouterr().err


def test_explorer_ctrl_c_exits_0(monkeypatch):
    def interrupted(prompt):
        raise KeyboardInterrupt

    monkeypatch.setattr("builtins.input", interrupted)
    assert main(["--simulate", "explore"]) == 0
    assert signal.getsignal(signal.SIGTERM) is not signal.default_int_handler
