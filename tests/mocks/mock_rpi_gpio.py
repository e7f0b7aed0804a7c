"""
Module-style RPi.GPIO mock for rpi_gpio_pin.py.

Tests swap it in with:
    monkeypatch.setattr(rpi_gpio_pin, "GPIO", mock_rpi_gpio, raising=False)
"""

BCM = 11
OUT = 0
LOW = 0
HIGH = 1

calls = []
levels = {}


def reset():
    calls.clear()
    levels.clear()


def setmode(mode):
    calls.append(("setmode", mode))


def setwarnings(flag):
    calls.append(("setwarnings", flag))


def setup(channel, direction):
    calls.append(("setup", int(channel), direction))


def output(channel, level):
    calls.append(("output", int(channel), int(level)))
    levels[channel] = int(level)


def input(channel):
    return levels.get(channel, LOW)


def cleanup(channel=None):
    calls.append(("cleanup", channel))


class PWM:
    def __init__(self, channel, frequency):
        self.channel = channel
        calls.append(("PWM", int(channel), float(frequency)))

    def start(self, duty_cycle):
        calls.append(("start", self.channel, float(duty_cycle)))

    def ChangeFrequency(self, frequency):
        calls.append(("ChangeFrequency", self.channel, float(frequency)))

    def ChangeDutyCycle(self, duty_cycle):
        calls.append(("ChangeDutyCycle", self.channel, float(duty_cycle)))

    def stop(self):
        calls.append(("stop", self.channel))
