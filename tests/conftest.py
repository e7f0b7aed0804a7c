import threading

import pytest

from pwmdemo.hardware.simulated import SimulatedPin


@pytest.fixture
def pin():
    return SimulatedPin(18)


@pytest.fixture
def led():
    """Active-low LED on GPIO17."""
    return SimulatedPin(17, active_low=True)


@pytest.fixture
def cancel():
    return threading.Event()


@pytest.fixture
def sleeps():
    """Recording sleep_us stand-in; the recorded list is `sleeps.calls`."""
    class Recorder:
        def __init__(self):
            self.calls = []

        def __call__(self, us):
            self.calls.append(us)

    return Recorder()
