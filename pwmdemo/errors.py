"""
Exceptions raised by the PWM demo toolkit.
"""


class PWMDemoError(Exception):
    """Base class for all toolkit errors."""


class ParameterRejected(PWMDemoError, ValueError):
    """A PWM parameter combination violates one of the validation rules."""

    def __init__(self, rule: str, reason: str):
        super().__init__(reason)
        self.rule = rule
        self.reason = reason


class GPIOAccessError(PWMDemoError, RuntimeError):
    """The pin control interface could not be acquired."""


class UnsupportedOperation(PWMDemoError, NotImplementedError):
    """The selected pin backend cannot perform the requested operation."""
