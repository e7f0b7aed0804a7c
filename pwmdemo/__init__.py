"""
PWM Demo Toolkit

Small demonstration programs for driving Raspberry Pi GPIO peripherals
with software and hardware PWM, plus an interactive PWM explorer.
"""

__version__ = "1.0.0"
