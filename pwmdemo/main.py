#!/usr/bin/env python3
"""
PWM Demo Toolkit

Demonstration programs for driving Raspberry Pi GPIO peripherals with
software and hardware PWM.

Usage:
    pwmdemo pwm --pin=18 --freq=9600000 --range=2400000 --pulse-width=600000
    pwmdemo pwm --type=software --pin=17 --range=10000 --pulse-width=2500
    pwmdemo explore            # Interactive PWM explorer
    pwmdemo blink | bargraph | rgb | dim
    pwmdemo --simulate ...     # No hardware required

Exit status: 0 after a graceful stop, 1 if GPIO access fails,
2 for rejected parameters.
"""

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from . import __version__
from .data.models import ClockVariant, PWMType
from .data.presets import Settings, load_settings
from .demos import bargraph, dimled, rgbled
from .demos.blink import blink
from .drivers.cleanup import CleanupHandler
from .drivers.hardware_pwm import HardwarePWMDriver
from .drivers.session import PWMSession
from .drivers.software_pwm import SoftwarePWMDriver
from .drivers.validator import validate_parameters
from .errors import GPIOAccessError, ParameterRejected
from .explorer import Explorer
from .hardware.gpio import BACKENDS, PinHandle, open_pin

LOG = logging.getLogger("pwmdemo")

EXIT_OK = 0
EXIT_GPIO_ERROR = 1
EXIT_REJECTED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='pwmdemo',
        description='PWM Demo Toolkit - drive GPIO peripherals with software and hardware PWM'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'PWM Demo Toolkit v{__version__}'
    )
    parser.add_argument(
        '--simulate', '-s',
        action='store_true',
        help='Run with simulated pins (no hardware required)'
    )
    parser.add_argument(
        '--backend', '-b',
        choices=BACKENDS,
        default='lgpio',
        help='GPIO library to drive pins with (default: lgpio)'
    )
    parser.add_argument('--chip', type=int, default=0,
                        help='gpiochip / pwmchip number (default: 0)')
    parser.add_argument('--address', type=lambda s: int(s, 0), default=0x40,
                        help='PCA9685 I2C address (default: 0x40)')
    parser.add_argument('--presets', default=None,
                        help='Preset file (default: config/pwm_presets.json)')
    parser.add_argument('--verbose', '-v', action='count', default=0,
                        help='Log more detail (-vv for debug)')

    commands = parser.add_subparsers(dest='command', required=True)

    # Numeric flags are kept as text: malformed values fall back to defaults
    pwm = commands.add_parser('pwm', help='Run software or hardware PWM on one pin')
    clock = pwm.add_mutually_exclusive_group()
    clock.add_argument('--freq', help='PWM clock frequency, 4688 to 9,600,000 Hz')
    clock.add_argument('--div', help='PWM clock divisor, 2 to 4095 (clock = 19.2 MHz / div)')
    pwm.add_argument('--range', '--cycle', dest='range', help='Cycle/period length in ticks')
    pwm.add_argument('--pulse-width', '--pulseWidth', dest='pulse_width',
                     help='Ticks of each cycle the pin is on')
    pwm.add_argument('--pin', help='GPIO (BCM) pin')
    pwm.add_argument('--type', '--pwmType', dest='pwm_type', help='hardware or software')
    pwm.add_argument('--mode', help='balanced or mark-space')
    pwm.add_argument('--tick-us', help='Software PWM tick length in microseconds')
    pwm.add_argument('--preset', help='Named preset to start from')
    pwm.add_argument('--active-low', action='store_true',
                     help='The load is on when the pin is LOW')
    pwm.add_argument('--duration', type=float, default=None,
                     help='Stop after this many seconds (default: run until Ctrl-C)')

    explore = commands.add_parser('explore', help='Interactive PWM explorer')
    explore.add_argument('--divisor', action='store_true',
                         help='Treat the clock setting as a divisor')

    blink_cmd = commands.add_parser('blink', help='Blink an LED')
    blink_cmd.add_argument('--pin', type=int, default=17)
    blink_cmd.add_argument('--times', type=int, default=5)
    blink_cmd.add_argument('--interval', type=float, default=0.5)
    blink_cmd.add_argument('--active-high', action='store_true',
                           help='The LED is on when the pin is HIGH')

    bar = commands.add_parser('bargraph', help='LED bar graph random walk')
    bar.add_argument('--pins', type=int, nargs='+', default=list(bargraph.DEFAULT_PINS))
    bar.add_argument('--steps', type=int, default=None,
                     help='Stop after this many random steps (default: until Ctrl-C)')
    bar.add_argument('--active-high', action='store_true',
                     help='The LEDs are on when the pins are HIGH')

    rgb = commands.add_parser('rgb', help='Mix colours on an RGB LED with hardware PWM')
    rgb.add_argument('--red', type=int, default=rgbled.DEFAULT_PINS['red'])
    rgb.add_argument('--green', type=int, default=rgbled.DEFAULT_PINS['green'])
    rgb.add_argument('--blue', type=int, default=rgbled.DEFAULT_PINS['blue'])
    rgb.add_argument('--clock', type=int, default=rgbled.RGB_CLOCK_HZ)
    rgb.add_argument('--range', type=int, default=rgbled.RGB_RANGE)

    dim = commands.add_parser('dim', help='Dim an LED with software PWM')
    dim.add_argument('--pin', type=int, default=17)
    dim.add_argument('--brightness', type=int, default=None,
                     help='10 to 10000 (prompted for if omitted)')
    dim.add_argument('--cycles', type=int, default=500,
                     help='Dim cycles between full-brightness flashes')
    dim.add_argument('--active-high', action='store_true',
                     help='The LED is on when the pin is HIGH')

    return parser


def _setup_logging(verbosity: int):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')


def _open(args, pin: int, active_low: bool = False) -> PinHandle:
    options = {}
    if args.backend in ('lgpio', 'sysfs'):
        options['chip'] = args.chip
    elif args.backend == 'pca9685':
        options['address'] = args.address
    return open_pin(args.backend, pin, simulate=args.simulate,
                    active_low=active_low, **options)


def _run_with_cleanup(cleanup: CleanupHandler, body) -> int:
    """Run `body` with signals routed to cleanup, then clean up and exit."""
    with cleanup:
        print("Hit ctl-C to exit")
        try:
            body()
        except Exception as e:
            # Any failure still zeroes and releases every pin
            LOG.debug("Run failed", exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            cleanup.trigger(EXIT_GPIO_ERROR)
            return EXIT_GPIO_ERROR
        cleanup.trigger(EXIT_OK)
    return EXIT_OK


def run_pwm(args, settings: Settings) -> int:
    """Validate the PWM flags and drive one pin until interrupted."""
    fields = {}
    if args.preset:
        try:
            fields = {k: str(v) for k, v in settings.preset(args.preset).items()}
        except KeyError:
            print(f"Error: unknown preset '{args.preset}' "
                  f"(choose from {', '.join(settings.presets) or 'none'})", file=sys.stderr)
            return EXIT_REJECTED

    variant = ClockVariant.DIVISOR if args.div is not None else ClockVariant.FREQUENCY
    clock = args.div if args.div is not None else args.freq

    def pick(value, name):
        return value if value is not None else fields.get(name)

    try:
        result = validate_parameters(
            clock=pick(clock, 'clock'),
            range_=pick(args.range, 'range'),
            pulse_width=pick(args.pulse_width, 'pulse_width'),
            pin=pick(args.pin, 'pin'),
            mode=pick(args.mode, 'mode'),
            pwm_type=pick(args.pwm_type, 'pwm_type'),
            variant=variant,
            tick_us=pick(args.tick_us, 'tick_us'),
            rules=settings.rules,
            defaults=settings.defaults,
            bands=settings.bands
        )
    except ParameterRejected as e:
        print(f"Error: {e.reason}", file=sys.stderr)
        return EXIT_REJECTED

    for message in result.warnings:
        print(f"Warning: {message}")
    params = result.params
    print(f"Using: {params.describe()}")

    active_low = args.active_low or settings.is_active_low(params.pin)
    try:
        pin = _open(args, params.pin, active_low=active_low)
    except GPIOAccessError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_GPIO_ERROR

    cancel = threading.Event()
    cleanup = CleanupHandler([pin], cancel)
    if params.pwm_type == PWMType.SOFTWARE:
        driver = SoftwarePWMDriver()
    else:
        driver = HardwarePWMDriver()

    if args.duration is not None:
        timer = threading.Timer(args.duration, cancel.set)
        timer.daemon = True
        timer.start()

    return _run_with_cleanup(cleanup, lambda: driver.run(pin, params, cancel))


def run_explorer(args, settings: Settings) -> int:
    def open_for(params):
        return _open(args, params.pin,
                     active_low=settings.is_active_low(params.pin))

    session = PWMSession(open_for)
    session.set_callbacks(on_error=lambda message: print(f"\n{message}"))
    variant = ClockVariant.DIVISOR if args.divisor else ClockVariant.FREQUENCY
    # SIGTERM ends the explorer the same way Ctrl-C does
    previous = signal.signal(signal.SIGTERM, signal.default_int_handler)
    try:
        Explorer(session, settings, variant=variant).run()
    finally:
        signal.signal(signal.SIGTERM, previous)
    return EXIT_OK


def run_blink(args) -> int:
    try:
        pin = _open(args, args.pin, active_low=not args.active_high)
    except GPIOAccessError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_GPIO_ERROR

    cancel = threading.Event()
    cleanup = CleanupHandler([pin], cancel)
    return _run_with_cleanup(
        cleanup, lambda: blink(pin, args.times, args.interval, cancel=cancel)
    )


def run_bargraph(args) -> int:
    pins = []
    try:
        for number in args.pins:
            pins.append(_open(args, number, active_low=not args.active_high))
    except GPIOAccessError as e:
        print(f"Error: {e}", file=sys.stderr)
        for pin in pins:
            pin.close()
        return EXIT_GPIO_ERROR

    cancel = threading.Event()
    cleanup = CleanupHandler(pins, cancel)
    graph = bargraph.BarGraph(pins)
    return _run_with_cleanup(cleanup, lambda: graph.run(cancel, max_steps=args.steps))


def run_rgb(args, settings: Settings) -> int:
    pins = []
    try:
        for number in (args.red, args.green, args.blue):
            pins.append(_open(args, number))
    except GPIOAccessError as e:
        print(f"Error: {e}", file=sys.stderr)
        for pin in pins:
            pin.close()
        return EXIT_GPIO_ERROR

    led = rgbled.RGBLed(*pins, linked_partner=settings.linked_partner,
                        clock_hz=args.clock, range_=args.range)
    for first, second in led.linked_pairs():
        print(f"Warning: {first} and {second} share a hardware PWM channel")

    cleanup = CleanupHandler(pins)
    top = args.range - 1

    def color_loop():
        led.init()
        while True:
            try:
                red = input(f"Enter red value (0 to {top}): ")
                green = input(f"Enter green value (0 to {top}): ")
                blue = input(f"Enter blue value (0 to {top}): ")
            except EOFError:
                break
            result = led.set_color(rgbled.parse_color_value(red, args.range),
                                   rgbled.parse_color_value(green, args.range),
                                   rgbled.parse_color_value(blue, args.range))
            for message in result.warnings:
                print(f"Warning: {message}")
            values = result.values
            print(f"red: {values['red']}, green: {values['green']}, blue: {values['blue']}")
            try:
                if input("Enter 'q' to quit: ").strip().lower() == 'q':
                    break
            except EOFError:
                break
        led.off()

    return _run_with_cleanup(cleanup, color_loop)


def run_dim(args) -> int:
    brightness = args.brightness
    if brightness is None:
        text = input("Enter a brightness value between 10 and 10000 (e.g., 25): ")
        try:
            brightness = int(text.strip())
        except ValueError:
            brightness = dimled.BRIGHTNESS_BAND.minimum
            print(f"Invalid brightness, using {brightness}")

    try:
        pin = _open(args, args.pin, active_low=not args.active_high)
    except GPIOAccessError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_GPIO_ERROR

    cancel = threading.Event()
    cleanup = CleanupHandler([pin], cancel)
    return _run_with_cleanup(
        cleanup,
        lambda: dimled.dim_led(pin, brightness, cancel, dim_cycles=args.cycles)
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    settings = load_settings(args.presets)
    if args.simulate:
        print("Running in SIMULATION mode")

    if args.command == 'pwm':
        return run_pwm(args, settings)
    if args.command == 'explore':
        return run_explorer(args, settings)
    if args.command == 'blink':
        return run_blink(args)
    if args.command == 'bargraph':
        return run_bargraph(args)
    if args.command == 'rgb':
        return run_rgb(args, settings)
    if args.command == 'dim':
        return run_dim(args)
    parser.error(f"unknown command {args.command}")
    return EXIT_REJECTED


if __name__ == '__main__':
    sys.exit(main())
