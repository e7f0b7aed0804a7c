"""
Interactive PWM explorer.

A command prompt for trying PWM settings and seeing how they interact.
Runs are executed in-process by a PWMSession.

Enter: set <field> <value>  (e.g., 'set pulse-width 600000')
Enter: start / stop / show / reset / help [topic] / quit
"""

from typing import Callable, Dict, Optional

from .data.models import ClockVariant, PWMMode
from .data.presets import Settings
from .drivers.session import PWMSession
from .drivers.validator import parse_mode, parse_type, validate_parameters
from .errors import GPIOAccessError, ParameterRejected

FIELDS = ("pin", "clock", "range", "pulse-width", "mode", "type", "tick")

HELP_TOPICS = {
    "general": """\
Explore PWM settings and how they interact:
  pin          GPIO (BCM) pin to drive
  clock        PWM clock frequency in Hz (or divisor, see 'help clock')
  mode         balanced or mark-space waveform
  range        length of one PWM cycle in clock ticks
  pulse-width  ticks of each cycle the pin is on
  type         hardware or software PWM
  tick         software PWM tick length in microseconds""",
    "pin": """\
Hardware PWM needs one of the PWM pins: 12, 13, 18 or 19. 12/18 and
13/19 share a channel, so two pins of a pair always output the same
waveform. Software PWM can use any output pin.""",
    "clock": """\
The PWM clock frequency must be between 4688 and 9,600,000 Hz; values
outside that band are clamped. In divisor mode the clock is
19,200,000 / divisor with a divisor between 2 and 4095, e.g.
19,200,000 / 192 = 100 kHz.
The frequency seen at the pin is clock / range.""",
    "mode": """\
Balanced mode spreads the on-pulses evenly across the cycle. Mark-space
mode produces one contiguous pulse per cycle. Software PWM toggles the
pin once per cycle and does not offer mark-space mode.""",
    "range": """\
Range is the cycle length, 4 to 38,400,000 ticks. With a clock of
9,600,000 Hz, a range of 2,400,000 gives 4 cycles per second and a
range of 2000 gives 4800 Hz, which looks steady to the eye.""",
    "pulse-width": """\
Pulse width is how many ticks of each cycle the pin is on, 0 to range.
The duty cycle is pulse width / range: 600,000 / 2,400,000 = 25%.""",
    "type": """\
Hardware PWM is generated by the PWM peripheral and keeps running with
no CPU involvement. Software PWM toggles the pin from a loop and
flickers when the scheduler is busy.""",
}


class Explorer:
    """Read-eval loop around a PWMSession."""

    def __init__(self, session: PWMSession, settings: Optional[Settings] = None,
                 variant: ClockVariant = ClockVariant.FREQUENCY,
                 input_fn: Optional[Callable[[str], str]] = None):
        self.session = session
        self.settings = settings or Settings()
        self.variant = variant
        self._input = input_fn or input
        self.fields: Dict[str, Optional[str]] = {}
        self.reset_fields()

    def reset_fields(self):
        self.fields = {name: None for name in FIELDS}

    def _prompt(self) -> str:
        return "running> " if self.session.running else "PWM> "

    def run(self):
        """Read commands until quit or end of input."""
        print("=== PWM Explorer ===")
        print("Enter 'help' for a list of settings, 'quit' to exit")
        try:
            while True:
                try:
                    line = self._input(self._prompt())
                except EOFError:
                    break
                if not self.handle(line):
                    break
        except KeyboardInterrupt:
            print("\nExiting...")
        finally:
            if self.session.stop():
                print("Test stopped")

    def handle(self, line: str) -> bool:
        """
        Execute one command line.

        Returns:
            False when the explorer should exit
        """
        parts = line.strip().split()
        if not parts:
            return True

        cmd, args = parts[0].lower(), parts[1:]

        if cmd in ("q", "quit", "exit"):
            return False
        if cmd == "set":
            self._set(args)
        elif cmd == "show":
            self._show()
        elif cmd == "start":
            self._start()
        elif cmd == "stop":
            if self.session.stop():
                print("Test stopped")
            else:
                print("No tests running")
        elif cmd == "reset":
            if self.session.stop():
                print("Test stopped")
            self.reset_fields()
            print("Settings reset to defaults")
        elif cmd == "help":
            self._help(args[0].lower() if args else "general")
        else:
            print(f"Unknown command '{cmd}'. Enter 'help' for usage")
        return True

    def _set(self, args):
        if len(args) < 2:
            print("Usage: set <field> <value>")
            return
        name, value = args[0].lower(), " ".join(args[1:])
        if name not in self.fields:
            print(f"Unknown field '{name}'. Fields: {', '.join(FIELDS)}")
            return

        # Catch incompatible type/mode pairs as soon as they're entered
        if name in ("mode", "type"):
            defaults = self.settings.defaults
            try:
                mode = parse_mode(value if name == "mode" else self.fields["mode"], defaults.mode)
                pwm_type = parse_type(value if name == "type" else self.fields["type"],
                                      defaults.pwm_type)
            except ParameterRejected as e:
                print(f"Warning: {e.reason}")
                return
            if not self.settings.rules.is_compatible(pwm_type, mode):
                print(f"Warning: PWM mode '{mode.value}' is not available with "
                      f"{pwm_type.value} PWM, keeping {name} unchanged")
                return

        self.fields[name] = value
        if self.session.running:
            print("Settings take effect at the next start")

    def _validate(self):
        return validate_parameters(
            clock=self.fields["clock"],
            range_=self.fields["range"],
            pulse_width=self.fields["pulse-width"],
            pin=self.fields["pin"],
            mode=self.fields["mode"],
            pwm_type=self.fields["type"],
            variant=self.variant,
            tick_us=self.fields["tick"],
            rules=self.settings.rules,
            defaults=self.settings.defaults,
            bands=self.settings.bands
        )

    def _show(self):
        for name in FIELDS:
            value = self.fields[name]
            print(f"  {name:12} {value if value is not None else '(default)'}")
        try:
            print(f"Using: {self._validate().params.describe()}")
        except ParameterRejected as e:
            print(f"Warning: {e.reason}")
        print(f"Status: {'running' if self.session.running else 'stopped'}")

    def _start(self):
        if self.session.running:
            print("There is a running test. Stop that test and try again")
            return
        try:
            result = self._validate()
        except ParameterRejected as e:
            print(f"Warning: {e.reason}")
            return

        for message in result.warnings:
            print(f"Warning: {message}")

        try:
            started = self.session.start(result.params)
        except GPIOAccessError as e:
            print(f"Error starting test: {e}")
            return
        if not started:
            print("There is a running test. Stop that test and try again")
            return
        print(f"Started: {result.params.describe()}")

    def _help(self, topic: str):
        text = HELP_TOPICS.get(topic)
        if text is None:
            print(f"No help for '{topic}'. Topics: {', '.join(HELP_TOPICS)}")
            return
        print(text)
        if topic == "mode" and self.fields["type"] is not None:
            try:
                pwm_type = parse_type(self.fields["type"], self.settings.defaults.pwm_type)
            except ParameterRejected:
                return
            unavailable = [m.value for m in PWMMode
                           if not self.settings.rules.is_compatible(pwm_type, m)]
            if unavailable:
                print(f"Not available with {pwm_type.value} PWM: {', '.join(unavailable)}")
