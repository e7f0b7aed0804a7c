"""
Preset and configuration loading.

Settings live in config/pwm_presets.json inside the package (a file of
the same name under the working directory takes precedence). When the
file is missing or unreadable the built-in defaults below are used.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Tuple

from .models import (Band, ClockVariant, DIVISOR_BAND, FREQUENCY_BAND, PWMMode,
                     PWMType, RANGE_BAND, RuleTable)

LOG = logging.getLogger(__name__)

DEFAULT_PRESETS_PATH = "config/pwm_presets.json"


@dataclass(frozen=True)
class Defaults:
    """Values substituted for absent or malformed parameter text."""
    frequency: int = 9_600_000
    divisor: int = 2
    range: int = 2_400_000
    pulse_width: int = 4
    pin: int = 18
    pwm_type: PWMType = PWMType.HARDWARE
    mode: PWMMode = PWMMode.BALANCED
    tick_us: int = 1

    def clock_for(self, variant: ClockVariant) -> int:
        if variant == ClockVariant.DIVISOR:
            return self.divisor
        return self.frequency

    @classmethod
    def from_dict(cls, data: dict) -> 'Defaults':
        data = data.copy()
        if 'pwm_type' in data:
            data['pwm_type'] = PWMType(data['pwm_type'])
        if 'mode' in data:
            data['mode'] = PWMMode(data['mode'])
        return cls(**data)


@dataclass(frozen=True)
class Bands:
    frequency: Band = FREQUENCY_BAND
    divisor: Band = DIVISOR_BAND
    range: Band = RANGE_BAND

    def clock_for(self, variant: ClockVariant) -> Band:
        if variant == ClockVariant.DIVISOR:
            return self.divisor
        return self.frequency

    @classmethod
    def from_dict(cls, data: dict) -> 'Bands':
        return cls(**{name: Band.from_dict(band) for name, band in data.items()})


@dataclass(frozen=True)
class Settings:
    """Everything read from the preset file."""
    defaults: Defaults = field(default_factory=Defaults)
    bands: Bands = field(default_factory=Bands)
    rules: RuleTable = field(default_factory=RuleTable)
    active_low_pins: FrozenSet[int] = frozenset({17})
    linked_pwm_pins: Tuple[FrozenSet[int], ...] = (frozenset({12, 18}), frozenset({13, 19}))
    presets: Dict[str, dict] = field(default_factory=dict)

    def is_active_low(self, pin: int) -> bool:
        return pin in self.active_low_pins

    def linked_partner(self, pin: int) -> Optional[int]:
        """Return the pin sharing a hardware PWM channel with `pin`, if any."""
        for group in self.linked_pwm_pins:
            if pin in group:
                others = group - {pin}
                return next(iter(others)) if others else None
        return None

    def preset(self, name: str) -> dict:
        """
        Get a named parameter preset as raw field values.

        Raises:
            KeyError: If no preset of that name exists.
        """
        data = dict(self.presets[name])
        data.pop('name', None)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Settings':
        default = cls()
        return cls(
            defaults=Defaults.from_dict(data['defaults']) if 'defaults' in data else default.defaults,
            bands=Bands.from_dict(data['bands']) if 'bands' in data else default.bands,
            rules=RuleTable.from_dict(data['rules']) if 'rules' in data else default.rules,
            active_low_pins=frozenset(data.get('active_low_pins', default.active_low_pins)),
            linked_pwm_pins=tuple(
                frozenset(group) for group in data.get('linked_pwm_pins', default.linked_pwm_pins)
            ),
            presets=data.get('presets', {})
        )


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load settings from a JSON preset file.

    Args:
        path: Preset file path. Relative paths are tried against the
              working directory first, then the package directory.

    Returns:
        Settings from the file, or built-in defaults if it can't be read
    """
    preset_path = Path(path or DEFAULT_PRESETS_PATH)
    if not preset_path.is_absolute() and not preset_path.exists():
        # Try relative to the package directory
        preset_path = Path(__file__).parent.parent / preset_path

    if not preset_path.exists():
        if path is not None:
            LOG.warning("Preset file %s not found, using built-in defaults", path)
        else:
            LOG.info("No preset file at %s, using built-in defaults", preset_path)
        return Settings()

    try:
        with open(preset_path) as f:
            return Settings.from_dict(json.load(f))
    except (OSError, ValueError, KeyError, TypeError) as e:
        LOG.warning("Failed to load presets from %s: %s", preset_path, e)
        return Settings()
