"""
smartfit Configuration

This file defines the fit modes, their threshold table, and the FitConfig snapshot that callers
hand to the fit engine on every call. The engine only ever reads a FitConfig; editing and persisting
preferences belongs to whatever application embeds smartfit.

A FitConfig can be loaded from a flat "config.json". The default location is
~/.config/smartfit/config.json, which can be overridden with the SMARTFIT_CONFIG_DIR environment
variable. A missing file is not an error (defaults apply) but an unreadable or malformed one raises
a SmartFitConfigError.
"""

import json
import os
from dataclasses import dataclass
from dataclasses import asdict
from dataclasses import fields
from enum import Enum
from pathlib import Path


class SmartFitConfigError(Exception):
    """Raise when an issue occurs with handling smartfit configuration."""

    pass


class FitMode(Enum):
    """
    Named threshold policy. NORMAL favours quality (never upscales, tight aspect limits),
    AGGRESSIVE favours flexibility (accepts upscaling and much larger aspect mismatches).
    """

    NORMAL = "normal"
    AGGRESSIVE = "aggressive"

    @classmethod
    def parse(cls, value) -> "FitMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise SmartFitConfigError(
                f"Unknown fit mode {value!r}, expected one of: {', '.join(m.value for m in cls)}"
            )


@dataclass(frozen=True)
class ModeThresholds:
    """
    aspect_tolerance: largest aspect difference that is fixed by scaling alone.
    crop_limit: largest aspect difference that is fixed by cropping. Anything above is rejected.
    allow_upscale: whether sources smaller than the target are accepted.
    """

    aspect_tolerance: float
    crop_limit: float
    allow_upscale: bool


BASE_ASPECT_THRESHOLD = 0.9
AGGRESSIVE_MULTIPLIER = 2.5

MODE_THRESHOLDS = {
    FitMode.NORMAL: ModeThresholds(
        aspect_tolerance=0.01,
        crop_limit=BASE_ASPECT_THRESHOLD,
        allow_upscale=False,
    ),
    FitMode.AGGRESSIVE: ModeThresholds(
        aspect_tolerance=0.05,
        crop_limit=BASE_ASPECT_THRESHOLD * AGGRESSIVE_MULTIPLIER,
        allow_upscale=True,
    ),
}


@dataclass(frozen=True)
class FitConfig:
    """
    Read-only snapshot of the smart fit preferences for a single fit call.

    The pattern is the same as for any flat JSON config: instantiate a FitConfig by supplying
    keyword arguments from a deserialized json object, so engine code only ever touches attributes
    and never brittle dictionary keys.
    """

    smart_fit_enabled: bool = True
    fit_mode: FitMode = FitMode.AGGRESSIVE
    face_crop_enabled: bool = True
    face_boost_enabled: bool = False
    face_boost_strength: int = 1
    min_face_size_pct: float = 1.0
    min_confidence: float = 5.0
    vertical_shift_bias: float = 0.1

    def __post_init__(self):
        """
        JSON cannot carry an Enum, so accept the mode as a string and normalise it here. The
        dataclass is frozen, hence object.__setattr__.
        """

        object.__setattr__(self, "fit_mode", FitMode.parse(self.fit_mode))

        if self.face_boost_strength < 0:
            raise SmartFitConfigError("face_boost_strength must not be negative.")
        if not 0 <= self.min_face_size_pct <= 100:
            raise SmartFitConfigError("min_face_size_pct must be between 0 and 100.")

    @property
    def thresholds(self) -> ModeThresholds:
        return MODE_THRESHOLDS[self.fit_mode]

    @classmethod
    def from_dict(cls, values: dict) -> "FitConfig":
        known = {field.name for field in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise SmartFitConfigError(
                f"Unknown configuration keys: {', '.join(sorted(unknown))}"
            )

        try:
            return cls(**values)
        except TypeError as error:
            raise SmartFitConfigError(f"Invalid configuration values: {error}")

    def to_dict(self) -> dict:
        values = asdict(self)
        values["fit_mode"] = self.fit_mode.value
        return values


def config_path() -> Path:
    """Location of config.json, honouring SMARTFIT_CONFIG_DIR."""

    try:
        return Path(os.environ["SMARTFIT_CONFIG_DIR"]).expanduser() / "config.json"
    except KeyError:
        return Path("~/.config/smartfit/config.json").expanduser()


def load_config(path: Path = None) -> FitConfig:
    """
    Load a FitConfig from path (default: config_path()). Missing files yield the defaults.
    Raise SmartFitConfigError if the file exists but can't be read or parsed.
    """

    config_src = Path(path) if path is not None else config_path()

    try:
        with config_src.open("r") as file:
            from_json = json.loads(file.read())

    except FileNotFoundError:
        return FitConfig()

    except json.JSONDecodeError as error:
        raise SmartFitConfigError(f"There was an issue reading the config: {error}")

    except OSError as error:
        raise SmartFitConfigError(f"There was an issue opening the config: {error}")

    if not isinstance(from_json, dict):
        raise SmartFitConfigError("The config file must contain a flat JSON object.")

    return FitConfig.from_dict(from_json)
