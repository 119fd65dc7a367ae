"""Parameter ids, ranges, and conversions between plain, host and text values."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, field

PARAM_GAIN_ID = 1
PARAM_BYPASS_ID = 9

# Linear amplitude: 1.0 is unity (0 dB), 0.0 is silence, 2.0 is about +6 dB.
DEFAULT_GAIN = 1.0
MIN_GAIN = 0.0
MAX_GAIN = 2.0

_BYPASS_ON_WORDS = ("on", "1", "true")
_BYPASS_OFF_WORDS = ("off", "0", "false")


class InvalidParameterError(ValueError):
    """An unknown parameter id, or text that does not parse as its value."""


@dataclass(frozen=True)
class ParameterFlags:
    is_automatable: bool = False
    is_stepped: bool = False
    is_enum: bool = False
    is_bypass: bool = False


@dataclass(frozen=True)
class ParameterInfo:
    """The schema of one parameter as published to the host."""

    id: int
    name: str
    module: str
    min_value: float
    max_value: float
    default_value: float
    flags: ParameterFlags = field(default_factory=ParameterFlags)


def _to_f32(value: float) -> float:
    """Round to the nearest single-precision value, saturating to infinity."""
    if math.isnan(value) or math.isinf(value):
        return value
    try:
        return struct.unpack("<f", struct.pack("<f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _clamp(value: float, low: float, high: float) -> float:
    if math.isnan(value):
        return value
    return max(low, min(high, value))


def clamp_gain(gain: float) -> float:
    """Bring a gain into the valid range; every outside value goes through this."""
    return _clamp(_to_f32(gain), MIN_GAIN, MAX_GAIN)


def gain_to_host_value(gain: float) -> float:
    """Map a linear gain onto the host's normalised 0..1 range."""
    span = MAX_GAIN - MIN_GAIN
    if span <= 0.0:
        return 0.0
    return _to_f32((clamp_gain(gain) - MIN_GAIN) / span)


def host_value_to_gain(value: float) -> float:
    """Map a normalised host value back onto a linear gain."""
    normalised = _to_f32(_clamp(value, 0.0, 1.0))
    return _to_f32(MIN_GAIN + normalised * (MAX_GAIN - MIN_GAIN))


def gain_db_text(gain: float) -> str:
    """Render a linear gain in decibels; zero or below is "-inf dB"."""
    if gain <= 0.0:
        return "-inf dB"
    return f"{20.0 * math.log10(gain):.1f} dB"


def _parse_bypass(text: str) -> float:
    word = text.strip().lower()
    if word in _BYPASS_ON_WORDS:
        return 1.0
    if word in _BYPASS_OFF_WORDS:
        return 0.0
    raise InvalidParameterError(f"invalid bypass text: {text!r}")


def _unknown(parameter_id: int) -> InvalidParameterError:
    return InvalidParameterError(f"invalid parameter id: {parameter_id}")


def parameter_value_text(parameter_id: int, value: float) -> str:
    """The display text for a plain parameter value."""
    if parameter_id == PARAM_GAIN_ID:
        return gain_db_text(clamp_gain(value))
    if parameter_id == PARAM_BYPASS_ID:
        return "On" if value >= 0.5 else "Off"
    raise _unknown(parameter_id)


def parameter_default_value(parameter_id: int) -> float:
    """The plain default value of a parameter."""
    if parameter_id == PARAM_GAIN_ID:
        return DEFAULT_GAIN
    if parameter_id == PARAM_BYPASS_ID:
        return 0.0
    raise _unknown(parameter_id)


def parameter_text_value(parameter_id: int, text: str) -> float:
    """Parse display text back into a plain parameter value."""
    if parameter_id == PARAM_GAIN_ID:
        stripped = text.strip()
        if stripped.endswith("dB"):
            stripped = stripped[: -len("dB")]
        stripped = stripped.strip()
        if "_" in stripped:
            raise InvalidParameterError(f"invalid gain text: {text!r}")
        try:
            db = float(stripped)
        except ValueError as error:
            raise InvalidParameterError(f"invalid gain text: {text!r}") from error
        try:
            linear = 10.0 ** (db / 20.0)
        except OverflowError:
            linear = math.inf
        return clamp_gain(linear)
    if parameter_id == PARAM_BYPASS_ID:
        return _parse_bypass(text)
    raise _unknown(parameter_id)


def parameter_host_value(parameter_id: int, value: float) -> float:
    """The value reported to the host for a plain parameter value."""
    if parameter_id == PARAM_GAIN_ID:
        return gain_to_host_value(value)
    if parameter_id == PARAM_BYPASS_ID:
        return 1.0 if value >= 0.5 else 0.0
    raise _unknown(parameter_id)


def gain_parameter_info() -> ParameterInfo:
    return ParameterInfo(
        id=PARAM_GAIN_ID,
        name="Gain",
        module="",
        min_value=0.0,
        max_value=1.0,
        default_value=gain_to_host_value(DEFAULT_GAIN),
        flags=ParameterFlags(is_automatable=True),
    )


def bypass_parameter_info() -> ParameterInfo:
    # Some hosts only show a generic editor when a bypass parameter exists.
    return ParameterInfo(
        id=PARAM_BYPASS_ID,
        name="Bypass",
        module="",
        min_value=0.0,
        max_value=1.0,
        default_value=0.0,
        flags=ParameterFlags(
            is_automatable=True,
            is_stepped=True,
            is_enum=True,
            is_bypass=True,
        ),
    )