"""The host-facing plugin core: audio ports, parameters and saved state."""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from wracgain.audio import GainAudioProcessor
from wracgain.parameters import (
    PARAM_BYPASS_ID,
    PARAM_GAIN_ID,
    InvalidParameterError,
    ParameterInfo,
    _to_f32,
    bypass_parameter_info,
    gain_parameter_info,
    gain_to_host_value,
    host_value_to_gain,
    parameter_text_value,
    parameter_value_text,
)
from wracgain.state import SharedState

log = logging.getLogger(__name__)


class AudioPortType(Enum):
    MONO = "mono"
    STEREO = "stereo"
    UNSPECIFIED = "unspecified"


@dataclass(frozen=True)
class AudioPortConfigurationRequest:
    """A host's proposal for the channel layout of one port."""

    is_input: bool
    port_index: int
    channel_count: int
    port_type: AudioPortType


@dataclass(frozen=True)
class AudioPortInfo:
    id: int
    name: str
    is_main: bool
    channel_count: int
    port_type: AudioPortType
    in_place_pair: int | None = None


class InvalidStateError(Exception):
    """A request the plugin cannot accept in its current state, or corrupt saved state."""


@dataclass(frozen=True)
class SavedPluginState:
    """What is stored in a host project."""

    gain: float
    bypass: bool = False


def _f32_text(value: float) -> str:
    if math.isnan(value) or math.isinf(value):
        return "null"
    text = repr(value)
    for digits in range(1, 10):
        candidate = f"{value:.{digits}g}"
        if _to_f32(float(candidate)) == value:
            text = candidate
            break
    if not any(marker in text for marker in ".e"):
        text += ".0"
    return text


def _encode_state(state: SavedPluginState) -> bytes:
    bypass = "true" if state.bypass else "false"
    return f'{{"gain":{_f32_text(state.gain)},"bypass":{bypass}}}'.encode()


def _decode_state(data: bytes) -> SavedPluginState:
    try:
        document = json.loads(bytes(data))
    except (ValueError, TypeError) as error:
        raise InvalidStateError("saved state is not valid JSON") from error
    if not isinstance(document, dict):
        raise InvalidStateError("saved state is not a JSON object")
    gain = document.get("gain")
    if isinstance(gain, bool) or not isinstance(gain, (int, float)):
        raise InvalidStateError("saved state has no numeric gain")
    bypass = document.get("bypass", False)
    if not isinstance(bypass, bool):
        raise InvalidStateError("saved bypass is not a boolean")
    return SavedPluginState(gain=_to_f32(float(gain)), bypass=bypass)


def audio_port_type(channel_count: int) -> AudioPortType:
    if channel_count == 1:
        return AudioPortType.MONO
    if channel_count == 2:
        return AudioPortType.STEREO
    return AudioPortType.UNSPECIFIED


def is_supported_audio_port_request(request: AudioPortConfigurationRequest) -> bool:
    allowed = {
        1: (AudioPortType.MONO, AudioPortType.UNSPECIFIED),
        2: (AudioPortType.STEREO, AudioPortType.UNSPECIFIED),
    }
    return request.port_type in allowed.get(request.channel_count, ())


def resolve_audio_channel_count(
    current_channel_count: int, requests: Iterable[AudioPortConfigurationRequest]
) -> int | None:
    """The new channel count if the requests describe a symmetric main-port layout."""
    input_count = current_channel_count
    output_count = current_channel_count
    for request in requests:
        if request.port_index != 0 or not is_supported_audio_port_request(request):
            return None
        if request.is_input:
            input_count = request.channel_count
        else:
            output_count = request.channel_count
    return input_count if input_count == output_count else None


class GainPlugin:
    """One plugin instance as seen by the host.

    `parameter_listener`, if given, is told `(parameter_id, value)` when a
    restored state changes a parameter, so an open GUI can follow it.
    """

    def __init__(
        self, parameter_listener: Callable[[int, float], None] | None = None
    ) -> None:
        self.shared = SharedState()
        self.audio_channel_count = 2
        self._parameter_listener = parameter_listener

    def activate(
        self, sample_rate: float, min_frames_count: int, max_frames_count: int
    ) -> GainAudioProcessor:
        log.debug(
            "activating audio processor: sample_rate=%s, min_frames_count=%s, "
            "max_frames_count=%s, audio_channel_count=%s",
            sample_rate,
            min_frames_count,
            max_frames_count,
            self.audio_channel_count,
        )
        return GainAudioProcessor(self.shared)

    def audio_port_count(self, is_input: bool) -> int:
        return 1

    def audio_port_info(self, index: int, is_input: bool) -> AudioPortInfo | None:
        if index != 0:
            return None
        count = self.audio_channel_count
        return AudioPortInfo(
            id=1 if is_input else 2,
            name="Main In" if is_input else "Main Out",
            is_main=True,
            channel_count=count,
            port_type=audio_port_type(count),
        )

    def can_apply_audio_port_configuration(
        self, requests: Iterable[AudioPortConfigurationRequest]
    ) -> bool:
        return resolve_audio_channel_count(self.audio_channel_count, requests) is not None

    def apply_audio_port_configuration(
        self, requests: Iterable[AudioPortConfigurationRequest]
    ) -> None:
        requests = list(requests)
        channel_count = resolve_audio_channel_count(self.audio_channel_count, requests)
        if channel_count is None:
            log.warning(
                "rejecting unsupported audio port configuration: request_count=%s, "
                "current_channel_count=%s",
                len(requests),
                self.audio_channel_count,
            )
            raise InvalidStateError("unsupported audio port configuration")
        log.debug(
            "applying audio port configuration: previous_channel_count=%s, channel_count=%s",
            self.audio_channel_count,
            channel_count,
        )
        self.audio_channel_count = channel_count

    def parameter_count(self) -> int:
        return 2

    def parameter_info(self, index: int) -> ParameterInfo | None:
        if index == 0:
            return gain_parameter_info()
        if index == 1:
            return bypass_parameter_info()
        return None

    def parameter_value(self, parameter_id: int) -> float:
        """The host-normalised value of a parameter."""
        value = self.shared.parameter_value(parameter_id)
        if value is None:
            raise InvalidParameterError(f"invalid parameter id: {parameter_id}")
        if parameter_id == PARAM_GAIN_ID:
            return gain_to_host_value(value)
        return float(value)

    def apply_parameter_value(self, parameter_id: int, value: float) -> float:
        """Store a host value and return the host value actually applied."""
        if parameter_id == PARAM_BYPASS_ID:
            return float(self.shared.set_parameter_value(parameter_id, value))
        applied = self.shared.set_parameter_value(parameter_id, host_value_to_gain(value))
        if applied is None:
            raise InvalidParameterError(f"invalid parameter id: {parameter_id}")
        return gain_to_host_value(applied)

    def parameter_value_to_text(self, parameter_id: int, value: float) -> str:
        if parameter_id == PARAM_GAIN_ID:
            return parameter_value_text(parameter_id, host_value_to_gain(value))
        if parameter_id == PARAM_BYPASS_ID:
            return "On" if value >= 0.5 else "Off"
        raise InvalidParameterError(f"invalid parameter id: {parameter_id}")

    def parameter_text_to_value(self, parameter_id: int, text: str) -> float:
        if parameter_id == PARAM_GAIN_ID:
            return gain_to_host_value(parameter_text_value(parameter_id, text))
        if parameter_id == PARAM_BYPASS_ID:
            return parameter_text_value(parameter_id, text)
        raise InvalidParameterError(f"invalid parameter id: {parameter_id}")

    def save_state(self) -> bytes:
        """Serialise the current parameters as compact JSON."""
        state = SavedPluginState(gain=self.shared.gain(), bypass=self.shared.bypass())
        log.debug("saving plugin state: gain=%s, bypass=%s", state.gain, state.bypass)
        return _encode_state(state)

    def restore_state(self, data: bytes) -> None:
        """Load parameters from bytes produced by `save_state`."""
        log.debug("restoring plugin state: byte_count=%s", len(data))
        state = _decode_state(data)
        gain = self.shared.set_parameter_value(PARAM_GAIN_ID, state.gain)
        self.shared.set_parameter_value(PARAM_BYPASS_ID, 1.0 if state.bypass else 0.0)
        if self._parameter_listener is not None:
            self._parameter_listener(PARAM_GAIN_ID, gain)