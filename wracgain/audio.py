"""The real-time gain processor that runs once per host audio block."""

from __future__ import annotations

import array
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, MutableSequence

from wracgain.parameters import PARAM_BYPASS_ID, PARAM_GAIN_ID, host_value_to_gain
from wracgain.state import SharedState


class ProcessStatus(Enum):
    """What the processor asks the host to do after a block."""

    CONTINUE = "continue"
    CONTINUE_IF_NOT_QUIET = "continue_if_not_quiet"
    TAIL = "tail"
    SLEEP = "sleep"


@dataclass(frozen=True)
class ParamValueEvent:
    """A parameter change at sample offset `time` within the block.

    `value` is the host's normalised value.
    """

    time: int
    parameter_id: int
    value: float


@dataclass(frozen=True)
class NoteEvent:
    """A note event; the gain processor ignores it apart from its timing."""

    time: int
    key: int = 60
    velocity: float = 1.0


def _scaled(segment: MutableSequence[float], gain: float) -> MutableSequence[float]:
    if isinstance(segment, array.array):
        return array.array(segment.typecode, (sample * gain for sample in segment))
    return [sample * gain for sample in segment]


def process_audio_range(
    channels: Iterable[MutableSequence[float]], start: int, end: int, gain: float
) -> None:
    """Multiply samples `[start, end)` of every channel by `gain`, in place."""
    stop = start + max(end - start, 0)
    for channel in channels:
        channel[start:stop] = _scaled(channel[start:stop], gain)


class GainAudioProcessor:
    """Applies the shared gain to audio, with sample-accurate parameter automation."""

    def __init__(self, shared: SharedState) -> None:
        self.shared = shared

    def process(
        self,
        channels: list[MutableSequence[float]],
        frames_count: int,
        events: Iterable[object] = (),
    ) -> ProcessStatus:
        """Process one block in place.

        The block is split at every event's time; each segment uses the gain
        and bypass in force at its start. Event times past the block are clamped.
        """
        gain = self.shared.gain()
        bypass = self.shared.bypass()
        segment_start = 0
        frames_count = int(frames_count)

        for event in events:
            event_time = min(max(int(event.time), 0), frames_count)
            if event_time > segment_start:
                process_audio_range(channels, segment_start, event_time, 1.0 if bypass else gain)
                segment_start = event_time

            if isinstance(event, ParamValueEvent):
                if event.parameter_id == PARAM_GAIN_ID:
                    applied = self.shared.set_parameter_value(
                        event.parameter_id, host_value_to_gain(event.value)
                    )
                    gain = gain if applied is None else applied
                elif event.parameter_id == PARAM_BYPASS_ID:
                    applied = self.shared.set_parameter_value(event.parameter_id, event.value)
                    bypass = bypass if applied is None else applied >= 0.5

        if segment_start < frames_count:
            process_audio_range(channels, segment_start, frames_count, 1.0 if bypass else gain)

        return ProcessStatus.CONTINUE_IF_NOT_QUIET