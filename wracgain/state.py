"""Plugin state shared between the audio processor, the GUI and the host."""

from __future__ import annotations

import threading

from wracgain.parameters import DEFAULT_GAIN, PARAM_BYPASS_ID, PARAM_GAIN_ID, clamp_gain


class SharedState:
    """The single source of truth for parameter values, safe to use from any thread."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._gain = DEFAULT_GAIN
        self._bypass = False

    def gain(self) -> float:
        """The current linear gain."""
        with self._lock:
            return self._gain

    def bypass(self) -> bool:
        with self._lock:
            return self._bypass

    def parameter_value(self, parameter_id: int) -> float | None:
        """The plain value of a parameter, or None for an unknown id."""
        if parameter_id == PARAM_GAIN_ID:
            return self.gain()
        if parameter_id == PARAM_BYPASS_ID:
            return 1.0 if self.bypass() else 0.0
        return None

    def set_parameter_value(self, parameter_id: int, value: float) -> float | None:
        """Store a normalised value and return what was stored, or None for an unknown id."""
        if parameter_id == PARAM_GAIN_ID:
            # Automation and the UI may send out-of-range values; always clamp.
            gain = clamp_gain(value)
            with self._lock:
                self._gain = gain
            return gain
        if parameter_id == PARAM_BYPASS_ID:
            bypass = value >= 0.5
            with self._lock:
                self._bypass = bypass
            return 1.0 if bypass else 0.0
        return None