"""Gain effect core (parameters, state, audio processing, plugin core) and build,
install and validation tasks for its plugin artifacts."""

__version__ = "0.1.0"