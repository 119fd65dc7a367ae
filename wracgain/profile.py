"""Debug and release build profiles."""

from __future__ import annotations

from enum import Enum


class BuildProfile(Enum):
    """A cargo/CMake build profile."""

    DEBUG = "debug"
    RELEASE = "release"

    @classmethod
    def from_release(cls, release: bool) -> BuildProfile:
        return cls.RELEASE if release else cls.DEBUG

    def cargo_flag(self) -> str | None:
        """The extra cargo flag for this profile, if any."""
        return "--release" if self is BuildProfile.RELEASE else None

    def cargo_dir(self) -> str:
        """The directory name cargo uses under its target directory."""
        return self.value

    def artifact_dir(self) -> str:
        return self.cargo_dir()

    def cmake_config(self) -> str:
        return "Release" if self is BuildProfile.RELEASE else "Debug"

    def cmake_suffix(self) -> str:
        return self.cargo_dir()