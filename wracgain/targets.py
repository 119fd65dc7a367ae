"""Build, install and validation targets and the platforms that support them."""

from __future__ import annotations

import sys
from enum import Enum
from typing import Iterable, TypeVar

from wracgain.util import TaskError

_CRATE_NAME = "wrac_gain_plugin"


class Target(Enum):
    """Anything the build command can produce."""

    CLAP = "clap"
    VST3 = "vst3"
    AU = "au"
    STANDALONE = "standalone"

    def display(self) -> str:
        return _TARGET_DISPLAY[self]

    def is_wrapper(self) -> bool:
        """True for formats produced by the CLAP wrapper."""
        return self in (Target.VST3, Target.AU)

    def plugin_target(self) -> PluginTarget | None:
        """The installable plugin format, or None for the standalone app."""
        return _TARGET_TO_PLUGIN.get(self)


class PluginTarget(Enum):
    """Plugin formats that can be installed into a host's plugin folder."""

    CLAP = "clap"
    VST3 = "vst3"
    AU = "au"

    def display(self) -> str:
        return self.target().display()

    def target(self) -> Target:
        return Target(self.value)


class ValidateTarget(Enum):
    """Plugin formats that have an external validator."""

    VST3 = "vst3"
    AU = "au"

    def display(self) -> str:
        return self.target().display()

    def target(self) -> Target:
        return Target(self.value)


class InstallScope(Enum):
    """Whether plugins go to the user's or the system-wide plugin folders."""

    USER = "user"
    SYSTEM = "system"


class Platform(Enum):
    """Operating systems the build tasks know about."""

    MACOS = "macos"
    WINDOWS = "windows"
    LINUX = "linux"

    @classmethod
    def detect(cls) -> Platform:
        """Return the platform this interpreter is running on."""
        if sys.platform == "darwin":
            return cls.MACOS
        if sys.platform in ("win32", "cygwin"):
            return cls.WINDOWS
        if sys.platform.startswith("linux"):
            return cls.LINUX
        raise TaskError("unsupported operating system")

    def supports_wrappers(self) -> bool:
        # Linux ships CLAP only; this is the surface the template guarantees.
        return self in (Platform.MACOS, Platform.WINDOWS)

    def supports_au(self) -> bool:
        return self is Platform.MACOS

    def supports_target(self, target: Target) -> bool:
        if target is Target.CLAP:
            return True
        if target is Target.VST3:
            return self.supports_wrappers()
        if target is Target.AU:
            return self.supports_au()
        return self in (Platform.MACOS, Platform.WINDOWS)

    def default_build_targets(self) -> list[Target]:
        if self is Platform.MACOS:
            return [Target.CLAP, Target.VST3, Target.AU, Target.STANDALONE]
        if self is Platform.WINDOWS:
            return [Target.CLAP, Target.VST3, Target.STANDALONE]
        return [Target.CLAP]

    def default_plugin_targets(self) -> list[PluginTarget]:
        if self is Platform.MACOS:
            return [PluginTarget.CLAP, PluginTarget.VST3, PluginTarget.AU]
        if self is Platform.WINDOWS:
            return [PluginTarget.CLAP, PluginTarget.VST3]
        return [PluginTarget.CLAP]

    def default_validate_targets(self) -> list[ValidateTarget]:
        # CLAP has no external validator, so only VST3/AU are validated.
        if self is Platform.MACOS:
            return [ValidateTarget.VST3, ValidateTarget.AU]
        if self is Platform.WINDOWS:
            return [ValidateTarget.VST3]
        return []

    def cmake_generator(self) -> str | None:
        if self is Platform.MACOS:
            return "Xcode"
        if self is Platform.WINDOWS:
            return "Visual Studio 17 2022"
        return None

    def dynamic_library_name(self) -> str:
        if self is Platform.MACOS:
            return f"lib{_CRATE_NAME}.dylib"
        if self is Platform.WINDOWS:
            return f"{_CRATE_NAME}.dll"
        return f"lib{_CRATE_NAME}.so"

    def static_library_name(self) -> str:
        if self is Platform.WINDOWS:
            return f"{_CRATE_NAME}.lib"
        return f"lib{_CRATE_NAME}.a"


_TARGET_DISPLAY = {
    Target.CLAP: "CLAP",
    Target.VST3: "VST3",
    Target.AU: "AU",
    Target.STANDALONE: "Standalone",
}

_TARGET_TO_PLUGIN = {
    Target.CLAP: PluginTarget.CLAP,
    Target.VST3: PluginTarget.VST3,
    Target.AU: PluginTarget.AU,
}

_T = TypeVar("_T")


def _dedup(targets: Iterable[_T]) -> list[_T]:
    # Duplicates such as `--target=vst3,vst3` are tolerated; first occurrence wins.
    return list(dict.fromkeys(targets))


def _check_supported(platform: Platform, targets: list, as_target) -> None:
    for target in targets:
        if not platform.supports_target(as_target(target)):
            raise TaskError(f"{target.display()} is not supported on this operating system")


def resolve_build_targets(platform: Platform, requested: Iterable[Target]) -> list[Target]:
    """Return the requested build targets, or the platform defaults if none."""
    targets = list(requested) or platform.default_build_targets()
    _check_supported(platform, targets, lambda target: target)
    return _dedup(targets)


def resolve_plugin_targets(
    platform: Platform, requested: Iterable[PluginTarget]
) -> list[PluginTarget]:
    """Return the requested plugin formats, or the platform defaults if none."""
    targets = list(requested) or platform.default_plugin_targets()
    _check_supported(platform, targets, PluginTarget.target)
    return _dedup(targets)


def resolve_validate_targets(
    platform: Platform, requested: Iterable[ValidateTarget]
) -> list[ValidateTarget]:
    """Return the requested validation targets, or the platform defaults if none."""
    targets = list(requested) or platform.default_validate_targets()
    _check_supported(platform, targets, ValidateTarget.target)
    return _dedup(targets)