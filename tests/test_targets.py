import sys

import pytest

from wracgain.targets import (
    InstallScope,
    Platform,
    PluginTarget,
    Target,
    ValidateTarget,
    resolve_build_targets,
    resolve_plugin_targets,
    resolve_validate_targets,
)
from wracgain.util import TaskError


def test_target_display_names():
    assert Target.CLAP.display() == "CLAP"
    assert Target.VST3.display() == "VST3"
    assert Target.AU.display() == "AU"
    assert Target.STANDALONE.display() == "Standalone"


def test_is_wrapper_only_vst3_and_au():
    assert Target.VST3.is_wrapper() is True
    assert Target.AU.is_wrapper() is True
    assert Target.CLAP.is_wrapper() is False
    assert Target.STANDALONE.is_wrapper() is False


def test_plugin_target_round_trip():
    for plugin in PluginTarget:
        assert plugin.target().plugin_target() is plugin
    assert Target.STANDALONE.plugin_target() is None


def test_validate_target_maps_to_target():
    assert ValidateTarget.VST3.target() is Target.VST3
    assert ValidateTarget.AU.display() == "AU"
    assert PluginTarget.CLAP.display() == "CLAP"


def test_install_scope_values():
    assert InstallScope("user") is InstallScope.USER
    assert InstallScope("system") is InstallScope.SYSTEM


@pytest.mark.parametrize(
    "name, expected",
    [("darwin", Platform.MACOS), ("win32", Platform.WINDOWS), ("linux", Platform.LINUX)],
)
def test_detect(monkeypatch, name, expected):
    monkeypatch.setattr(sys, "platform", name)
    assert Platform.detect() is expected


def test_detect_unsupported(monkeypatch):
    monkeypatch.setattr(sys, "platform", "sunos5")
    with pytest.raises(TaskError, match="unsupported operating system"):
        Platform.detect()


def test_supports_target_matrix():
    assert all(Platform.MACOS.supports_target(t) for t in Target)
    assert not Platform.WINDOWS.supports_target(Target.AU)
    assert Platform.WINDOWS.supports_target(Target.STANDALONE)
    assert [t for t in Target if Platform.LINUX.supports_target(t)] == [Target.CLAP]


@pytest.mark.parametrize("platform", [Platform.MACOS, Platform.WINDOWS, Platform.LINUX])
def test_defaults_are_supported(platform):
    assert resolve_build_targets(platform, []) == platform.default_build_targets()
    assert resolve_plugin_targets(platform, []) == platform.default_plugin_targets()
    assert resolve_validate_targets(platform, []) == platform.default_validate_targets()


def test_default_build_targets():
    assert Platform.MACOS.default_build_targets() == [
        Target.CLAP,
        Target.VST3,
        Target.AU,
        Target.STANDALONE,
    ]
    assert Platform.WINDOWS.default_build_targets() == [
        Target.CLAP,
        Target.VST3,
        Target.STANDALONE,
    ]
    assert Platform.LINUX.default_validate_targets() == []


def test_cmake_generator():
    assert Platform.MACOS.cmake_generator() == "Xcode"
    assert Platform.WINDOWS.cmake_generator() == "Visual Studio 17 2022"
    assert Platform.LINUX.cmake_generator() is None


def test_library_names():
    assert Platform.MACOS.dynamic_library_name() == "libwrac_gain_plugin.dylib"
    assert Platform.WINDOWS.dynamic_library_name() == "wrac_gain_plugin.dll"
    assert Platform.LINUX.dynamic_library_name() == "libwrac_gain_plugin.so"
    assert Platform.WINDOWS.static_library_name() == "wrac_gain_plugin.lib"
    assert Platform.MACOS.static_library_name() == Platform.LINUX.static_library_name()


def test_resolve_build_targets_defaults_when_empty():
    assert resolve_build_targets(Platform.LINUX, []) == Platform.LINUX.default_build_targets()


def test_resolve_build_targets_dedups_in_order():
    requested = [Target.VST3, Target.CLAP, Target.VST3]
    assert resolve_build_targets(Platform.WINDOWS, requested) == [Target.VST3, Target.CLAP]


def test_resolve_build_targets_rejects_unsupported():
    with pytest.raises(TaskError, match="VST3 is not supported on this operating system"):
        resolve_build_targets(Platform.LINUX, [Target.VST3])


def test_resolve_plugin_targets():
    assert resolve_plugin_targets(Platform.MACOS, []) == Platform.MACOS.default_plugin_targets()
    with pytest.raises(TaskError, match="AU is not supported"):
        resolve_plugin_targets(Platform.WINDOWS, [PluginTarget.AU])


def test_resolve_validate_targets():
    assert resolve_validate_targets(Platform.LINUX, []) == []
    assert resolve_validate_targets(
        Platform.MACOS, [ValidateTarget.AU, ValidateTarget.AU]
    ) == [ValidateTarget.AU]
    with pytest.raises(TaskError, match="VST3 is not supported"):
        resolve_validate_targets(Platform.LINUX, [ValidateTarget.VST3])