import plistlib
import subprocess
from pathlib import Path
from unittest import mock

import pytest

from wracgain.building import (
    RustPluginBuild,
    WrapperBuild,
    build,
    build_gui,
    build_rust_plugin,
    build_wrapper_set,
    codesign_nested_macos_bundle,
    ensure_wrapper_inputs,
    macos_clap_info_plist,
    npm_command,
    package_clap,
    plugin_version,
    print_outputs,
)
from wracgain.context import CLAP_BUNDLE_NAME, PLUGIN_ID, PLUGIN_NAME, Context
from wracgain.profile import BuildProfile
from wracgain.targets import Platform, Target
from wracgain.util import TaskError


def make_ctx(tmp_path: Path, platform: Platform = Platform.LINUX) -> Context:
    return Context(
        root=tmp_path,
        platform=platform,
        target_dir=tmp_path / "target",
        wrapper_dir=tmp_path / "clap_wrapper_builder",
    )


def write_manifest(ctx: Context, text: str) -> None:
    ctx.plugin_manifest().parent.mkdir(parents=True, exist_ok=True)
    ctx.plugin_manifest().write_text(text)


def ok_process(*args, **kwargs):
    return subprocess.CompletedProcess(args=args, returncode=0)


def test_cargo_target_dirs(tmp_path):
    ctx = make_ctx(tmp_path)
    assert RustPluginBuild.DEFAULT.cargo_target_dir(ctx) == ctx.target_dir
    assert RustPluginBuild.VST3.cargo_target_dir(ctx) == ctx.wrac_dir() / "cargo" / "vst3"
    assert (
        RustPluginBuild.STANDALONE.cargo_target_dir(ctx)
        == ctx.wrac_dir() / "cargo" / "standalone"
    )


def test_library_paths(tmp_path):
    ctx = make_ctx(tmp_path)
    assert (
        RustPluginBuild.AU.dynamic_library(ctx, BuildProfile.RELEASE)
        == ctx.wrac_dir() / "cargo" / "au" / "release" / "libwrac_gain_plugin.so"
    )
    assert (
        RustPluginBuild.DEFAULT.static_library(ctx, BuildProfile.DEBUG)
        == ctx.target_dir / "debug" / "libwrac_gain_plugin.a"
    )


def test_objc_suffixes():
    assert RustPluginBuild.DEFAULT.objc_suffix() == "WracGainPlugin"
    assert RustPluginBuild.VST3.objc_suffix() == "WracGainPluginVst3"
    assert RustPluginBuild.AU.objc_suffix() == "WracGainPluginAu"
    assert RustPluginBuild.STANDALONE.objc_suffix() == "WracGainPluginStandalone"


def test_wrapper_build_purpose_and_rust_build():
    plugin = WrapperBuild(RustPluginBuild.DEFAULT, vst3=True)
    assert plugin.purpose() == "wrap"
    assert plugin.rust_build() is RustPluginBuild.DEFAULT
    assert WrapperBuild(RustPluginBuild.VST3).purpose() == "wrap-vst3"
    assert WrapperBuild(RustPluginBuild.AU).purpose() == "wrap-au"
    assert WrapperBuild(RustPluginBuild.STANDALONE).purpose() == "standalone"
    assert WrapperBuild(RustPluginBuild.AU).rust_build() is RustPluginBuild.AU


def test_npm_command():
    assert npm_command(Platform.WINDOWS) == "npm.cmd"
    assert npm_command(Platform.LINUX) == "npm"
    assert npm_command(Platform.MACOS) == "npm"


def test_info_plist_parses():
    data = plistlib.loads(macos_clap_info_plist("1.2.3").encode("utf-8"))
    assert data["CFBundleIdentifier"] == PLUGIN_ID
    assert data["CFBundleExecutable"] == PLUGIN_NAME
    assert data["CFBundleVersion"] == "1.2.3"
    assert data["CFBundleShortVersionString"] == "1.2.3"
    assert data["CFBundlePackageType"] == "BNDL"
    assert data["NSHighResolutionCapable"] is True


def test_plugin_version_reads_package_section(tmp_path):
    ctx = make_ctx(tmp_path)
    write_manifest(
        ctx,
        '[package]\nname = "wrac_gain_plugin"\nversion = "0.1.0"\n\n[dependencies]\nlog = "0.4"\n',
    )
    assert plugin_version(ctx) == "0.1.0"


def test_plugin_version_ignores_other_sections(tmp_path):
    ctx = make_ctx(tmp_path)
    write_manifest(ctx, '[dependencies]\nversion = "9.9.9"\n[package]\nname = "x"\n')
    with pytest.raises(TaskError, match="failed to read plugin version"):
        plugin_version(ctx)


def test_plugin_version_missing_manifest(tmp_path):
    with pytest.raises(FileNotFoundError):
        plugin_version(make_ctx(tmp_path))


def test_ensure_wrapper_inputs_reports_missing(tmp_path):
    ctx = make_ctx(tmp_path)
    with pytest.raises(TaskError, match="clap_wrapper_builder directory not found"):
        ensure_wrapper_inputs(ctx)
    ctx.wrapper_dir.mkdir()
    with pytest.raises(TaskError, match="clap-wrapper submodule"):
        ensure_wrapper_inputs(ctx)


def _populate_wrapper(ctx: Context) -> None:
    for relative in (
        "clap-wrapper/CMakeLists.txt",
        "clap/include/clap/clap.h",
        "vst3sdk/CMakeLists.txt",
    ):
        path = ctx.wrapper_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("")


def test_ensure_wrapper_inputs_platform_specific(tmp_path):
    linux = make_ctx(tmp_path)
    _populate_wrapper(linux)
    ensure_wrapper_inputs(linux)
    mac = make_ctx(tmp_path, Platform.MACOS)
    with pytest.raises(TaskError, match="AudioUnitSDK submodule"):
        ensure_wrapper_inputs(mac)


def test_build_rejects_unsupported_target(tmp_path):
    with pytest.raises(TaskError, match="VST3 is not supported"):
        build(make_ctx(tmp_path), False, False, [Target.VST3], False)


def test_build_wrapper_set_requires_static_library(tmp_path):
    ctx = make_ctx(tmp_path, Platform.WINDOWS)
    with pytest.raises(TaskError, match="static plugin library not found"):
        build_wrapper_set(ctx, BuildProfile.DEBUG, WrapperBuild(RustPluginBuild.DEFAULT))


def test_package_clap_copies_library_on_linux(tmp_path):
    ctx = make_ctx(tmp_path)
    write_manifest(ctx, '[package]\nversion = "0.1.0"\n')
    library = ctx.dynamic_library(BuildProfile.DEBUG)
    library.parent.mkdir(parents=True)
    library.write_bytes(b"\x7fELF-library")
    package_clap(ctx, BuildProfile.DEBUG)
    bundle = ctx.clap_bundle(BuildProfile.DEBUG)
    assert bundle.read_bytes() == b"\x7fELF-library"
    assert bundle.name == CLAP_BUNDLE_NAME


def test_build_rust_plugin_command(tmp_path):
    ctx = make_ctx(tmp_path)
    library = RustPluginBuild.DEFAULT.dynamic_library(ctx, BuildProfile.RELEASE)
    library.parent.mkdir(parents=True)
    library.write_bytes(b"")
    with mock.patch("subprocess.run", side_effect=ok_process) as fake:
        build_rust_plugin(ctx, BuildProfile.RELEASE, RustPluginBuild.DEFAULT)
    args = fake.call_args.args[0]
    assert args == [
        "cargo",
        "build",
        "--target-dir",
        str(ctx.target_dir),
        "--manifest-path",
        str(ctx.plugin_manifest()),
        "--release",
    ]
    assert fake.call_args.kwargs["cwd"] == ctx.root


def test_build_rust_plugin_missing_output(tmp_path):
    ctx = make_ctx(tmp_path)
    with mock.patch("subprocess.run", side_effect=ok_process):
        with pytest.raises(TaskError, match="dynamic plugin library not found"):
            build_rust_plugin(ctx, BuildProfile.DEBUG, RustPluginBuild.DEFAULT)


def test_build_gui_runs_npm(tmp_path):
    ctx = make_ctx(tmp_path)
    with mock.patch("subprocess.run", side_effect=ok_process) as fake:
        build_gui(ctx)
    commands = [call.args[0] for call in fake.call_args_list]
    assert commands == [["npm", "install"], ["npm", "run", "build"]]
    assert all(call.kwargs["cwd"] == ctx.gui_dir() for call in fake.call_args_list)


def test_failed_command_raises(tmp_path):
    ctx = make_ctx(tmp_path)
    failing = subprocess.CompletedProcess(args=[], returncode=3)
    with mock.patch("subprocess.run", return_value=failing):
        with pytest.raises(TaskError, match="command failed"):
            build_gui(ctx)


def test_codesign_nested_bundle_signs_inner_first(tmp_path):
    bundle = tmp_path / "WRAC Gain.vst3"
    nested = bundle / "Contents" / "PlugIns" / CLAP_BUNDLE_NAME
    nested.mkdir(parents=True)
    with mock.patch("subprocess.run", side_effect=ok_process) as fake:
        codesign_nested_macos_bundle(bundle)
    signed = [call.args[0][-1] for call in fake.call_args_list]
    assert signed == [str(nested), str(bundle)]
    assert fake.call_args.args[0][:5] == ["codesign", "--force", "--sign", "-", "--timestamp=none"]


def test_print_outputs(tmp_path, capsys):
    ctx = make_ctx(tmp_path)
    print_outputs(ctx, BuildProfile.DEBUG, [Target.CLAP])
    assert capsys.readouterr().out == f"CLAP: {ctx.clap_bundle(BuildProfile.DEBUG)}\n"