"""Building the GUI, the plugin library, the CLAP bundle and the wrapped formats."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable

from wracgain.context import (
    AU_MANUFACTURER,
    AU_MANUFACTURER_NAME,
    AU_SUBTYPE,
    CLAP_BUNDLE_NAME,
    CRATE_NAME,
    PLUGIN_ID,
    PLUGIN_NAME,
    STANDALONE_NAME,
    Context,
)
from wracgain.installing import clean, ensure_vst3_sdk_input, install_built_targets
from wracgain.profile import BuildProfile
from wracgain.targets import Platform, Target, resolve_build_targets
from wracgain.util import TaskError, ensure_exists, env_value_or, on_off, remove_if_exists, run

import shutil

_MACOS_EXTRA_CXX_FLAGS = (
    "OTHER_CPLUSPLUSFLAGS=$(inherited) -Wno-unknown-warning-option "
    "-Wno-gnu-statement-expression-from-macro-expansion -Wno-shorten-64-to-32 "
    "-Wno-perf-constraint-implies-noexcept"
)


class RustPluginBuild(Enum):
    """A variant of the plugin library, each with its own cargo target directory."""

    DEFAULT = "default"
    VST3 = "vst3"
    AU = "au"
    STANDALONE = "standalone"

    @property
    def label(self) -> str:
        return self.value

    def cargo_target_dir(self, ctx: Context) -> Path:
        if self is RustPluginBuild.DEFAULT:
            return ctx.target_dir
        return ctx.wrac_dir() / "cargo" / self.label

    def dynamic_library(self, ctx: Context, profile: BuildProfile) -> Path:
        return (
            self.cargo_target_dir(ctx)
            / profile.cargo_dir()
            / ctx.platform.dynamic_library_name()
        )

    def static_library(self, ctx: Context, profile: BuildProfile) -> Path:
        return (
            self.cargo_target_dir(ctx)
            / profile.cargo_dir()
            / ctx.platform.static_library_name()
        )

    def objc_suffix(self) -> str:
        """Objective-C class name suffix that keeps webview classes from colliding."""
        return {
            RustPluginBuild.DEFAULT: "WracGainPlugin",
            RustPluginBuild.VST3: "WracGainPluginVst3",
            RustPluginBuild.AU: "WracGainPluginAu",
            RustPluginBuild.STANDALONE: "WracGainPluginStandalone",
        }[self]


@dataclass(frozen=True)
class WrapperBuild:
    """One CMake wrapper build.

    `kind` DEFAULT wraps the plain library into the formats flagged by `vst3`/`au`;
    the other kinds build exactly one format from their own library variant.
    """

    kind: RustPluginBuild
    vst3: bool = False
    au: bool = False

    def purpose(self) -> str:
        return {
            RustPluginBuild.DEFAULT: "wrap",
            RustPluginBuild.VST3: "wrap-vst3",
            RustPluginBuild.AU: "wrap-au",
            RustPluginBuild.STANDALONE: "standalone",
        }[self.kind]

    def rust_build(self) -> RustPluginBuild:
        return self.kind


def build(
    ctx: Context,
    release: bool,
    clean_first: bool,
    targets: Iterable[Target],
    install_after: bool,
) -> None:
    """Build the requested targets (default: all the platform supports)."""
    profile = BuildProfile.from_release(release)
    resolved = resolve_build_targets(ctx.platform, targets)

    # Missing wrapper submodules would otherwise surface late as obscure CMake errors.
    if any(target.is_wrapper() for target in resolved) or Target.STANDALONE in resolved:
        ensure_wrapper_inputs(ctx)

    if clean_first:
        clean(ctx)

    build_gui(ctx)

    if Target.CLAP in resolved:
        build_rust_plugin(ctx, profile, RustPluginBuild.DEFAULT)
        package_clap(ctx, profile)

    if ctx.platform is Platform.MACOS:
        if Target.VST3 in resolved:
            build_rust_plugin(ctx, profile, RustPluginBuild.VST3)
            build_wrapper_set(ctx, profile, WrapperBuild(RustPluginBuild.VST3))
        if Target.AU in resolved:
            build_rust_plugin(ctx, profile, RustPluginBuild.AU)
            build_wrapper_set(ctx, profile, WrapperBuild(RustPluginBuild.AU))
    elif any(target.is_wrapper() for target in resolved):
        build_rust_plugin(ctx, profile, RustPluginBuild.DEFAULT)
        build_wrapper_set(
            ctx,
            profile,
            WrapperBuild(
                RustPluginBuild.DEFAULT,
                vst3=Target.VST3 in resolved,
                au=Target.AU in resolved,
            ),
        )

    if Target.STANDALONE in resolved:
        build_rust_plugin(ctx, profile, RustPluginBuild.STANDALONE)
        build_wrapper_set(ctx, profile, WrapperBuild(RustPluginBuild.STANDALONE))

    if install_after:
        install_built_targets(ctx, profile, resolved)

    print_outputs(ctx, profile, resolved)


def build_gui(ctx: Context) -> None:
    """Install frontend dependencies and build the frontend bundle."""
    print("Building GUI...")
    # The plugin embeds the frontend output, so it must be fresh before the library build.
    npm = npm_command(ctx.platform)
    run([npm, "install"], cwd=ctx.gui_dir())
    run([npm, "run", "build"], cwd=ctx.gui_dir())


def npm_command(platform: Platform) -> str:
    return "npm.cmd" if platform is Platform.WINDOWS else "npm"


def build_rust_plugin(ctx: Context, profile: BuildProfile, kind: RustPluginBuild) -> None:
    """Build one variant of the plugin library and check its outputs exist."""
    print(f"Building Rust plugin ({kind.label})...")
    command: list[object] = [
        "cargo",
        "build",
        "--target-dir",
        kind.cargo_target_dir(ctx),
        "--manifest-path",
        ctx.plugin_manifest(),
    ]
    flag = profile.cargo_flag()
    if flag:
        command.append(flag)
    env = None
    if ctx.platform is Platform.MACOS:
        # Respect a caller-provided deployment target; otherwise use a safe default.
        env = {
            "MACOSX_DEPLOYMENT_TARGET": env_value_or("MACOSX_DEPLOYMENT_TARGET", "11.0"),
            "WRY_OBJC_SUFFIX": kind.objc_suffix(),
        }
    run(command, cwd=ctx.root, env=env)

    ensure_exists(kind.dynamic_library(ctx, profile), "dynamic plugin library")
    if ctx.platform.supports_wrappers():
        # The wrapper links the static library directly.
        ensure_exists(kind.static_library(ctx, profile), "static plugin library")


def package_clap(ctx: Context, profile: BuildProfile) -> None:
    """Turn the built dynamic library into the CLAP artifact."""
    print("Packaging CLAP...")
    bundle = ctx.clap_bundle(profile)
    version = plugin_version(ctx)
    remove_if_exists(bundle)
    ctx.plugins_dir(profile).mkdir(parents=True, exist_ok=True)

    if ctx.platform is Platform.MACOS:
        contents = bundle / "Contents"
        macos = contents / "MacOS"
        macos.mkdir(parents=True, exist_ok=True)
        (contents / "Info.plist").write_text(macos_clap_info_plist(version), encoding="utf-8")
        (contents / "PkgInfo").write_text("BNDL????", encoding="utf-8")
        executable = macos / PLUGIN_NAME
        shutil.copy(ctx.dynamic_library(profile), executable)
        run(
            ["install_name_tool", "-id", f"@loader_path/{PLUGIN_NAME}", executable],
            cwd=ctx.root,
        )
        codesign(bundle)
    else:
        # On Windows and Linux a CLAP is a plain dynamic library with a .clap extension.
        shutil.copy(ctx.dynamic_library(profile), bundle)

    ensure_exists(bundle, "CLAP artifact")


def build_wrapper_set(ctx: Context, profile: BuildProfile, wrapper: WrapperBuild) -> None:
    """Configure and build the CMake wrapper project for one wrapper build."""
    static_library = wrapper.rust_build().static_library(ctx, profile)
    ensure_exists(static_library, "static plugin library")
    version = plugin_version(ctx)

    build_dir = ctx.cmake_dir(wrapper.purpose(), profile)
    if wrapper.kind is RustPluginBuild.STANDALONE:
        stage_dir = ctx.standalone_dir(profile)
    else:
        stage_dir = ctx.plugins_dir(profile)
    stage_dir.mkdir(parents=True, exist_ok=True)

    configure: list[object] = [
        "cmake",
        "-S",
        ctx.wrapper_dir,
        "-B",
        build_dir,
        f"-DCLAP_WRAPPER_BUILDER_TARGET_LIB={static_library}",
        f"-DCLAP_WRAPPER_BUILDER_OUTPUT_NAME={PLUGIN_NAME}",
        f"-DCLAP_WRAPPER_BUILDER_TARGET_NAME={CRATE_NAME}_{wrapper.purpose()}",
        f"-DCLAP_WRAPPER_BUILDER_STAGE_DIR={stage_dir}",
        f"-DCLAP_WRAPPER_BUILDER_BUNDLE_VERSION={version}",
        f"-DCMAKE_BUILD_TYPE={profile.cmake_config()}",
        "-DCLAP_WRAPPER_BUILDER_BUILD_AAX=OFF",
        "-DCLAP_WRAPPER_DOWNLOAD_DEPENDENCIES=OFF",
        "-DCLAP_WRAPPER_CXX_STANDARD=23",
    ]

    kind = wrapper.kind
    if kind is RustPluginBuild.DEFAULT:
        configure += [
            f"-DCLAP_WRAPPER_BUILDER_BUILD_VST3={on_off(wrapper.vst3)}",
            f"-DCLAP_WRAPPER_BUILDER_BUILD_AUV2={on_off(wrapper.au)}",
            "-DCLAP_WRAPPER_BUILDER_BUILD_STANDALONE=OFF",
        ]
    elif kind is RustPluginBuild.VST3:
        configure += [
            "-DCLAP_WRAPPER_BUILDER_BUILD_VST3=ON",
            "-DCLAP_WRAPPER_BUILDER_BUILD_AUV2=OFF",
            "-DCLAP_WRAPPER_BUILDER_BUILD_STANDALONE=OFF",
        ]
    elif kind is RustPluginBuild.AU:
        configure += [
            "-DCLAP_WRAPPER_BUILDER_BUILD_VST3=OFF",
            "-DCLAP_WRAPPER_BUILDER_BUILD_AUV2=ON",
            "-DCLAP_WRAPPER_BUILDER_BUILD_STANDALONE=OFF",
        ]
    else:
        # The standalone app needs extra dependencies that the wrapper downloads itself.
        configure += [
            "-DCLAP_WRAPPER_BUILDER_BUILD_VST3=OFF",
            "-DCLAP_WRAPPER_BUILDER_BUILD_AUV2=OFF",
            "-DCLAP_WRAPPER_BUILDER_BUILD_STANDALONE=ON",
            f"-DCLAP_WRAPPER_BUILDER_STANDALONE_PLUGIN_ID={PLUGIN_ID}",
            f"-DCLAP_WRAPPER_BUILDER_STANDALONE_OUTPUT_NAME={STANDALONE_NAME}",
            "-DCLAP_WRAPPER_DOWNLOAD_DEPENDENCIES=ON",
        ]

    if ctx.platform is Platform.MACOS:
        # The four-character AU codes are the host's discovery key.
        configure += [
            f"-DAUDIOUNIT_SDK_ROOT={ctx.wrapper_dir / 'AudioUnitSDK'}",
            "-DCLAP_WRAPPER_AUV2_INSTRUMENT_TYPE=aufx",
            f"-DCLAP_WRAPPER_AUV2_MANUFACTURER_NAME={AU_MANUFACTURER_NAME}",
            f"-DCLAP_WRAPPER_AUV2_MANUFACTURER_CODE={AU_MANUFACTURER}",
            f"-DCLAP_WRAPPER_AUV2_SUBTYPE_CODE={AU_SUBTYPE}",
        ]

    generator = ctx.platform.cmake_generator()
    if generator:
        configure += ["-G", generator]

    run(configure, cwd=ctx.root)

    build_cmd: list[object] = [
        "cmake",
        "--build",
        build_dir,
        "--config",
        profile.cmake_config(),
    ]
    if ctx.platform is Platform.MACOS:
        build_cmd += ["--", _MACOS_EXTRA_CXX_FLAGS]
    run(build_cmd, cwd=ctx.root)

    if kind is RustPluginBuild.DEFAULT:
        if wrapper.vst3:
            ensure_exists(ctx.vst3_bundle(profile), "VST3 artifact")
            if ctx.platform is Platform.MACOS:
                codesign_nested_macos_bundle(ctx.vst3_bundle(profile))
        if wrapper.au:
            ensure_exists(ctx.au_bundle(profile), "AU artifact")
            codesign_nested_macos_bundle(ctx.au_bundle(profile))
    elif kind is RustPluginBuild.VST3:
        ensure_exists(ctx.vst3_bundle(profile), "VST3 artifact")
        codesign_nested_macos_bundle(ctx.vst3_bundle(profile))
    elif kind is RustPluginBuild.AU:
        ensure_exists(ctx.au_bundle(profile), "AU artifact")
        codesign_nested_macos_bundle(ctx.au_bundle(profile))
    else:
        ensure_exists(ctx.standalone_artifact(profile), "standalone artifact")
        if ctx.platform is Platform.MACOS:
            codesign_nested_macos_bundle(ctx.standalone_artifact(profile))


def ensure_wrapper_inputs(ctx: Context) -> None:
    """Check the wrapper project and its SDK submodules are actually checked out."""
    # An uninitialised submodule leaves an empty directory, so look for real files.
    ensure_exists(ctx.wrapper_dir, "clap_wrapper_builder directory")
    ensure_exists(
        ctx.wrapper_dir / "clap-wrapper" / "CMakeLists.txt", "clap-wrapper submodule"
    )
    ensure_exists(
        ctx.wrapper_dir / "clap" / "include" / "clap" / "clap.h", "CLAP SDK submodule"
    )
    ensure_vst3_sdk_input(ctx)
    if ctx.platform is Platform.MACOS:
        ensure_exists(
            ctx.wrapper_dir / "AudioUnitSDK" / "include" / "AudioUnitSDK" / "AudioUnitSDK.h",
            "AudioUnitSDK submodule",
        )


def print_outputs(ctx: Context, profile: BuildProfile, targets: Iterable[Target]) -> None:
    for target in targets:
        if target is Target.CLAP:
            print(f"CLAP: {ctx.clap_bundle(profile)}")
        elif target is Target.VST3:
            print(f"VST3: {ctx.vst3_bundle(profile)}")
        elif target is Target.AU:
            print(f"AU: {ctx.au_bundle(profile)}")
        else:
            print(f"Standalone: {ctx.standalone_artifact(profile)}")


def macos_clap_info_plist(version: str) -> str:
    """The Info.plist of the macOS CLAP bundle."""
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist>
  <dict>
    <key>CFBundleExecutable</key>
    <string>{PLUGIN_NAME}</string>
    <key>CFBundleIconFile</key>
    <string></string>
    <key>CFBundleIdentifier</key>
    <string>{PLUGIN_ID}</string>
    <key>CFBundleName</key>
    <string>{PLUGIN_NAME}</string>
    <key>CFBundleDisplayName</key>
    <string>{PLUGIN_NAME}</string>
    <key>CFBundlePackageType</key>
    <string>BNDL</string>
    <key>CFBundleSignature</key>
    <string>????</string>
    <key>CFBundleShortVersionString</key>
    <string>{version}</string>
    <key>CFBundleVersion</key>
    <string>{version}</string>
    <key>NSHumanReadableCopyright</key>
    <string></string>
    <key>NSHighResolutionCapable</key>
    <true/>
  </dict>
</plist>
"""


def plugin_version(ctx: Context) -> str:
    """Read the package version from the plugin manifest's [package] section."""
    manifest = ctx.plugin_manifest().read_text(encoding="utf-8")
    in_package_section = False
    for raw_line in manifest.splitlines():
        line = raw_line.strip()
        if line.startswith("["):
            in_package_section = line == "[package]"
            continue
        if not in_package_section or not line.startswith("version"):
            continue
        _, sep, value = line[len("version"):].partition("=")
        if not sep:
            continue
        version = value.strip().strip('"')
        if version:
            return version
    raise TaskError("failed to read plugin version from src-plugin/Cargo.toml")


def codesign(path: Path) -> None:
    """Ad-hoc sign a macOS bundle."""
    run(["codesign", "--force", "--sign", "-", "--timestamp=none", path])


def codesign_nested_macos_bundle(bundle: Path) -> None:
    """Sign a nested CLAP bundle if present, then the bundle itself."""
    nested_clap = Path(bundle) / "Contents" / "PlugIns" / CLAP_BUNDLE_NAME
    if nested_clap.exists():
        codesign(nested_clap)
    codesign(bundle)