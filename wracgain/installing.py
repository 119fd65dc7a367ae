"""Installing, uninstalling, validating and cleaning plugin artifacts."""

from __future__ import annotations

import subprocess
from enum import Enum
from pathlib import Path
from typing import Iterable

from wracgain.context import (
    AU_BUNDLE_NAME,
    AU_MANUFACTURER,
    AU_SUBTYPE,
    AU_TYPE,
    CLAP_BUNDLE_NAME,
    VST3_BUNDLE_NAME,
    Context,
)
from wracgain.profile import BuildProfile
from wracgain.targets import (
    InstallScope,
    Platform,
    PluginTarget,
    Target,
    ValidateTarget,
    resolve_plugin_targets,
    resolve_validate_targets,
)
from wracgain.util import (
    TaskError,
    common_program_files,
    copy_path,
    ensure_exists,
    home_dir,
    local_app_data,
    remove_if_exists,
    run,
)

SYSTEM_AU_COMPONENTS = Path("/Library/Audio/Plug-Ins/Components")

_BUNDLE_NAMES = {
    PluginTarget.CLAP: CLAP_BUNDLE_NAME,
    PluginTarget.VST3: VST3_BUNDLE_NAME,
    PluginTarget.AU: AU_BUNDLE_NAME,
}


class PluginFormat(Enum):
    """A plugin format as far as install locations are concerned."""

    CLAP = "clap"
    VST3 = "vst3"
    AU = "au"

    @classmethod
    def of(cls, target: PluginTarget) -> PluginFormat:
        return cls(target.value)


def _bundle(ctx: Context, profile: BuildProfile, target: PluginTarget) -> Path:
    if target is PluginTarget.CLAP:
        return ctx.clap_bundle(profile)
    if target is PluginTarget.VST3:
        return ctx.vst3_bundle(profile)
    return ctx.au_bundle(profile)


def install(
    ctx: Context,
    profile: BuildProfile,
    scope: InstallScope,
    requested: Iterable[PluginTarget],
) -> None:
    """Install previously built plugin artifacts."""
    targets = resolve_plugin_targets(ctx.platform, requested)
    install_plugin_targets(ctx, profile, scope, targets)


def install_built_targets(
    ctx: Context, profile: BuildProfile, targets: Iterable[Target]
) -> None:
    """Install the plugin formats among `targets` into the user scope.

    The standalone app has no install location and is skipped silently.
    """
    plugin_targets = [
        plugin for plugin in (target.plugin_target() for target in targets) if plugin
    ]
    if not plugin_targets:
        print("No plugin targets to install.")
        return
    install_plugin_targets(ctx, profile, InstallScope.USER, plugin_targets)


def install_plugin_targets(
    ctx: Context,
    profile: BuildProfile,
    scope: InstallScope,
    targets: Iterable[PluginTarget],
) -> None:
    for target in targets:
        install_artifact(
            _bundle(ctx, profile, target),
            install_dir(ctx, scope, PluginFormat.of(target)),
        )


def uninstall(ctx: Context, requested: Iterable[PluginTarget], dry_run: bool) -> None:
    """Remove installed artifacts from both user-local and system-wide folders."""
    targets = resolve_plugin_targets(ctx.platform, requested)
    removed = 0
    missing = 0
    for target in targets:
        for path in installed_artifacts(ctx, target):
            if not path.exists():
                print(f"Not found: {path}")
                missing += 1
                continue
            if dry_run:
                print(f"Would remove: {path}")
            else:
                print(f"Removing: {path}")
                remove_if_exists(path)
            removed += 1

    if dry_run:
        print(f"Uninstall dry run complete: {removed} would be removed, {missing} not found")
    else:
        print(f"Uninstall complete: {removed} removed, {missing} not found")


def install_dir(ctx: Context, scope: InstallScope, plugin_format: PluginFormat) -> Path:
    """The folder hosts scan for `plugin_format` in `scope` on this platform."""
    user = scope is InstallScope.USER
    match ctx.platform:
        case Platform.MACOS:
            folder = {
                PluginFormat.CLAP: "CLAP",
                PluginFormat.VST3: "VST3",
                PluginFormat.AU: "Components",
            }[plugin_format]
            if user:
                return home_dir() / "Library/Audio/Plug-Ins" / folder
            return Path("/Library/Audio/Plug-Ins") / folder
        case Platform.WINDOWS:
            if plugin_format is PluginFormat.AU:
                raise TaskError("AU is not supported on Windows")
            folder = "CLAP" if plugin_format is PluginFormat.CLAP else "VST3"
            if user:
                return local_app_data() / "Programs" / "Common" / folder
            return common_program_files() / folder
        case _:
            if plugin_format is not PluginFormat.CLAP:
                raise TaskError("VST3/AU install is not supported on Linux")
            if user:
                return home_dir() / ".clap"
            return Path("/usr/lib/clap")


def install_artifact(artifact: Path, destination_dir: Path) -> None:
    """Replace `destination_dir/<artifact name>` with a fresh copy of `artifact`."""
    artifact = Path(artifact)
    destination_dir = Path(destination_dir)
    ensure_exists(artifact, "install artifact")
    destination_dir.mkdir(parents=True, exist_ok=True)
    if not artifact.name:
        raise TaskError(f"artifact has no file name: {artifact}")
    destination = destination_dir / artifact.name
    # Merging into an old bundle could leave stale binaries behind.
    remove_if_exists(destination)
    copy_path(artifact, destination)
    print(f"Installed: {destination}")


def installed_artifacts(ctx: Context, target: PluginTarget) -> list[Path]:
    """Where `target` would be installed, user scope first, then system."""
    plugin_format = PluginFormat.of(target)
    bundle_name = _BUNDLE_NAMES[target]
    return [
        install_dir(ctx, scope, plugin_format) / bundle_name
        for scope in (InstallScope.USER, InstallScope.SYSTEM)
    ]


def validate(
    ctx: Context, profile: BuildProfile, requested: Iterable[ValidateTarget]
) -> None:
    """Run the external validators against previously built artifacts."""
    targets = resolve_validate_targets(ctx.platform, requested)
    if ValidateTarget.VST3 in targets:
        # The validator is built from the SDK, so check the SDK before anything else.
        ensure_vst3_sdk_input(ctx)
    _validate_targets(ctx, profile, targets)


def _validate_targets(
    ctx: Context, profile: BuildProfile, targets: list[ValidateTarget]
) -> None:
    if not targets:
        print("No VST3/AU targets to validate.")
        return

    if ValidateTarget.VST3 in targets:
        vst3 = ctx.vst3_bundle(profile)
        ensure_exists(vst3, "VST3 artifact")
        validator = ensure_vst3_validator(ctx)
        run([validator, vst3], cwd=ctx.root)

    if ValidateTarget.AU in targets:
        au = ctx.au_bundle(profile)
        ensure_exists(au, "AU artifact")
        ensure_no_system_au_conflict()

        # auval resolves components through the registrar, so install first.
        install_artifact(au, install_dir(ctx, InstallScope.USER, PluginFormat.AU))

        # The registrar caches components; restarting it is best-effort.
        try:
            subprocess.run(["killall", "-9", "AudioComponentRegistrar"], check=False)
        except OSError:
            pass

        run(["/usr/bin/auval", "-v", AU_TYPE, AU_SUBTYPE, AU_MANUFACTURER], cwd=ctx.root)


def ensure_no_system_au_conflict(system_components: Path = SYSTEM_AU_COMPONENTS) -> None:
    """Raise TaskError if a system-wide copy of the AU would shadow the built one."""
    system_au = Path(system_components) / AU_BUNDLE_NAME
    if system_au.exists():
        raise TaskError(
            f"system-wide AU already exists at {system_au}. auval may validate that copy "
            "instead of the freshly built user-local AU. Remove the system-wide component "
            "and run validation again."
        )


def ensure_vst3_validator(ctx: Context) -> Path:
    """Return the VST3 validator executable, building it from the SDK if needed."""
    ensure_vst3_sdk_input(ctx)

    executable = "validator.exe" if ctx.platform is Platform.WINDOWS else "validator"
    build_dir = ctx.target_dir / "vst3sdk-validator"
    validator = build_dir / "bin" / "Debug" / executable
    if validator.exists():
        return validator

    # A single Debug build serves both plugin profiles.
    configure: list[object] = [
        "cmake",
        "-S",
        ctx.wrapper_dir / "vst3sdk",
        "-B",
        build_dir,
        "-DSMTG_ENABLE_VST3_HOSTING_EXAMPLES=ON",
        "-DSMTG_ENABLE_VST3_PLUGIN_EXAMPLES=OFF",
        "-DSMTG_ENABLE_VSTGUI_SUPPORT=OFF",
    ]
    if ctx.platform is Platform.MACOS:
        configure += ["-G", "Xcode"]
    run(configure, cwd=ctx.root)
    run(
        ["cmake", "--build", build_dir, "--target", "validator", "--config", "Debug"],
        cwd=ctx.root,
    )

    ensure_exists(validator, "VST3 validator")
    return validator


def ensure_vst3_sdk_input(ctx: Context) -> None:
    ensure_exists(ctx.wrapper_dir / "vst3sdk" / "CMakeLists.txt", "VST3 SDK submodule")


def clean(ctx: Context) -> None:
    """Remove every generated artifact managed by the build tasks."""
    remove_if_exists(ctx.wrac_dir())