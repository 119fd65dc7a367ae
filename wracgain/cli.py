"""Command line entry point for building, installing and validating the plugin."""

from __future__ import annotations

import argparse
import sys
from enum import Enum
from typing import Sequence

from wracgain.building import build
from wracgain.context import Context
from wracgain.installing import clean, install, uninstall, validate
from wracgain.profile import BuildProfile
from wracgain.targets import InstallScope, PluginTarget, Target, ValidateTarget
from wracgain.util import TaskError

_MAIN_EPILOG = (
    "Run `wracgain <command> --help` for command-specific targets, platform support, "
    "and examples."
)

_BUILD_EPILOG = """\
Targets:
  clap, vst3, au, standalone

Default targets by platform:
  macOS:   clap, vst3, au, standalone
  Windows: clap, vst3, standalone
  Linux:   clap

Notes:
  Run the validate command after building to validate VST3/AU artifacts.
  VST3/AU wrapper targets require clap-wrapper dependencies."""

_INSTALL_EPILOG = """\
Targets:
  clap, vst3, au

Default targets by platform:
  macOS:   clap, vst3, au
  Windows: clap, vst3
  Linux:   clap

Notes:
  install copies previously built plugin artifacts.
  --scope defaults to user. Use --scope=system for hosts that only scan system-wide plugin folders.
  standalone is not a plugin format and cannot be installed with this command."""

_UNINSTALL_EPILOG = """\
Targets:
  clap, vst3, au

Default targets by platform:
  macOS:   clap, vst3, au
  Windows: clap, vst3
  Linux:   clap

Notes:
  uninstall removes both user-local and system-wide plugin artifacts."""

_VALIDATE_EPILOG = """\
Targets:
  vst3, au

Default targets by platform:
  macOS:   vst3, au
  Windows: vst3
  Linux:   none

Notes:
  VST3 validation uses the VST3 validator.
  AU validation is available only on macOS and installs the built AU before running auval.
  AU validation fails if the same AU bundle exists under /Library/Audio/Plug-Ins/Components."""


class _CommaSeparated(argparse.Action):
    """Collect enum values given as `--target=a,b` or `--target a b`."""

    def __init__(self, option_strings, dest, enum_type: type[Enum], **kwargs):
        self.enum_type = enum_type
        super().__init__(option_strings, dest, nargs="+", **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        collected = list(getattr(namespace, self.dest) or [])
        allowed = ", ".join(member.value for member in self.enum_type)
        for value in values:
            for token in value.split(","):
                try:
                    collected.append(self.enum_type(token.strip().lower()))
                except ValueError:
                    parser.error(
                        f"invalid value '{token}' for {option_string} (possible values: {allowed})"
                    )
        setattr(namespace, self.dest, collected)


def _add_targets(parser: argparse.ArgumentParser, enum_type: type[Enum], help_text: str) -> None:
    parser.add_argument(
        "--target",
        action=_CommaSeparated,
        enum_type=enum_type,
        default=[],
        metavar="TARGET",
        help=help_text,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wracgain",
        description="Build, install, validate, and clean WRAC plugin artifacts.",
        epilog=_MAIN_EPILOG,
    )
    commands = parser.add_subparsers(dest="command", required=True)
    formatter = argparse.RawDescriptionHelpFormatter

    build_cmd = commands.add_parser(
        "build",
        help="Build plugin and standalone artifacts.",
        epilog=_BUILD_EPILOG,
        formatter_class=formatter,
    )
    build_cmd.add_argument("--release", action="store_true", help="Build with the release profile.")
    build_cmd.add_argument(
        "--clean", action="store_true", help="Remove generated plugin artifacts before building."
    )
    _add_targets(
        build_cmd,
        Target,
        "Targets to build, comma-separated. Supported values are clap, vst3, au, and "
        "standalone. Defaults to every target supported by the current OS.",
    )
    build_cmd.add_argument(
        "--install", action="store_true", help="Install plugin artifacts after a successful build."
    )

    install_cmd = commands.add_parser(
        "install",
        help="Install previously built plugin artifacts.",
        epilog=_INSTALL_EPILOG,
        formatter_class=formatter,
    )
    install_cmd.add_argument("--release", action="store_true", help="Install release artifacts.")
    install_cmd.add_argument(
        "--scope",
        type=InstallScope,
        choices=list(InstallScope),
        default=InstallScope.USER,
        metavar="{user,system}",
        help="Install location scope.",
    )
    _add_targets(
        install_cmd,
        PluginTarget,
        "Plugin formats to install, comma-separated. Supported values are clap, vst3, and au.",
    )

    uninstall_cmd = commands.add_parser(
        "uninstall",
        help="Remove installed plugin artifacts from user-local and system-wide paths.",
        epilog=_UNINSTALL_EPILOG,
        formatter_class=formatter,
    )
    _add_targets(
        uninstall_cmd,
        PluginTarget,
        "Plugin formats to uninstall, comma-separated. Supported values are clap, vst3, and au.",
    )
    uninstall_cmd.add_argument(
        "--dry-run",
        action="store_true",
        help="Print paths that would be removed without deleting them.",
    )

    validate_cmd = commands.add_parser(
        "validate",
        help="Validate previously built VST3/AU artifacts.",
        epilog=_VALIDATE_EPILOG,
        formatter_class=formatter,
    )
    validate_cmd.add_argument("--release", action="store_true", help="Validate release artifacts.")
    _add_targets(
        validate_cmd,
        ValidateTarget,
        "Targets to validate, comma-separated. Supported values are vst3 and au.",
    )

    commands.add_parser("clean", help="Remove generated build artifacts managed by the tool.")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run one build task; returns the process exit status."""
    args = build_parser().parse_args(argv)
    try:
        ctx = Context.discover()
        if args.command == "build":
            build(ctx, args.release, args.clean, args.target, args.install)
        elif args.command == "install":
            install(ctx, BuildProfile.from_release(args.release), args.scope, args.target)
        elif args.command == "uninstall":
            uninstall(ctx, args.target, args.dry_run)
        elif args.command == "validate":
            validate(ctx, BuildProfile.from_release(args.release), args.target)
        else:
            clean(ctx)
    except (TaskError, OSError) as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())