"""Repository layout and artifact paths for the build tasks."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from wracgain.profile import BuildProfile
from wracgain.targets import Platform

PLUGIN_NAME = "WRAC Gain"
PLUGIN_ID = "com.your-company.wrac-gain"
CRATE_NAME = "wrac_gain_plugin"
CLAP_BUNDLE_NAME = "WRAC Gain.clap"
VST3_BUNDLE_NAME = "WRAC Gain.vst3"
AU_BUNDLE_NAME = "WRAC Gain.component"
STANDALONE_NAME = "WRAC Gain Standalone"
AU_TYPE = "aufx"
AU_SUBTYPE = "WtGn"
AU_MANUFACTURER = "YrCo"
AU_MANUFACTURER_NAME = "Your Company"


@dataclass(frozen=True)
class Context:
    """Where the repository, its build output and the wrapper project live."""

    root: Path
    platform: Platform
    target_dir: Path
    wrapper_dir: Path

    @classmethod
    def discover(
        cls, root: Path | None = None, environ: Mapping[str, str] | None = None
    ) -> Context:
        """Build a context for `root` (default: the current directory).

        CARGO_TARGET_DIR and CLAP_WRAPPER_DIR override the default locations.
        """
        environ = os.environ if environ is None else environ
        root = Path.cwd() if root is None else Path(root)
        target_dir = (
            Path(environ["CARGO_TARGET_DIR"]) if "CARGO_TARGET_DIR" in environ else root / "target"
        )
        wrapper_dir = (
            Path(environ["CLAP_WRAPPER_DIR"])
            if "CLAP_WRAPPER_DIR" in environ
            else root / "clap_wrapper_builder"
        )
        return cls(
            root=root,
            platform=Platform.detect(),
            target_dir=target_dir,
            wrapper_dir=wrapper_dir,
        )

    def gui_dir(self) -> Path:
        return self.root / "src-gui"

    def plugin_manifest(self) -> Path:
        return self.root / "src-plugin" / "Cargo.toml"

    def cargo_profile_dir(self, profile: BuildProfile) -> Path:
        return self.target_dir / profile.cargo_dir()

    def wrac_dir(self) -> Path:
        return self.target_dir / "wrac"

    def plugins_dir(self, profile: BuildProfile) -> Path:
        return self.wrac_dir() / "plugins" / profile.artifact_dir()

    def cmake_dir(self, purpose: str, profile: BuildProfile) -> Path:
        # Kept short and fixed so build directories are reproducible.
        return self.wrac_dir() / "cmake" / f"{purpose}-{profile.cmake_suffix()}"

    def standalone_dir(self, profile: BuildProfile) -> Path:
        return self.wrac_dir() / "standalone" / profile.artifact_dir()

    def clap_bundle(self, profile: BuildProfile) -> Path:
        return self.plugins_dir(profile) / CLAP_BUNDLE_NAME

    def vst3_bundle(self, profile: BuildProfile) -> Path:
        return self.plugins_dir(profile) / VST3_BUNDLE_NAME

    def au_bundle(self, profile: BuildProfile) -> Path:
        return self.plugins_dir(profile) / AU_BUNDLE_NAME

    def standalone_artifact(self, profile: BuildProfile) -> Path:
        suffix = ".app" if self.platform is Platform.MACOS else ".exe"
        return self.standalone_dir(profile) / f"{STANDALONE_NAME}{suffix}"

    def dynamic_library(self, profile: BuildProfile) -> Path:
        return self.cargo_profile_dir(profile) / self.platform.dynamic_library_name()