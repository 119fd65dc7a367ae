"""Packing the built frontend into the zip archive the plugin serves its GUI from."""

from __future__ import annotations

import os
import zipfile
from enum import Enum
from pathlib import Path

ZIP_NAME = "wrac_gain_plugin_gui.zip"

_FILE_MODE = 0o644 << 16
_DIR_MODE = (0o40755 << 16) | 0x10


def _entry(name: str, mode: int) -> zipfile.ZipInfo:
    # The default 1980-01-01 timestamp keeps the archive reproducible.
    info = zipfile.ZipInfo(name)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = mode
    return info


def _add_directory_contents(archive: zipfile.ZipFile, root: Path, current: Path) -> None:
    # Sorted so the same input always produces the same archive.
    for path in sorted(current.iterdir(), key=lambda entry: entry.name):
        name = path.relative_to(root).as_posix()
        if path.is_dir():
            archive.writestr(_entry(f"{name}/", _DIR_MODE), b"")
            _add_directory_contents(archive, root, path)
        else:
            archive.writestr(_entry(name, _FILE_MODE), path.read_bytes())


def create_zip(src_dir: str | os.PathLike[str], out_zip: str | os.PathLike[str]) -> None:
    """Write everything below `src_dir` into a deflated zip at `out_zip`."""
    src_dir = Path(src_dir)
    with zipfile.ZipFile(out_zip, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        _add_directory_contents(archive, src_dir, src_dir)


def bundle_frontend(
    manifest_dir: str | os.PathLike[str],
    out_dir: str | os.PathLike[str],
    profile: str | Enum,
) -> Path | None:
    """Zip `../src-gui/dist` for release builds; debug builds use a dev server.

    Returns the archive path, or None when nothing was built.
    """
    profile_name = profile.value if isinstance(profile, Enum) else profile
    if profile_name != "release":
        return None

    gui_dist_dir = Path(manifest_dir).parent / "src-gui" / "dist"
    out_zip = Path(out_dir) / ZIP_NAME
    if not gui_dist_dir.exists():
        raise FileNotFoundError(
            f"frontend build output was not found at {gui_dist_dir}. Run "
            "`npm install && npm run build` in src-gui before release builds."
        )
    create_zip(gui_dist_dir, out_zip)
    return out_zip