"""Filesystem, process and environment helpers for the build tasks."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Mapping, Sequence

_CMAKE_BOOL = {True: "ON", False: "OFF"}


class TaskError(Exception):
    """A build task failed."""


def copy_path(source: Path, destination: Path) -> None:
    """Copy a file, or a directory tree recursively, to `destination`."""
    source = Path(source)
    destination = Path(destination)
    if source.is_dir():
        shutil.copytree(source, destination, dirs_exist_ok=True)
    else:
        shutil.copy(source, destination)


def ensure_exists(path: Path, description: str) -> None:
    """Raise TaskError unless `path` exists."""
    if not Path(path).exists():
        raise TaskError(f"{description} not found: {path}")


def _shell_display(value: object) -> str:
    text = os.fsdecode(value) if isinstance(value, (bytes, os.PathLike)) else str(value)
    return f'"{text}"' if " " in text else text


def format_command(command: Sequence[object]) -> str:
    """Render a command line the way a person would retype it."""
    return " ".join(_shell_display(part) for part in command)


def run(
    command: Sequence[object],
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> None:
    """Echo and run `command`, raising TaskError if it does not succeed.

    `env` holds variables set on top of the current environment.
    """
    rendered = format_command(command)
    print(f"$ {rendered}", flush=True)
    full_env = None
    if env:
        full_env = dict(os.environ)
        full_env.update(env)
    args = [os.fspath(part) if isinstance(part, os.PathLike) else str(part) for part in command]
    try:
        completed = subprocess.run(args, cwd=cwd, env=full_env, check=False)
    except OSError as error:
        raise TaskError(f"failed to start {rendered}: {error}") from error
    if completed.returncode != 0:
        raise TaskError(
            f"command failed with status exit status: {completed.returncode}: {rendered}"
        )


def remove_if_exists(path: Path) -> None:
    """Remove a file or directory tree; a missing path is not an error."""
    path = Path(path)
    if not path.exists():
        return
    if path.is_dir():
        shutil.rmtree(path)
    else:
        path.unlink()


def _env_path(name: str, environ: Mapping[str, str] | None) -> Path:
    environ = os.environ if environ is None else environ
    if name not in environ:
        raise TaskError(f"{name} is not set")
    return Path(environ[name])


def home_dir(environ: Mapping[str, str] | None = None) -> Path:
    return _env_path("HOME", environ)


def local_app_data(environ: Mapping[str, str] | None = None) -> Path:
    return _env_path("LOCALAPPDATA", environ)


def common_program_files(environ: Mapping[str, str] | None = None) -> Path:
    return _env_path("CommonProgramFiles", environ)


def env_value_or(name: str, fallback: str, environ: Mapping[str, str] | None = None) -> str:
    """The value of environment variable `name`, or `fallback` if it is unset."""
    environ = os.environ if environ is None else environ
    return environ.get(name, fallback)


def on_off(value: bool) -> str:
    """CMake's spelling of a boolean option."""
    return _CMAKE_BOOL[bool(value)]