import sys

import pytest

from wracgain.util import (
    TaskError,
    common_program_files,
    copy_path,
    ensure_exists,
    env_value_or,
    format_command,
    home_dir,
    local_app_data,
    on_off,
    remove_if_exists,
    run,
)


def test_copy_file(tmp_path):
    source = tmp_path / "a.bin"
    source.write_bytes(b"\x00\x01payload")
    destination = tmp_path / "b.bin"
    copy_path(source, destination)
    assert destination.read_bytes() == source.read_bytes()


def test_copy_directory_tree(tmp_path):
    source = tmp_path / "bundle"
    (source / "Contents" / "MacOS").mkdir(parents=True)
    (source / "Contents" / "Info.plist").write_text("info")
    (source / "Contents" / "MacOS" / "bin").write_text("binary")
    destination = tmp_path / "copy"
    copy_path(source, destination)
    assert (destination / "Contents" / "Info.plist").read_text() == "info"
    assert (destination / "Contents" / "MacOS" / "bin").read_text() == "binary"


def test_ensure_exists(tmp_path):
    ensure_exists(tmp_path, "dir")
    missing = tmp_path / "nope"
    with pytest.raises(TaskError, match="CLAP artifact not found"):
        ensure_exists(missing, "CLAP artifact")


def test_format_command_quotes_spaces():
    assert format_command(["cmake", "-S", "a b"]) == 'cmake -S "a b"'


def test_run_success_uses_cwd_and_env(tmp_path, capsys):
    script = (
        "import os, pathlib; "
        "pathlib.Path('out.txt').write_text(os.environ['WRAC_TEST_VALUE'])"
    )
    run([sys.executable, "-c", script], cwd=tmp_path, env={"WRAC_TEST_VALUE": "hello"})
    assert (tmp_path / "out.txt").read_text() == "hello"
    assert capsys.readouterr().out.startswith("$ ")


def test_run_failure_raises(tmp_path):
    with pytest.raises(TaskError, match="command failed with status"):
        run([sys.executable, "-c", "import sys; sys.exit(3)"], cwd=tmp_path)


def test_run_missing_program_raises(tmp_path):
    with pytest.raises(TaskError):
        run([str(tmp_path / "no-such-program")], cwd=tmp_path)


def test_remove_if_exists(tmp_path):
    file_path = tmp_path / "f"
    file_path.write_text("x")
    tree = tmp_path / "d" / "e"
    tree.mkdir(parents=True)
    remove_if_exists(file_path)
    remove_if_exists(tmp_path / "d")
    remove_if_exists(tmp_path / "missing")
    assert not file_path.exists()
    assert not (tmp_path / "d").exists()


def test_env_dirs():
    environ = {"HOME": "/home/user", "LOCALAPPDATA": "/lad", "CommonProgramFiles": "/cpf"}
    assert str(home_dir(environ)) == str(type(home_dir(environ))("/home/user"))
    assert local_app_data(environ).name == "lad"
    assert common_program_files(environ).name == "cpf"


@pytest.mark.parametrize(
    "func, name",
    [(home_dir, "HOME"), (local_app_data, "LOCALAPPDATA"), (common_program_files, "CommonProgramFiles")],
)
def test_env_dirs_missing(func, name):
    with pytest.raises(TaskError, match=f"{name} is not set"):
        func({})


def test_env_value_or():
    assert env_value_or("MACOSX_DEPLOYMENT_TARGET", "11.0", {}) == "11.0"
    assert env_value_or("X", "fallback", {"X": "set"}) == "set"


def test_on_off():
    assert on_off(True) == "ON"
    assert on_off(False) == "OFF"