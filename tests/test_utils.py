import subprocess
from pathlib import Path
from unittest import mock

import pytest

from radonpm import utils


def _fake_privileged_run(cmd, *args, **kwargs):
    """Carry out the mkdir/touch calls locally, without the privilege prefix."""
    program, *rest = cmd[1:]
    if program == "mkdir":
        Path(rest[-1]).mkdir(parents=True, exist_ok=True)
    elif program == "touch":
        Path(rest[-1]).touch()
    return subprocess.CompletedProcess(cmd, 0)


def test_paint_red_escape_sequence():
    assert utils.paint("x", "red") == "\x1b[31mx\x1b[0m"


@pytest.mark.parametrize("colour", ["red", "green", "yellow", "GREEN"])
def test_paint_keeps_text_and_resets(colour):
    painted = utils.paint("hello", colour)
    assert "hello" in painted
    assert painted.startswith("\x1b[")
    assert painted.endswith("\x1b[0m")


def test_paint_unknown_colour():
    with pytest.raises(ValueError):
        utils.paint("x", "mauve")


def test_command_exists_true():
    with mock.patch("shutil.which", return_value="/usr/bin/git"):
        assert utils.command_exists("git") is True


def test_command_exists_false():
    with mock.patch("shutil.which", return_value=None):
        assert utils.command_exists("nope") is False


def test_check_deps_reports_missing():
    def which(name):
        return "/usr/bin/" + name if name == "make" else None

    with mock.patch("shutil.which", side_effect=which):
        with pytest.raises(utils.MissingDependenciesError) as info:
            utils.check_deps(["make", "cmake", "ninja"])
    err = info.value
    assert err.missing == ["cmake", "ninja"]
    text = str(err)
    assert text.startswith("MISSING DEPENDENCIES:")
    assert "- cmake" in text
    assert "- make\n" not in text
    assert text.endswith(f"sudo {err.package_manager} cmake ninja")


def test_detect_package_manager_fallback(tmp_path):
    assert utils.detect_package_manager(tmp_path) == "your-package-manager install"


def test_detect_package_manager_pacman(tmp_path):
    (tmp_path / "etc").mkdir()
    (tmp_path / "etc" / "pacman.conf").write_text("")
    assert utils.detect_package_manager(tmp_path) == "pacman -S"


def test_detect_package_manager_apt_wins(tmp_path):
    (tmp_path / "etc" / "apt").mkdir(parents=True)
    (tmp_path / "etc" / "apt" / "sources.list").write_text("")
    (tmp_path / "etc" / "pacman.conf").write_text("")
    assert utils.detect_package_manager(tmp_path) == "apt install"


def test_detect_package_manager_xbps_directory(tmp_path):
    (tmp_path / "etc" / "xbps.d").mkdir(parents=True)
    assert utils.detect_package_manager(tmp_path) == "xbps-install"


def test_privilege_prefers_doas():
    with mock.patch("shutil.which", return_value="/usr/bin/doas"):
        assert utils.get_privilege_command() == "doas"


def test_privilege_falls_back_to_sudo():
    with mock.patch("shutil.which", return_value=None):
        assert utils.get_privilege_command() == "sudo"


def test_installed_packages_missing_file(tmp_path):
    assert utils.get_installed_packages(tmp_path / "installed") == []


def test_installed_packages_lines(tmp_path):
    path = tmp_path / "installed"
    path.write_text("alpha\nbeta\n")
    assert utils.get_installed_packages(path) == ["alpha", "beta"]


def test_setup_creates_missing_dirs(tmp_path, monkeypatch):
    etc = tmp_path / "etc-radon"
    var = tmp_path / "var-radon"
    monkeypatch.setattr(utils, "ETC_RADON", etc)
    monkeypatch.setattr(utils, "VAR_LIB_RADON", var)
    with mock.patch("shutil.which", return_value=None), mock.patch(
        "subprocess.run", side_effect=_fake_privileged_run
    ) as run:
        utils.setup_radon_dirs()
    calls = [c.args[0] for c in run.call_args_list]
    assert calls == [
        ["sudo", "mkdir", "-p", str(etc)],
        ["sudo", "touch", str(etc / "installed")],
        ["sudo", "mkdir", "-p", str(var / "buildfiles")],
    ]
    assert (etc / "installed").is_file()
    assert (var / "buildfiles").is_dir()
    assert utils.get_installed_packages(etc / "installed") == []


def test_setup_skips_touch_when_mkdir_fails(tmp_path, monkeypatch):
    etc = tmp_path / "etc-radon"
    var = tmp_path / "var-radon"
    (var / "buildfiles").mkdir(parents=True)
    monkeypatch.setattr(utils, "ETC_RADON", etc)
    monkeypatch.setattr(utils, "VAR_LIB_RADON", var)
    failed = subprocess.CompletedProcess([], 1)
    with mock.patch("shutil.which", return_value=None), mock.patch(
        "subprocess.run", return_value=failed
    ) as run:
        utils.setup_radon_dirs()
    assert [c.args[0] for c in run.call_args_list] == [["sudo", "mkdir", "-p", str(etc)]]
    assert not (etc / "installed").exists()
    assert utils.get_installed_packages(etc / "installed") == []


def test_setup_does_nothing_when_present(tmp_path, monkeypatch):
    etc = tmp_path / "etc-radon"
    var = tmp_path / "var-radon"
    etc.mkdir()
    (etc / "installed").write_text("alpha\nbeta\n")
    (var / "buildfiles").mkdir(parents=True)
    monkeypatch.setattr(utils, "ETC_RADON", etc)
    monkeypatch.setattr(utils, "VAR_LIB_RADON", var)
    with mock.patch("subprocess.run") as run:
        utils.setup_radon_dirs()
    assert run.call_count == 0
    assert utils.get_installed_packages(etc / "installed") == ["alpha", "beta"]