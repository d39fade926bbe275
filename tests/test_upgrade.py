import subprocess
from pathlib import Path
from unittest import mock

import pytest

from radonpm import upgrade as upgrade_module
from radonpm.install import file_sha256
from radonpm.upgrade import metadata_field, needs_upgrade, upgrade


@pytest.fixture
def dirs(tmp_path, monkeypatch):
    buildfiles = tmp_path / "buildfiles"
    work = tmp_path / "upgrade"
    buildfiles.mkdir()
    monkeypatch.setattr(upgrade_module, "BUILDFILES_DIR", buildfiles)
    monkeypatch.setattr(upgrade_module, "UPGRADE_DIR", work)
    return buildfiles, work


def _fake_run(contents):
    calls = []

    def run(args, *a, **kw):
        calls.append(list(args))
        if args[0] == "git" and contents is not None:
            dest = Path(args[-1])
            dest.mkdir(parents=True, exist_ok=True)
            (dest / "Makefile").write_text(contents)
        return subprocess.CompletedProcess(args, 0)

    return run, calls


def test_metadata_field_reads_quoted_value():
    meta = 'repo_url = "https://github.com/a/b"\nbuild_file = "Makefile"\n'
    assert metadata_field(meta, "repo_url") == "https://github.com/a/b"
    assert metadata_field(meta, "build_file") == "Makefile"


def test_metadata_field_missing_key_is_empty():
    assert metadata_field('hash = "abc"\n', "version") == ""


def test_metadata_field_requires_line_start():
    assert metadata_field(' hash = "abc"\n', "hash") == ""


def test_needs_upgrade():
    assert needs_upgrade("h", "1", "h", "1") is False
    assert needs_upgrade("h2", "1", "h", "1") is True
    assert needs_upgrade("h", "2", "h", "1") is True


def test_upgrade_requires_target():
    with pytest.raises(ValueError, match="Specify --all or --package"):
        upgrade(False, None)


def test_missing_buildfiles_skips(dirs, capsys):
    assert upgrade(False, "tool") == []
    assert "No build files found for tool" in capsys.readouterr().out


def test_missing_metadata_skips(dirs, capsys):
    buildfiles, _ = dirs
    (buildfiles / "tool").mkdir()
    assert upgrade(False, "tool") == []
    assert "No metadata found for tool" in capsys.readouterr().out


def test_missing_repo_url(dirs, capsys):
    buildfiles, work = dirs
    (buildfiles / "tool").mkdir()
    (buildfiles / "tool" / "metadata.toml").write_text('build_file = "Makefile"\n')
    assert upgrade(False, "tool") == []
    assert "No repo URL for tool" in capsys.readouterr().out
    assert (work / "tool").is_dir()


def test_up_to_date(dirs, capsys, tmp_path):
    buildfiles, _ = dirs
    contents = "all:\n\techo hi\n"
    reference = tmp_path / "ref"
    reference.write_text(contents)
    (buildfiles / "tool").mkdir()
    (buildfiles / "tool" / "metadata.toml").write_text(
        'repo_url = "https://github.com/a/tool"\n'
        'build_file = "Makefile"\n'
        f'hash = "{file_sha256(reference)}"\n'
    )
    run, calls = _fake_run(contents)
    with mock.patch("subprocess.run", side_effect=run):
        assert upgrade(False, "tool") == []
    assert "tool is up to date" in capsys.readouterr().out
    assert calls[0][:4] == ["git", "clone", "--depth=1", "https://github.com/a/tool"]


def test_changed_and_declined(dirs, capsys, monkeypatch):
    buildfiles, _ = dirs
    (buildfiles / "tool").mkdir()
    (buildfiles / "tool" / "metadata.toml").write_text(
        'repo_url = "https://github.com/a/tool"\nbuild_file = "Makefile"\nhash = "old"\n'
    )
    answers = iter(["", "n"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    run, calls = _fake_run("new contents\n")
    with mock.patch("subprocess.run", side_effect=run):
        assert upgrade(False, "tool") == []
    out = capsys.readouterr().out
    assert "update available for tool" in out
    assert "Old hash: old" in out
    assert "Skipping tool" in out
    assert all(call[0] != "diff" for call in calls)


def test_build_file_missing_after_clone(dirs, capsys):
    buildfiles, _ = dirs
    (buildfiles / "tool").mkdir()
    (buildfiles / "tool" / "metadata.toml").write_text(
        'repo_url = "https://github.com/a/tool"\nbuild_file = "Makefile"\n'
    )
    run, _ = _fake_run(None)
    with mock.patch("subprocess.run", side_effect=run):
        assert upgrade(False, "tool") == []
    assert "Build file not found" in capsys.readouterr().out