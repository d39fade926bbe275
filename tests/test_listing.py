from radonpm.listing import list_packages


def test_list_packages_prints_each(tmp_path, capsys):
    path = tmp_path / "installed"
    path.write_text("alpha\nbeta\n")
    result = list_packages(path)
    out = capsys.readouterr().out
    assert result == ["alpha", "beta"]
    assert "Installed packages:" in out
    assert "- alpha\n" in out
    assert "- beta\n" in out
    assert "No packages installed" not in out


def test_list_packages_empty(tmp_path, capsys):
    result = list_packages(tmp_path / "missing")
    out = capsys.readouterr().out
    assert result == []
    assert "No packages installed" in out
    assert "- " not in out