"""Remove installed binaries and drop them from the installed list."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Iterable
from pathlib import Path

from radonpm.utils import get_privilege_command, paint

SYSTEM_BIN_DIR = Path("/usr/local/bin")
LIST_PATH = Path("/etc/radon/listinstalled")
TEMP_LIST = Path("/tmp/radon_listinstalled.tmp")


def _local_bin_dir() -> Path:
    home = os.environ.get("HOME")
    if home is None:
        raise RuntimeError("HOME environment variable not set")
    return Path(home) / ".local/bin"


def find_installed_binaries(package: str, directories: Iterable[str | Path]) -> list[Path]:
    """Return files in the directories whose names mention the package and end in "(radon)"."""
    found: list[Path] = []
    for directory in directories:
        try:
            entries = sorted(Path(directory).iterdir())
        except OSError:
            continue
        found.extend(
            entry for entry in entries if package in entry.name and entry.name.endswith("(radon)")
        )
    return found


def filter_installed_list(content: str, package: str) -> str:
    """Drop every line that mentions the package."""
    return "\n".join(line for line in content.splitlines() if package not in line)


def remove(package: str) -> list[Path]:
    """Delete the package's binaries, update the installed list and return the removed paths."""
    privilege = get_privilege_command()
    binaries = find_installed_binaries(package, [SYSTEM_BIN_DIR, _local_bin_dir()])
    if not binaries:
        raise LookupError(f"Package '{package}' not found")

    for binary in binaries:
        if binary.is_relative_to(SYSTEM_BIN_DIR):
            subprocess.run([privilege, "rm", "-f", str(binary)], check=False)
        else:
            binary.unlink()
        print(f"Removed: {binary}")

    try:
        content = LIST_PATH.read_text()
    except FileNotFoundError:
        print(paint("~> Removed successfully", "green"))
        return binaries
    except OSError as exc:
        raise OSError(f"Failed to read installed list: {exc}") from exc

    try:
        TEMP_LIST.write_text(filter_installed_list(content, package))
    except OSError as exc:
        raise OSError(f"Failed to write temp list: {exc}") from exc

    moved = subprocess.run([privilege, "mv", str(TEMP_LIST), str(LIST_PATH)], check=False)
    if moved.returncode != 0:
        raise RuntimeError("Failed to update installed list")
    print(paint("~> Removed successfully", "green"))
    return binaries