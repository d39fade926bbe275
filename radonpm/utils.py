"""Shared helpers: terminal colours, dependency checks, privilege escalation and state files."""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Iterable, Sequence
from pathlib import Path

ETC_RADON = Path("/etc/radon")
VAR_LIB_RADON = Path("/var/lib/radon")

_COLOURS = {"red": 31, "green": 32, "yellow": 33}
_RESET = "\x1b[0m"

_PACKAGE_MANAGERS = (
    ("etc/apt/sources.list", "apt install"),
    ("etc/pacman.conf", "pacman -S"),
    ("etc/xbps.d", "xbps-install"),
    ("etc/dnf/dnf.conf", "dnf install"),
    ("etc/zypp/zypp.conf", "zypper install"),
)
_FALLBACK_MANAGER = "your-package-manager install"


class MissingDependenciesError(Exception):
    """Raised when required commands are not available on the system."""

    def __init__(self, missing: Iterable[str], package_manager: str) -> None:
        self.missing = list(missing)
        self.package_manager = package_manager
        lines = [
            "MISSING DEPENDENCIES:",
            *(f"- {dep}" for dep in self.missing),
            "",
            "RUN:",
            f"sudo {package_manager} {' '.join(self.missing)}",
        ]
        super().__init__("\n".join(lines))


def paint(text: str, colour: str) -> str:
    """Wrap text in the ANSI escape sequence for the named colour."""
    try:
        code = _COLOURS[colour.lower()]
    except KeyError:
        raise ValueError(f"unknown colour: {colour!r}") from None
    return f"\x1b[{code}m{text}{_RESET}"


def command_exists(name: str) -> bool:
    """Return True if an executable with this name is on PATH."""
    return shutil.which(name) is not None


def check_deps(deps: Iterable[str]) -> None:
    """Raise MissingDependenciesError listing every dependency not on PATH."""
    missing = [dep for dep in deps if not command_exists(dep)]
    if missing:
        raise MissingDependenciesError(missing, detect_package_manager())


def detect_package_manager(root: str | Path = "/") -> str:
    """Guess the install command of the system package manager under root."""
    base = Path(root)
    for marker, manager in _PACKAGE_MANAGERS:
        if (base / marker).exists():
            return manager
    return _FALLBACK_MANAGER


def get_privilege_command() -> str:
    """Return "doas" when it is available, otherwise "sudo"."""
    return "doas" if command_exists("doas") else "sudo"


def _run(args: Sequence[str]) -> bool:
    try:
        return subprocess.run(list(args), check=False).returncode == 0
    except OSError:
        return False


def setup_radon_dirs() -> None:
    """Create the configuration and state directories with elevated rights."""
    privilege = get_privilege_command()
    buildfiles = VAR_LIB_RADON / "buildfiles"

    if not ETC_RADON.exists():
        if _run([privilege, "mkdir", "-p", str(ETC_RADON)]):
            _run([privilege, "touch", str(ETC_RADON / "installed")])

    if not buildfiles.exists():
        _run([privilege, "mkdir", "-p", str(buildfiles)])


def get_installed_packages(path: str | Path | None = None) -> list[str]:
    """Read the list of installed packages, one per line."""
    target = Path(path) if path is not None else ETC_RADON / "installed"
    try:
        return target.read_text().splitlines()
    except OSError:
        return []