"""Show the packages recorded as installed."""

from __future__ import annotations

from pathlib import Path

from radonpm.utils import get_installed_packages, paint


def list_packages(path: str | Path | None = None) -> list[str]:
    """Print the installed packages and return them."""
    print(paint("Installed packages:", "green"))
    packages = get_installed_packages(path)
    if not packages:
        print("No packages installed")
    for package in packages:
        print(f"- {package}")
    return packages