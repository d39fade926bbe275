"""Check installed packages for changed build files and reinstall them."""

from __future__ import annotations

import shutil
import subprocess
import sys
from collections.abc import Sequence
from pathlib import Path

from radonpm.install import InstallError, cargo_version, file_sha256, install
from radonpm.utils import get_installed_packages, get_privilege_command, paint

BUILDFILES_DIR = Path("/var/lib/radon/buildfiles")
UPGRADE_DIR = Path("/tmp/radon/upgrade")


def metadata_field(metadata: str, key: str) -> str:
    """Return the quoted value of the first line starting with '<key> = ', or ""."""
    prefix = f"{key} = "
    line = next((line for line in metadata.splitlines() if line.startswith(prefix)), None)
    if line is None:
        return ""
    parts = line.split('"')
    return parts[1] if len(parts) > 1 else ""


def needs_upgrade(
    new_hash: str, new_version: str, stored_hash: str, stored_version: str
) -> bool:
    """Return True when either the build file hash or the version changed."""
    return new_hash != stored_hash or new_version != stored_version


def _ask(prompt: str) -> str:
    try:
        return input(prompt).strip()
    except EOFError:
        return ""


def _run(args: Sequence[str]) -> bool:
    try:
        return subprocess.run(list(args), check=False).returncode == 0
    except OSError:
        return False


def _error(message: str) -> None:
    print(f"{paint('Error', 'red')}: {message}")


def _upgrade_one(pkg: str) -> bool:
    print(f"Checking {pkg} for updates...")
    buildfile_dir = BUILDFILES_DIR / pkg
    if not buildfile_dir.exists():
        print(f"{paint('Warning', 'yellow')}: No build files found for {pkg}")
        return False

    metadata_path = buildfile_dir / "metadata.toml"
    if not metadata_path.exists():
        print(f"{paint('Warning', 'yellow')}: No metadata found for {pkg}")
        return False

    try:
        metadata = metadata_path.read_text()
    except (OSError, UnicodeDecodeError):
        metadata = ""
    stored_hash = metadata_field(metadata, "hash")
    stored_version = metadata_field(metadata, "version")

    tmp_build = UPGRADE_DIR / pkg
    if tmp_build.exists():
        shutil.rmtree(tmp_build, ignore_errors=True)
    try:
        tmp_build.mkdir(parents=True, exist_ok=True)
    except OSError:
        pass

    repo_url = metadata_field(metadata, "repo_url")
    if not repo_url:
        _error(f"No repo URL for {pkg}")
        return False

    if not _run(["git", "clone", "--depth=1", repo_url, str(tmp_build)]):
        _error(f"Failed to clone {pkg}")
        return False

    build_file_name = metadata_field(metadata, "build_file")
    if not build_file_name:
        _error(f"No build file for {pkg}")
        return False

    build_file_path = tmp_build / build_file_name
    if not build_file_path.exists():
        _error("Build file not found")
        return False

    new_hash = file_sha256(build_file_path)
    new_version = ""
    if build_file_name == "Cargo.toml":
        try:
            new_version = cargo_version(build_file_path.read_text()) or ""
        except (OSError, UnicodeDecodeError):
            new_version = ""

    if not needs_upgrade(new_hash, new_version, stored_hash, stored_version):
        print(f"{pkg} is up to date")
        return False

    print(f"\n{paint('NEW', 'green')} update available for {pkg}")
    print(f"Old version: {stored_version}")
    print(f"New version: {new_version}")
    print(f"Old hash: {stored_hash}")
    print(f"New hash: {new_hash}\n")

    if _ask("Show diff? [y/N] ").lower() == "y":
        _run(["diff", "-u", str(buildfile_dir / build_file_name), str(build_file_path)])

    if _ask(f"\nUpgrade {pkg}? [Y/n] ").lower() == "n":
        print(f"Skipping {pkg}")
        return False

    print(f"Reinstalling {pkg}...")
    try:
        install(pkg, None, False, None, None)
    except InstallError as exc:
        print(f"{paint('Error', 'red')}: {exc}", file=sys.stderr)
        return False

    _run([get_privilege_command(), "cp", "-r", str(tmp_build), str(buildfile_dir)])
    return True


def upgrade(all_packages: bool = False, package: str | None = None) -> list[str]:
    """Upgrade every installed package or a single one; return those reinstalled."""
    if all_packages:
        packages = get_installed_packages()
    elif package is not None:
        packages = [package]
    else:
        raise ValueError("Specify --all or --package")

    if not packages:
        print("No packages to upgrade")
        return []

    return [pkg for pkg in packages if _upgrade_one(pkg)]