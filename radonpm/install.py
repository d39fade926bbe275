"""Clone a repository, build it with its own build system and install the binary."""

from __future__ import annotations

import hashlib
import os
import shutil
import subprocess
import sys
import time
import tomllib
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Any

from radonpm.utils import check_deps, get_privilege_command, paint

TMP_DIR = Path("/tmp/radon")
BUILDS_DIR = TMP_DIR / "builds"
SYSTEM_BIN_DIR = Path("/usr/local/bin")
BUILDFILES_DIR = Path("/var/lib/radon/buildfiles")
INSTALLED_LIST = Path("/etc/radon/installed")

MAKEFILES = ("Makefile", "makefile", "GNUMakefile")

_SOURCES = {
    "gitlab": ("gitlab", "gitlab.com"),
    "codeberg": ("codeberg", "codeberg.org"),
}
_DEFAULT_SOURCE = ("github", "github.com")


class InstallError(Exception):
    """Raised when a package cannot be cloned, built or installed."""


class BuildSystem(Enum):
    """Build systems that can be detected in a cloned repository."""

    MAKE = "make"
    CARGO = "cargo"
    CMAKE = "cmake"
    MESON = "meson"
    NINJA = "ninja"

    @property
    def label(self) -> str:
        return {
            BuildSystem.MAKE: "Make",
            BuildSystem.CARGO: "Cargo",
            BuildSystem.CMAKE: "CMake",
            BuildSystem.MESON: "Meson",
            BuildSystem.NINJA: "Ninja",
        }[self]


def _read_text(path: Path) -> str:
    try:
        return path.read_text()
    except (OSError, UnicodeDecodeError):
        return ""


def _load_toml(path: Path) -> dict[str, Any] | None:
    try:
        return tomllib.loads(path.read_text())
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError):
        return None


def _existing_makefile(directory: Path, makefiles: Sequence[str] = MAKEFILES) -> str | None:
    return next((name for name in makefiles if (directory / name).exists()), None)


def detect_build_system(build_dir: str | Path) -> BuildSystem:
    """Return the build system of a source tree, checking Make first."""
    root = Path(build_dir)
    if _existing_makefile(root) is not None:
        return BuildSystem.MAKE
    for marker, system in (
        ("Cargo.toml", BuildSystem.CARGO),
        ("CMakeLists.txt", BuildSystem.CMAKE),
        ("meson.build", BuildSystem.MESON),
        ("build.ninja", BuildSystem.NINJA),
    ):
        if (root / marker).exists():
            return system
    raise InstallError("No build system found")


def find_build_file(build_dir: str | Path, build_system: BuildSystem) -> str | None:
    """Return the name of the file that drives the given build system."""
    if build_system is BuildSystem.MAKE:
        return _existing_makefile(Path(build_dir))
    return {
        BuildSystem.CARGO: "Cargo.toml",
        BuildSystem.CMAKE: "CMakeLists.txt",
        BuildSystem.MESON: "meson.build",
        BuildSystem.NINJA: "build.ninja",
    }[build_system]


def file_sha256(path: str | Path) -> str:
    """Return the hex SHA-256 digest of a file's contents."""
    return hashlib.sha256(Path(path).read_bytes()).hexdigest()


def cargo_version(text: str) -> str | None:
    """Return the quoted value of the first line starting with "version = ", if any."""
    line = next((line for line in text.splitlines() if line.startswith("version = ")), None)
    if line is None:
        return None
    parts = line.split('"')
    return parts[1] if len(parts) > 1 else ""


def _default_deps(build_dir: Path, build_system: BuildSystem) -> list[str]:
    match build_system:
        case BuildSystem.MAKE:
            return parse_make_deps(build_dir) + ["make"]
        case BuildSystem.CARGO:
            return parse_cargo_deps(build_dir)
        case BuildSystem.CMAKE:
            return ["cmake", "make"]
        case BuildSystem.MESON:
            return ["meson", "ninja"]
        case BuildSystem.NINJA:
            return ["ninja"]


def build_metadata(
    domain: str,
    package: str,
    build_file: str,
    build_dir: str | Path,
    build_system: BuildSystem,
) -> str:
    """Render the metadata.toml recorded for an installed package."""
    root = Path(build_dir)
    try:
        digest = file_sha256(root / build_file)
    except OSError:
        digest = hashlib.sha256(b"").hexdigest()
    lines = [
        f'repo_url = "https://{domain}/{package}"',
        f'build_file = "{build_file}"',
        f'hash = "{digest}"',
    ]
    if build_system is BuildSystem.CARGO:
        version = cargo_version(_read_text(root / "Cargo.toml"))
        if version is not None:
            lines.append(f'version = "{version}"')
    return "".join(f"{line}\n" for line in lines)


def get_cargo_binary_name(build_dir: str | Path) -> str | None:
    """Return the first [[bin]] name of Cargo.toml, else the package name."""
    data = _load_toml(Path(build_dir) / "Cargo.toml")
    if data is None:
        return None
    bins = data.get("bin")
    if isinstance(bins, list):
        for entry in bins:
            if isinstance(entry, dict) and isinstance(entry.get("name"), str):
                return entry["name"]
    package = data.get("package")
    if isinstance(package, dict) and isinstance(package.get("name"), str):
        return package["name"]
    return None


def _existing(path: Path) -> Path | None:
    return path if path.exists() else None


def find_binary_path(
    build_dir: str | Path, repo: str, build_system: BuildSystem
) -> Path | None:
    """Locate the binary produced by a build, or None if it is missing."""
    root = Path(build_dir)
    match build_system:
        case BuildSystem.CARGO:
            name = get_cargo_binary_name(root) or repo
            return _existing(root / "target/release" / name) or _existing(
                root / "target/debug" / name
            )
        case BuildSystem.MAKE | BuildSystem.NINJA:
            return _existing(root / repo)
        case BuildSystem.CMAKE:
            return _existing(root / "build" / repo)
        case BuildSystem.MESON:
            return find_executable_in_dir(root / "build", repo)
    return None


def find_executable_in_dir(directory: str | Path, name: str) -> Path | None:
    """Search a directory tree for a regular file with the given name."""
    try:
        entries = sorted(Path(directory).iterdir())
    except OSError:
        return None
    for entry in entries:
        if entry.is_dir():
            found = find_executable_in_dir(entry, name)
            if found is not None:
                return found
        elif entry.is_file() and entry.name == name:
            return entry
    return None


def parse_make_deps(directory: str | Path, makefiles: Sequence[str] = MAKEFILES) -> list[str]:
    """Read dependencies from a "# DEPENDENCIES: a, b" line of the makefile."""
    root = Path(directory)
    makefile = _existing_makefile(root, makefiles) or "Makefile"
    for line in _read_text(root / makefile).splitlines():
        if "# DEPENDENCIES:" in line:
            return [dep.strip() for dep in line.split(":")[1].split(",")]
    return []


def parse_cargo_deps(directory: str | Path) -> list[str]:
    """Read the string list at package.metadata.radon.dependencies of Cargo.toml."""
    node: Any = _load_toml(Path(directory) / "Cargo.toml") or {}
    for key in ("package", "metadata", "radon", "dependencies"):
        if not isinstance(node, dict):
            return []
        node = node.get(key)
    if not isinstance(node, list):
        return []
    return [dep for dep in node if isinstance(dep, str)]


def apply_patches(build_dir: str | Path, patches_dir: str | Path) -> list[Path]:
    """Apply every *.patch file in patches_dir and return the ones that applied."""
    patches = sorted(p for p in Path(patches_dir).iterdir() if p.suffix == ".patch")
    applied: list[Path] = []
    for patch in patches:
        print(f"Applying patch: {patch}")
        try:
            result = subprocess.run(
                ["patch", "-Np1", "--directory", str(build_dir), "--input", str(patch)],
                check=False,
            )
        except OSError as exc:
            raise InstallError(f"Failed to apply patch: {exc}") from exc
        if result.returncode == 0:
            applied.append(patch)
        else:
            print(f"{paint('Error', 'red')}: Failed to apply {patch}", file=sys.stderr)
    return applied


def _try_run(args: Sequence[str], cwd: Path | None = None, quiet: bool = True) -> bool:
    try:
        result = subprocess.run(
            list(args),
            cwd=cwd,
            stdout=subprocess.DEVNULL if quiet else None,
            check=False,
        )
    except OSError:
        return False
    return result.returncode == 0


def _run_required(
    args: Sequence[str], failure: str, cwd: Path | None = None, quiet: bool = True
) -> bool:
    try:
        result = subprocess.run(
            list(args),
            cwd=cwd,
            stdout=subprocess.DEVNULL if quiet else None,
            check=False,
        )
    except OSError as exc:
        raise InstallError(f"{failure}: {exc}") from exc
    return result.returncode == 0


def _build(build_dir: Path, build_system: BuildSystem) -> bool:
    match build_system:
        case BuildSystem.MAKE:
            makefile = _existing_makefile(build_dir) or "Makefile"
            return _run_required(["make", "-f", makefile], "Make command failed", build_dir)
        case BuildSystem.CMAKE:
            out = build_dir / "build"
            out.mkdir(parents=True, exist_ok=True)
            if _try_run(["cmake", "-DCMAKE_BUILD_TYPE=Release", ".."], out):
                return True
            return _run_required(["cmake", ".."], "CMake command failed", out)
        case BuildSystem.CARGO:
            return _run_required(
                [
                    "cargo", "build", "--release",
                    "--manifest-path", str(build_dir / "Cargo.toml"),
                    "--target-dir", str(build_dir / "target"),
                ],
                "Cargo command failed",
                build_dir,
            )
        case BuildSystem.MESON:
            out = build_dir / "build"
            out.mkdir(parents=True, exist_ok=True)
            if not _try_run(["meson", "setup", str(out)], build_dir):
                _run_required(["meson", str(out)], "Meson setup failed", build_dir)
            return _run_required(["ninja", "-C", str(out)], "Ninja build failed")
        case BuildSystem.NINJA:
            return _run_required(["ninja"], "Ninja build failed", build_dir)
    return False


def _review_build_file(path: Path) -> bool:
    """Show the build file and ask whether to go on."""
    if not _try_run(["less", str(path)], quiet=False):
        _try_run(["cat", str(path)], quiet=False)
    try:
        answer = input("~> Proceed with build? [Y/n] ")
    except EOFError:
        answer = ""
    return answer.strip().lower() != "n"


def _record_build_files(
    privilege: str,
    repo: str,
    domain: str,
    package: str,
    build_file: str,
    build_dir: Path,
    build_system: BuildSystem,
) -> None:
    buildfile_dir = BUILDFILES_DIR / repo
    if not _try_run([privilege, "mkdir", "-p", str(buildfile_dir)], quiet=False):
        return
    if not _try_run([privilege, "cp", "-r", str(build_dir), str(buildfile_dir)], quiet=False):
        return
    metadata = build_metadata(domain, package, build_file, build_dir, build_system)
    temp_meta = Path("/tmp") / f"{repo}-metadata.toml"
    try:
        temp_meta.write_text(metadata)
    except OSError:
        pass
    _try_run([privilege, "mv", str(temp_meta), str(buildfile_dir / "metadata.toml")], quiet=False)


def install(
    package: str,
    source: str | None = None,
    local: bool = False,
    branch: str | None = None,
    patches: str | Path | None = None,
) -> Path | None:
    """Clone, build and install a package; return the installed path or None if cancelled."""
    start = time.monotonic()
    BUILDS_DIR.mkdir(parents=True, exist_ok=True)

    source_name, domain = _SOURCES.get(source or "", _DEFAULT_SOURCE)
    repo = package.split("/")[-1]
    build_dir = BUILDS_DIR / repo
    if build_dir.exists():
        shutil.rmtree(build_dir)

    print("\x1b[1m~> Cloning repository\x1b[0m")
    clone = ["git", "clone", "--depth=1", f"https://{domain}/{package}"]
    if branch is not None:
        clone += ["--branch", branch]
    clone.append(str(build_dir))
    if not _run_required(clone, "Git command failed"):
        raise InstallError("Failed to clone repository")

    if patches is not None:
        apply_patches(build_dir, patches)

    print("\x1b[1m~> Searching for build file\x1b[0m")
    build_system = detect_build_system(build_dir)
    deps = _default_deps(build_dir, build_system)
    print(f"~> Build file is {paint(build_system.label, 'green')}")

    build_file = find_build_file(build_dir, build_system)
    if build_file is not None and (build_dir / build_file).exists():
        print(f"~> Showing build file: {build_file}")
        if not _review_build_file(build_dir / build_file):
            print(paint("Build cancelled by user", "yellow"))
            return None

    check_deps(deps)

    print("~> Building...")
    if not _build(build_dir, build_system):
        raise InstallError("Build failed")

    print("~> Installing...")
    bin_name = f"({source_name}){repo}(radon)"
    bin_path = find_binary_path(build_dir, repo, build_system)
    if bin_path is None:
        raise InstallError("Failed to find built binary")

    privilege = get_privilege_command()
    if local:
        home = os.environ.get("HOME")
        if home is None:
            raise InstallError("HOME environment variable not set")
        dest = Path(home) / ".local/bin"
        dest.mkdir(parents=True, exist_ok=True)
        target = dest / bin_name
        shutil.copy(bin_path, target)
    else:
        print(paint("WARNING: Installing system-wide", "yellow"))
        target = SYSTEM_BIN_DIR / bin_name
        _run_required(
            [privilege, "install", "-m755", str(bin_path), str(target)],
            "Installation failed",
            quiet=False,
        )
        try:
            subprocess.run(
                [privilege, "tee", "-a", str(INSTALLED_LIST)],
                input=f"{repo}\n",
                text=True,
                stdout=subprocess.DEVNULL,
                check=False,
            )
        except OSError as exc:
            raise InstallError(f"Failed to update package list: {exc}") from exc
        if build_file is not None:
            _record_build_files(
                privilege, repo, domain, package, build_file, build_dir, build_system
            )

    elapsed = int(time.monotonic() - start)
    print(f"{paint('~> INSTALL FINISHED', 'green')} in {elapsed}s")

    if local:
        print(paint("Installed to ~/.local/bin. Make sure this directory is in your PATH.", "green"))
    else:
        print(
            paint(
                "Warning: radon installs packages to /usr/local/bin by default.\n"
                "If /usr/local/bin is not in your $PATH, you may need to add it.\n"
                "Alternatively, you can move the installed binary manually:\n"
                f"{privilege} cp /usr/local/bin/{bin_name} /usr/bin\n"
                "or\n"
                f"doas cp /usr/local/bin/{bin_name} /usr/bin",
                "yellow",
            )
        )
    return target