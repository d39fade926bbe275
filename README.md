# radonpm

A small package manager for software that lives in git repositories. It
clones a repository, works out which build system the repository uses (Make,
Cargo, CMake, Meson or Ninja), shows you the build file so you can review it,
builds the project and installs the resulting binary.

## Installation

```
pip install radonpm
```

Building packages needs `git` and the tools of whichever build system the
repository uses. Steps that need root rights, such as system-wide installs,
run through `doas` if it is on `PATH`, and through `sudo` otherwise.

Every command first makes sure `/etc/radon` (with an empty `installed` file)
and `/var/lib/radon/buildfiles` exist, and creates them with those rights if
they do not.

## Usage

Install a package from GitHub, which is the default host:

```
radon install owner/project
```

Choose a different host, a branch, or a directory of `.patch` files to apply
with `patch -Np1` before building:

```
radon install owner/project --gitlab
radon install owner/project --codeberg --branch develop
radon install owner/project --patches ./my-patches
```

Install into `~/.local/bin` instead of `/usr/local/bin`:

```
radon install owner/project --local
```

Before building, the build file is shown with `less` (or `cat` if `less`
fails), and you are asked `Proceed with build? [Y/n]`. Answering `n` cancels.

Installed binaries are named `(<host>)<project>(radon)`, for example
`(github)project(radon)`. The binary is looked for in these places:

- Make and Ninja: `<project>` at the top of the repository
- CMake: `build/<project>`
- Cargo: `target/release/<name>` or `target/debug/<name>`, where `<name>` is
  the first `[[bin]]` name, else the package name, else the project name
- Meson: a file named `<project>` anywhere under `build/`

Other commands:

```
radon search <query>               # search GitHub repositories
radon list                         # list installed packages
radon remove <project>             # remove an installed package
radon upgrade --package <project>  # check one package for updates
radon upgrade --all                # check every installed package
radon --version
```

`search` prints one line per repository, as `owner/name stars:N forks:N github`.

`remove` deletes every file in `/usr/local/bin` and `~/.local/bin` whose name
contains the given text and ends in `(radon)`.

`upgrade` compares the stored build file's SHA-256 hash (and, for Cargo
projects, the `version = "..."` line) with a fresh clone of the repository
URL recorded at install time. When something changed it offers to show a
`diff -u`, then asks `Upgrade <project>? [Y/n]` and reinstalls the package
from GitHub.

The command exits with status 1 and prints the error when a step fails.

## Declaring dependencies

A Makefile can list the commands it needs in a comment:

```
# DEPENDENCIES: gcc, pkg-config
```

A Cargo project can list them in `Cargo.toml`:

```toml
[package.metadata.radon]
dependencies = ["pkg-config"]
```

`make` is always required for Make and CMake projects, `cmake` for CMake,
`meson` and `ninja` for Meson, and `ninja` for Ninja. If any of them are
missing, radon lists them, prints the install command for your
distribution's package manager (apt, pacman, xbps, dnf or zypper) and stops.

## Files

- `/etc/radon/installed` holds the list of installed packages; system-wide
  installs append to it, and `list` and `upgrade --all` read it
- `/var/lib/radon/buildfiles/<project>` holds a copy of the build tree and
  `metadata.toml` (`repo_url`, `build_file`, `hash`, and `version` for Cargo)
- `/tmp/radon` is the scratch space for builds and upgrade checks

## Limitations

- Local installs (`--local`) are not recorded in `/etc/radon/installed` and
  keep no build files, so `upgrade` cannot check them.
- `remove` drops matching lines from `/etc/radon/listinstalled` when that file
  exists; it does not edit `/etc/radon/installed`.
- `search` only queries GitHub.
- Dependencies are checked, never installed.