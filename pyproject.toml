[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "radonpm"
version = "2.3.1"
description = "Package manager that builds and installs programs straight from git repositories"
requires-python = ">=3.11"
dependencies = [
    "requests",
]
keywords = ["package-manager", "git", "build", "install", "github", "gitlab", "codeberg"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Software Distribution",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
radon = "radonpm.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["radonpm"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"
