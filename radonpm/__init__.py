"""Clone, build and install programs from git repositories, and list, search, remove and upgrade them."""

__version__ = "2.3.1"