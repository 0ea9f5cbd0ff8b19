"""Toad: read-only ecosystem context oracle for AI coding assistants."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("toad-oracle")
except PackageNotFoundError:
    __version__ = "dev"
