"""Modfile - binary packager for hierarchical scene mods."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("modfile-packager")
except PackageNotFoundError:
    __version__ = "(local)"
