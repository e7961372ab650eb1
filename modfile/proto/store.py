"""Holds loaded mod blobs for the lifetime of a session."""

from collections.abc import Iterator

from .packager import Packager
from .types import Modfile


class ModStore:
    """Ordered collection of encoded mods.

    Owned by whatever manages mod lifecycle; ``clear`` drops everything.
    """

    def __init__(self, packager: Packager | None = None) -> None:
        self._packager = packager or Packager()
        self._mods: list[str] = []

    def __len__(self) -> int:
        return len(self._mods)

    def __iter__(self) -> Iterator[str]:
        return iter(self._mods)

    def load_file(self, blob: str) -> None:
        self._mods.append(blob)

    def clear(self) -> None:
        self._mods.clear()

    def decode_all(self) -> list[Modfile | str]:
        """Decode every loaded mod in load order."""
        return [self._packager.decode_to_modfile(blob) for blob in self._mods]
