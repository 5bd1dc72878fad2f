"""The working tree: plain files in the repository root."""

import os
from pathlib import Path
from typing import Iterable

from .persistence import digest, read_file

_SEPARATORS = tuple(s for s in ("/", os.sep, os.altsep) if s)


class WorkingTree:
    """Plain files directly under ``root``.

    Only regular files at the top level are tracked; directories
    (including the repository's own metadata directory) are ignored.
    """

    def __init__(self, root: str | Path, ignore: Iterable[str] = ()) -> None:
        self.root = Path(root)
        self.ignore = frozenset(ignore)

    def tracks(self, name: str) -> bool:
        """Whether ``name`` is a plain top-level file name in this tree."""
        if not name or name in (".", "..") or name in self.ignore:
            return False
        return not any(sep in name for sep in _SEPARATORS)

    def path(self, name: str) -> Path:
        return self.root / name

    def files(self) -> list[str]:
        """Sorted names of the regular files in the tree."""
        return sorted(
            p.name for p in self.root.iterdir() if p.is_file() and self.tracks(p.name)
        )

    def exists(self, name: str) -> bool:
        return self.tracks(name) and self.path(name).is_file()

    def read(self, name: str) -> bytes:
        return read_file(self.path(name))

    def digest(self, name: str) -> str | None:
        """Digest of the file's current content, or None if missing."""
        if not self.exists(name):
            return None
        return digest(self.read(name))

    def write(self, name: str, data: bytes) -> None:
        self.path(name).write_bytes(data)

    def delete(self, name: str) -> None:
        self.path(name).unlink(missing_ok=True)
