"""Staging area: pending adds and removals for the next commit."""

from dataclasses import dataclass, field
from typing import Mapping

from .errors import NothingToRemove
from .persistence import digest
from .store import ObjectStore


@dataclass
class StagingArea:
    """Buffered changes relative to the current commit.

    Staged adds map a path to the digest of its new content. Staged
    removals are tombstones: the path is dropped from the next commit.
    A path is never both added and removed.
    """

    additions: dict[str, str] = field(default_factory=dict)
    removals: set[str] = field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        return not (self.additions or self.removals)

    def __contains__(self, path: object) -> bool:
        return path in self.additions or path in self.removals

    def add(
        self,
        path: str,
        content: bytes,
        store: ObjectStore,
        committed: Mapping[str, str],
    ) -> str | None:
        """Stage ``content`` for ``path``.

        Re-adding content identical to the committed version un-stages
        the path instead. Returns the staged digest, or None when the
        path ended up unstaged.
        """
        key = digest(content)
        if committed.get(path) == key:
            self.additions.pop(path, None)
            self.removals.discard(path)
            return None
        self.removals.discard(path)
        store.put_blob(content)
        self.additions[path] = key
        return key

    def stage_digest(self, path: str, key: str) -> None:
        """Stage an already-stored blob digest for ``path``."""
        self.removals.discard(path)
        self.additions[path] = key

    def remove(self, path: str, committed: Mapping[str, str]) -> bool:
        """Stage a removal of ``path``.

        Clears any staged add. Returns True when the path is tracked by
        the current commit, in which case a tombstone is staged and the
        caller should delete the working file.

        Raises:
            NothingToRemove: The path is neither staged nor tracked.
        """
        was_staged = self.additions.pop(path, None) is not None
        if path in committed:
            self.removals.add(path)
            return True
        if not was_staged:
            raise NothingToRemove()
        return False

    def snapshot(self, files: Mapping[str, str]) -> dict[str, str]:
        """Apply staged changes to a commit's file mapping.

        Tombstones are applied first, then adds. The result is ordered
        by path.
        """
        result = dict(files)
        for path in self.removals:
            result.pop(path, None)
        result.update(self.additions)
        return dict(sorted(result.items()))

    def clear(self) -> None:
        self.additions.clear()
        self.removals.clear()
