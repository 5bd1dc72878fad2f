"""Read-only classification of working tree vs. staging vs. commit."""

from dataclasses import dataclass
from typing import Iterable, Mapping

from .staging import StagingArea
from .worktree import WorkingTree


@dataclass(frozen=True)
class Status:
    """The five status sections, each sorted lexicographically."""

    branches: tuple[str, ...]
    head: str
    staged: tuple[str, ...]
    removed: tuple[str, ...]
    modified: tuple[str, ...]
    untracked: tuple[str, ...]

    def render(self) -> str:
        sections = [
            (
                "Branches",
                [f"*{b}" if b == self.head else b for b in self.branches],
            ),
            ("Staged Files", self.staged),
            ("Removed Files", self.removed),
            ("Modifications Not Staged For Commit", self.modified),
            ("Untracked Files", self.untracked),
        ]
        blocks = []
        for title, entries in sections:
            blocks.append("\n".join([f"=== {title} ===", *entries]))
        return "\n\n".join(blocks) + "\n"


def compute_status(
    branches: Iterable[str],
    head: str,
    staging: StagingArea,
    committed: Mapping[str, str],
    worktree: WorkingTree,
) -> Status:
    """Classify every path without mutating anything.

    Args:
        branches: All branch names.
        head: The current branch name.
        staging: Pending adds and removals.
        committed: The current commit's path -> blob digest mapping.
        worktree: The working files on disk.
    """
    removed = set(staging.removals)
    staged: set[str] = set()
    modified: set[str] = set()

    for path, key in staging.additions.items():
        staged.add(path)
        if worktree.digest(path) != key:
            modified.add(f"{path} (modified)")

    for path, key in committed.items():
        if path in staging:
            continue
        current = worktree.digest(path)
        if current is None:
            modified.add(f"{path} (deleted)")
        elif current != key:
            modified.add(f"{path} (modified)")

    untracked = {
        path
        for path in worktree.files()
        if path not in staging and path not in committed
    }

    return Status(
        branches=tuple(sorted(branches)),
        head=head,
        staged=tuple(sorted(staged)),
        removed=tuple(sorted(removed)),
        modified=tuple(sorted(modified)),
        untracked=tuple(sorted(untracked)),
    )
