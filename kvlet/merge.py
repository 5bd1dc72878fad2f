"""Three-way merge planning over whole-file snapshots."""

from dataclasses import dataclass
from typing import Literal, Mapping

Resolution = Literal["keep", "take", "remove", "conflict"]


@dataclass(frozen=True)
class MergePlan:
    """Per-path outcome of a three-way merge.

    Attributes:
        take: Paths whose given-branch version replaces the current one.
        remove: Paths to drop from the merged snapshot.
        conflicts: Paths changed incompatibly on both sides.
    """

    take: tuple[str, ...]
    remove: tuple[str, ...]
    conflicts: tuple[str, ...]

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


@dataclass(frozen=True)
class MergeResult:
    """Result of a merge operation."""

    merged: bool
    commit: str | None
    strategy: str  # "already_merged", "fast_forward", "three_way"
    conflicts: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return self.merged

    @property
    def message(self) -> str | None:
        if self.strategy == "already_merged":
            return "Given branch is an ancestor of the current branch."
        if self.strategy == "fast_forward":
            return "Current branch fast-forwarded."
        if self.conflicts:
            return "Encountered a merge conflict."
        return None


def resolve(
    current: str | None,
    given: str | None,
    split: str | None,
) -> Resolution:
    """Decide one path from its digests at the current, given and split
    commits (None where the path is absent).
    """
    if current == given:
        return "keep"
    if split is not None:
        if current == split:
            return "remove" if given is None else "take"
        if given == split:
            return "keep"
        return "conflict"
    if current is None:
        # added only on the given side
        return "conflict"
    if given is None:
        return "keep"
    return "conflict"


def plan_merge(
    current: Mapping[str, str],
    given: Mapping[str, str],
    split: Mapping[str, str],
) -> MergePlan:
    """Resolve every path present in any of the three snapshots."""
    take: list[str] = []
    remove: list[str] = []
    conflicts: list[str] = []
    for path in sorted(set(current) | set(given) | set(split)):
        outcome = resolve(current.get(path), given.get(path), split.get(path))
        if outcome == "take":
            take.append(path)
        elif outcome == "remove":
            remove.append(path)
        elif outcome == "conflict":
            conflicts.append(path)
    return MergePlan(take=tuple(take), remove=tuple(remove), conflicts=tuple(conflicts))


def conflict_content(current: bytes | None, given: bytes | None) -> bytes:
    """Render the conflict marker file; an absent side is empty."""
    return (
        b"<<<<<<< HEAD\n"
        + (current or b"")
        + b"\n=======\n"
        + (given or b"")
        + b"\n>>>>>>>\n"
    )
