"""Repository state and the operations behind every command."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from .errors import (
    AlreadyInitialized,
    AlreadyOnBranch,
    BranchExists,
    CannotRemoveCurrentBranch,
    EmptyStagingArea,
    FileNotFound,
    MergeWithSelf,
    MissingMessage,
    NotFound,
    NotInitialized,
    RemoteExists,
    UncommittedChanges,
    UntrackedFileInTheWay,
)
from .graph import CommitGraph
from .merge import MergeResult, conflict_content, plan_merge
from .objects import Commit
from .persistence import deserialize, read_file, serialize, write_file
from .staging import StagingArea
from .status import Status, compute_status
from .store import ObjectStore
from .worktree import WorkingTree

if TYPE_CHECKING:
    from .remote import SyncResult

logger = logging.getLogger(__name__)

REPO_DIR = ".kvlet"
STATE_FILE = "state"
DEFAULT_BRANCH = "master"


def repo_dir_name() -> str:
    """Name of the metadata directory (``KVLET_DIR`` overrides)."""
    return os.environ.get("KVLET_DIR", REPO_DIR)


@dataclass
class RepositoryState:
    """Branches, HEAD, staging and remotes, persisted as one record."""

    branches: dict[str, str]
    head: str
    staging: StagingArea = field(default_factory=StagingArea)
    remotes: dict[str, str] = field(default_factory=dict)

    @property
    def head_commit(self) -> str:
        return self.branches[self.head]


class Repository:
    """A working tree plus its object store and repository state.

    Every operation validates its preconditions before mutating
    anything, then applies its changes and saves the state with a
    write-then-rename. Failures are raised as ``KvletError`` subclasses.
    """

    def __init__(
        self,
        root: str | Path = ".",
        *,
        storage: Literal["disk", "memory"] = "disk",
        repo_dir: str | None = None,
        default_branch: str = DEFAULT_BRANCH,
    ) -> None:
        self.root = Path(root).absolute()
        self.repo_dir = self.root / (repo_dir or repo_dir_name())
        self.storage = storage
        self.default_branch = default_branch
        self.worktree = WorkingTree(self.root, ignore=(self.repo_dir.name,))
        self._store: ObjectStore | None = None
        self._graph: CommitGraph | None = None
        self._state: RepositoryState | None = None

    def __repr__(self) -> str:
        return f"Repository(root={str(self.root)!r}, storage={self.storage!r})"

    @classmethod
    def from_metadata(cls, repo_dir: str | Path) -> "Repository":
        """Open the repository whose metadata directory is ``repo_dir``."""
        repo_dir = Path(repo_dir).absolute()
        return cls(repo_dir.parent, repo_dir=repo_dir.name)

    # -- Plumbing --

    @property
    def state_file(self) -> Path:
        return self.repo_dir / STATE_FILE

    @property
    def is_initialized(self) -> bool:
        if self.storage == "memory":
            return self._state is not None
        return self.state_file.exists()

    @property
    def state(self) -> RepositoryState:
        if self._state is None:
            if not self.is_initialized:
                raise NotInitialized()
            self._state = deserialize(read_file(self.state_file))
        return self._state

    @property
    def store(self) -> ObjectStore:
        if self._store is None:
            self._store = ObjectStore.open(self.repo_dir, self.storage)
        return self._store

    @property
    def graph(self) -> CommitGraph:
        if self._graph is None:
            self._graph = CommitGraph(self.store)
        return self._graph

    def _ensure_initialized(self) -> None:
        if not self.is_initialized:
            raise NotInitialized()

    def save(self) -> None:
        if self.storage == "disk":
            write_file(self.state_file, serialize(self.state))

    def close(self) -> None:
        """Close the object store; it is reopened on next use."""
        if self._store is not None:
            self._store.close()
        self._store = None
        self._graph = None

    def __enter__(self) -> "Repository":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def current_commit(self) -> Commit:
        return self.store.get_commit(self.state.head_commit)

    # -- Setup --

    def init(self) -> str:
        """Create the repository with a root commit on the default branch."""
        if self.is_initialized or (self.storage == "disk" and self.repo_dir.exists()):
            raise AlreadyInitialized()
        if self.storage == "disk":
            self.repo_dir.mkdir(parents=True)
        root = Commit.initial()
        self.store.put_commit(root)
        self._state = RepositoryState(
            branches={self.default_branch: root.digest},
            head=self.default_branch,
        )
        self.save()
        logger.info("initialised repository at %s", self.repo_dir)
        return root.digest

    # -- Staging and commits --

    def add(self, path: str) -> str | None:
        state = self.state
        if not self.worktree.exists(path):
            raise FileNotFound()
        staged = state.staging.add(
            path,
            self.worktree.read(path),
            self.store,
            self.current_commit().files,
        )
        self.save()
        return staged

    def commit(self, message: str) -> str:
        """Commit the staged changes; returns the new commit digest."""
        return self._commit(message)

    def _commit(self, message: str, *, merge_parent: str | None = None) -> str:
        state = self.state
        if state.staging.is_empty and merge_parent is None:
            raise EmptyStagingArea()
        if not message or not message.strip():
            raise MissingMessage()
        current = self.current_commit()
        new = Commit.create(
            message,
            state.staging.snapshot(current.files),
            parent=current.digest,
            merge_parent=merge_parent,
        )
        self.store.put_commit(new)
        state.branches[state.head] = new.digest
        state.staging.clear()
        self.save()
        logger.info("committed %s on %s", new.digest[:7], state.head)
        return new.digest

    def rm(self, path: str) -> None:
        state = self.state
        tracked = state.staging.remove(path, self.current_commit().files)
        if tracked:
            self.worktree.delete(path)
        self.save()

    # -- Checkout / reset --

    def checkout_file(self, path: str) -> None:
        """Restore ``path`` from the current commit."""
        self._restore_file(self.current_commit(), path)

    def checkout_file_at(self, commit_id: str, path: str) -> None:
        """Restore ``path`` from the commit with (abbreviated) ``commit_id``."""
        self._ensure_initialized()
        commit = self.store.get_commit(self.store.resolve_prefix(commit_id))
        self._restore_file(commit, path)

    def _restore_file(self, commit: Commit, path: str) -> None:
        key = commit.files.get(path)
        if key is None:
            raise NotFound("File does not exist in that commit.")
        self.worktree.write(path, self.store.get_blob(key))

    def checkout_branch(self, name: str) -> None:
        state = self.state
        if name not in state.branches:
            raise NotFound("No such branch exists.")
        if name == state.head:
            raise AlreadyOnBranch()
        self._checkout_commit(self.store.get_commit(state.branches[name]))
        state.head = name
        self.save()
        logger.info("switched to branch %s", name)

    def reset(self, commit_id: str) -> str:
        """Move the current branch to ``commit_id`` and check it out."""
        state = self.state
        target = self.store.get_commit(self.store.resolve_prefix(commit_id))
        self._checkout_commit(target)
        state.branches[state.head] = target.digest
        self.save()
        logger.info("reset %s to %s", state.head, target.digest[:7])
        return target.digest

    def _untracked_in_the_way(self, current: Commit, target: Commit) -> list[str]:
        return [
            path
            for path in target.files
            if path not in current.files and self.worktree.exists(path)
        ]

    def _checkout_commit(self, target: Commit) -> None:
        """Replace the tracked working files with ``target``'s snapshot.

        Clears the staging area. Checks for untracked files and loads
        every blob before touching the working tree.
        """
        current = self.current_commit()
        in_the_way = self._untracked_in_the_way(current, target)
        if in_the_way:
            raise UntrackedFileInTheWay(in_the_way)
        contents = {path: self.store.get_blob(key) for path, key in target.files.items()}
        for path in current.files:
            if path not in target.files:
                self.worktree.delete(path)
        for path, data in contents.items():
            self.worktree.write(path, data)
        self.state.staging.clear()

    # -- History --

    def log(self) -> str:
        entries = [
            self.store.get_commit(key).log_entry()
            for key in self.graph.history(self.state.head_commit)
        ]
        return "".join(entry + "\n" for entry in entries)

    def global_log(self) -> str:
        self._ensure_initialized()
        return "".join(commit.log_entry() + "\n" for commit in self.store.commits())

    def find(self, message: str) -> list[str]:
        self._ensure_initialized()
        found = [c.digest for c in self.store.commits() if c.message == message]
        if not found:
            raise NotFound("Found no commit with that message.")
        return found

    # -- Branches --

    def branch(self, name: str) -> None:
        state = self.state
        if name in state.branches:
            raise BranchExists()
        state.branches[name] = state.head_commit
        self.save()

    def rm_branch(self, name: str) -> None:
        state = self.state
        if name not in state.branches:
            raise NotFound("A branch with that name does not exist.")
        if name == state.head:
            raise CannotRemoveCurrentBranch()
        del state.branches[name]
        self.save()

    def status(self) -> Status:
        state = self.state
        return compute_status(
            state.branches,
            state.head,
            state.staging,
            self.current_commit().files,
            self.worktree,
        )

    # -- Merge --

    def merge(self, branch: str) -> MergeResult:
        """Merge ``branch`` into the current branch.

        Returns a ``MergeResult`` whose ``strategy`` is
        ``"already_merged"``, ``"fast_forward"`` or ``"three_way"``.
        Conflicts do not abort: the merge commit is still created and
        the conflicted paths are listed in ``MergeResult.conflicts``.
        """
        state = self.state
        if not state.staging.is_empty:
            raise UncommittedChanges()
        if branch not in state.branches:
            raise NotFound("A branch with that name does not exist.")
        if branch == state.head:
            raise MergeWithSelf()

        current = self.current_commit()
        given = self.store.get_commit(state.branches[branch])
        in_the_way = self._untracked_in_the_way(current, given)
        if in_the_way:
            raise UntrackedFileInTheWay(in_the_way)

        split = self.graph.split_point(current.digest, given.digest)
        if split == given.digest:
            return MergeResult(
                merged=False, commit=current.digest, strategy="already_merged"
            )
        if split == current.digest:
            self._checkout_commit(given)
            state.branches[state.head] = given.digest
            self.save()
            logger.info("fast-forwarded %s to %s", state.head, given.digest[:7])
            return MergeResult(merged=True, commit=given.digest, strategy="fast_forward")

        plan = plan_merge(current.files, given.files, self.store.get_commit(split).files)

        # Build every new file body before writing anything.
        writes: dict[str, bytes] = {
            path: self.store.get_blob(given.files[path]) for path in plan.take
        }
        for path in plan.conflicts:
            ours = current.files.get(path)
            theirs = given.files.get(path)
            writes[path] = conflict_content(
                self.store.get_blob(ours) if ours is not None else None,
                self.store.get_blob(theirs) if theirs is not None else None,
            )

        for path in plan.remove:
            state.staging.remove(path, current.files)
            self.worktree.delete(path)
        for path, data in writes.items():
            self.worktree.write(path, data)
            state.staging.stage_digest(path, self.store.put_blob(data))

        if plan.conflicts:
            logger.warning(
                "merge of %s into %s conflicted on %s",
                branch,
                state.head,
                ", ".join(plan.conflicts),
            )
        commit = self._commit(
            f"Merged {branch} into {state.head}.", merge_parent=given.digest
        )
        return MergeResult(
            merged=True, commit=commit, strategy="three_way", conflicts=plan.conflicts
        )

    # -- Remotes --

    def add_remote(self, name: str, path: str) -> None:
        state = self.state
        if name in state.remotes:
            raise RemoteExists()
        state.remotes[name] = path
        self.save()

    def rm_remote(self, name: str) -> None:
        state = self.state
        if name not in state.remotes:
            raise NotFound("A remote with that name does not exist.")
        del state.remotes[name]
        self.save()

    def push(self, remote: str, branch: str) -> "SyncResult":
        from .remote import RemoteSynchronizer

        return RemoteSynchronizer(self).push(remote, branch)

    def fetch(self, remote: str, branch: str) -> "SyncResult":
        from .remote import RemoteSynchronizer

        return RemoteSynchronizer(self).fetch(remote, branch)

    def pull(self, remote: str, branch: str) -> MergeResult:
        from .remote import RemoteSynchronizer

        return RemoteSynchronizer(self).pull(remote, branch)


def repository(
    root: str | Path = ".",
    *,
    storage: Literal["disk", "memory"] = "disk",
    default_branch: str = DEFAULT_BRANCH,
) -> Repository:
    """Create a Repository handle with sensible defaults.

    Args:
        root: Working-tree root (default: current directory).
        storage: ``"disk"`` (default) keeps objects and state under
            ``<root>/.kvlet``; ``"memory"`` keeps them in process.
        default_branch: Branch created by ``init`` (default ``"master"``).

    Returns:
        A ``Repository``; call ``init()`` to create a new one.
    """
    return Repository(root, storage=storage, default_branch=default_branch)
