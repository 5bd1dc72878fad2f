"""Replication of commits and branch heads between two repositories."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from .errors import Diverged, NotFound, RemoteNotFound, UncommittedChanges
from .graph import CommitGraph
from .merge import MergeResult
from .store import ObjectStore

if TYPE_CHECKING:
    from .repository import Repository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    """Result of a push or fetch."""

    remote: str
    branch: str
    commit: str
    commits_visited: int
    objects_written: int


def tracking_branch(remote: str, branch: str) -> str:
    """Local name of the branch mirroring ``branch`` on ``remote``."""
    return f"{remote}/{branch}"


def parents_first(
    graph: CommitGraph,
    start: str,
    known: Callable[[str], bool],
) -> list[str]:
    """Commits reachable from ``start`` in parents-before-children order.

    The walk does not descend past commits for which ``known`` is true.
    Copying in this order means an interrupted transfer never leaves a
    commit at the destination without its ancestors.
    """
    order: list[str] = []
    seen: set[str] = set()
    stack: list[tuple[str, bool]] = [(start, False)]
    while stack:
        current, expanded = stack.pop()
        if expanded:
            order.append(current)
            continue
        if current in seen or known(current):
            continue
        seen.add(current)
        stack.append((current, True))
        for p in graph.parents(current):
            if p not in seen:
                stack.append((p, False))
    return order


def replicate(commits: list[str], source: ObjectStore, dest: ObjectStore) -> int:
    """Copy ``commits`` and their blobs; returns objects written."""
    written = 0
    for key in commits:
        written += source.copy_commit(key, dest)
    return written


class RemoteSynchronizer:
    """Push, fetch and pull between a local repository and its remotes.

    A remote is another repository reachable by filesystem path: the
    path of its metadata directory, or of its working-tree root.
    """

    def __init__(self, local: "Repository") -> None:
        self.local = local

    def open_remote(self, name: str) -> "Repository":
        from .repository import STATE_FILE, Repository, repo_dir_name

        remotes = self.local.state.remotes
        if name not in remotes:
            raise NotFound("A remote with that name does not exist.")
        location = Path(remotes[name])
        if not location.is_absolute():
            location = self.local.root / location
        for candidate in (location, location / repo_dir_name()):
            if (candidate / STATE_FILE).is_file():
                return Repository.from_metadata(candidate)
        raise RemoteNotFound()

    def push(self, remote: str, branch: str) -> SyncResult:
        """Fast-forward ``branch`` on ``remote`` to the local current commit.

        Raises:
            RemoteNotFound: The remote path is unreachable.
            Diverged: The remote branch head is not an ancestor of the
                local current commit.
        """
        local_head = self.local.state.head_commit
        with self.open_remote(remote) as target:
            remote_head = target.state.branches.get(branch)
            if remote_head is not None and not self.local.graph.is_ancestor(
                remote_head, local_head
            ):
                raise Diverged()

            commits = parents_first(
                self.local.graph,
                local_head,
                lambda key: target.store.exists(key, "commit"),
            )
            written = replicate(commits, self.local.store, target.store)
            target.state.branches[branch] = local_head
            target.save()
        logger.info(
            "pushed %s to %s/%s (%d commits, %d objects written)",
            local_head[:7],
            remote,
            branch,
            len(commits),
            written,
        )
        return SyncResult(remote, branch, local_head, len(commits), written)

    def fetch(self, remote: str, branch: str) -> SyncResult:
        """Copy ``remote``'s ``branch`` history and update the tracking branch.

        Walks the whole remote history every time; objects already
        present locally are skipped, so repeat fetches write nothing.

        Raises:
            RemoteNotFound: The remote path is unreachable.
            NotFound: The remote has no such branch.
        """
        with self.open_remote(remote) as source:
            remote_head = source.state.branches.get(branch)
            if remote_head is None:
                raise NotFound("That remote does not have that branch.")
            commits = parents_first(source.graph, remote_head, lambda key: False)
            written = replicate(commits, source.store, self.local.store)
        name = tracking_branch(remote, branch)
        self.local.state.branches[name] = remote_head
        self.local.save()
        logger.info(
            "fetched %s into %s (%d commits, %d objects written)",
            remote_head[:7],
            name,
            len(commits),
            written,
        )
        return SyncResult(remote, branch, remote_head, len(commits), written)

    def pull(self, remote: str, branch: str) -> MergeResult:
        """Fetch, then merge the tracking branch into the current branch.

        Staged changes are rejected before anything is fetched. Other
        merge preconditions are checked after the fetch, so a pull
        refused for an untracked file still updates the tracking branch.

        Raises:
            UncommittedChanges: The staging area is not empty.
        """
        if not self.local.state.staging.is_empty:
            raise UncommittedChanges()
        self.fetch(remote, branch)
        return self.local.merge(tracking_branch(remote, branch))
