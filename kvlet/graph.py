"""Ancestry queries over the commit DAG."""

from collections import deque
from typing import Iterable

from .errors import NotFound
from .store import ObjectStore


class CommitGraph:
    """A digest -> parents index over the commits in an ``ObjectStore``.

    The index is filled lazily as commits are visited. Every traversal is
    an iterative BFS with a visited set, so deep merge histories cost
    time linear in the number of reachable commits.
    """

    def __init__(self, store: ObjectStore) -> None:
        self.store = store
        self._parents: dict[str, tuple[str, ...]] = {}

    def parents(self, commit_hash: str) -> tuple[str, ...]:
        """Primary parent first, then the merged-in parent (if any)."""
        cached = self._parents.get(commit_hash)
        if cached is None:
            cached = self.store.get_commit(commit_hash).parents
            self._parents[commit_hash] = cached
        return cached

    def history(
        self,
        commit_hash: str,
        *,
        all_parents: bool = False,
    ) -> Iterable[str]:
        """Yield the commit chain from newest to oldest.

        Args:
            commit_hash: Starting commit.
            all_parents: If True, BFS over all parents (full DAG).
                If False, follow first parent only (linear).
        """
        if not all_parents:
            current: str | None = commit_hash
            while current is not None:
                yield current
                parents = self.parents(current)
                current = parents[0] if parents else None
        else:
            visited: set[str] = set()
            queue: deque[str] = deque([commit_hash])
            while queue:
                current = queue.popleft()
                if current in visited:
                    continue
                visited.add(current)
                yield current
                for p in self.parents(current):
                    if p not in visited:
                        queue.append(p)

    def distances(self, start: str) -> dict[str, int]:
        """Shortest parent-chain length from ``start`` to each ancestor."""
        dist = {start: 0}
        queue: deque[str] = deque([start])
        while queue:
            current = queue.popleft()
            for p in self.parents(current):
                if p not in dist:
                    dist[p] = dist[current] + 1
                    queue.append(p)
        return dist

    def is_ancestor(self, candidate: str, start: str) -> bool:
        """True if ``candidate`` is ``start`` or reachable from it."""
        if candidate == start:
            return True
        visited: set[str] = {start}
        queue: deque[str] = deque([start])
        while queue:
            current = queue.popleft()
            for p in self.parents(current):
                if p == candidate:
                    return True
                if p not in visited:
                    visited.add(p)
                    queue.append(p)
        return False

    def split_point(self, commit_a: str, commit_b: str) -> str:
        """Find the merge base of two commits.

        Among commits that are ancestors of both, returns the one with
        the smallest distance from ``commit_a``. Ties are broken by the
        smallest digest.

        Raises:
            NotFound: The commits share no ancestor.
        """
        from_a = self.distances(commit_a)
        from_b = self.distances(commit_b)
        common = [c for c in from_a if c in from_b]
        if not common:
            raise NotFound(
                f"Commits {commit_a[:7]} and {commit_b[:7]} have no common ancestor."
            )
        return min(common, key=lambda c: (from_a[c], c))
