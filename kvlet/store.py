"""Content-addressed object store for blobs and commits."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Literal

from .errors import AmbiguousId, NotFound
from .kv.base import KVStore
from .kv.memory import Memory
from .objects import Blob, Commit, ObjectKind
from .persistence import deserialize, digest, serialize

logger = logging.getLogger(__name__)

BLOBS_DIR = "blobs"
COMMITS_DIR = "commits"


class ObjectStore:
    """Durable content-addressed storage for immutable objects.

    Blobs and commits live in two separate ``KVStore`` subareas keyed by
    digest. Writes are idempotent: content already present is never
    rewritten.
    """

    def __init__(
        self,
        blobs: KVStore | None = None,
        commits: KVStore | None = None,
    ) -> None:
        self.blobs = blobs if blobs is not None else Memory()
        self.commits_kv = commits if commits is not None else Memory()

    @classmethod
    def open(
        cls,
        path: str | Path | None = None,
        storage: Literal["disk", "memory"] = "disk",
    ) -> "ObjectStore":
        """Open an object store.

        Args:
            path: Repository directory holding the ``blobs`` and
                ``commits`` subareas. Required when ``storage="disk"``.
            storage: ``"disk"`` (default) or ``"memory"``.
        """
        if storage == "memory":
            return cls()
        if storage == "disk":
            if path is None:
                raise ValueError("path is required when storage='disk'")
            from .kv.disk import Disk

            root = Path(path)
            return cls(
                Disk(str(root / BLOBS_DIR)),
                Disk(str(root / COMMITS_DIR)),
            )
        raise ValueError(f"Unknown storage: {storage!r}")

    def __len__(self) -> int:
        return len(self.blobs) + len(self.commits_kv)

    # -- Writes --

    def put(self, obj: Blob | Commit) -> str:
        """Store a blob (``bytes``) or a ``Commit``; return its digest."""
        if isinstance(obj, Commit):
            return self.put_commit(obj)
        if isinstance(obj, bytes):
            return self.put_blob(obj)
        raise TypeError(f"Cannot store object of type {type(obj).__name__}")

    def put_blob(self, data: bytes) -> str:
        key = digest(data)
        if key in self.blobs:
            logger.debug("blob %s already stored", key)
            return key
        self.blobs.set(key, data)
        logger.debug("stored blob %s (%d bytes)", key, len(data))
        return key

    def put_commit(self, commit: Commit) -> str:
        """Store a commit whose blobs are all already present."""
        if commit.digest in self.commits_kv:
            logger.debug("commit %s already stored", commit.digest)
            return commit.digest
        missing = sorted(d for d in set(commit.files.values()) if d not in self.blobs)
        if missing:
            raise NotFound(
                f"Commit {commit.digest} references missing blobs: {', '.join(missing)}"
            )
        self.commits_kv.set(commit.digest, serialize(commit))
        logger.debug("stored commit %s", commit.digest)
        return commit.digest

    # -- Reads --

    def get(self, key: str, kind: ObjectKind) -> Blob | Commit:
        if kind == "blob":
            return self.get_blob(key)
        if kind == "commit":
            return self.get_commit(key)
        raise ValueError(f"Unknown object kind: {kind!r}")

    def get_blob(self, key: str) -> bytes:
        data = self.blobs.get(key)
        if data is None:
            raise NotFound(f"No blob with id {key}.")
        return data

    def get_commit(self, key: str) -> Commit:
        raw = self.commits_kv.get(key)
        if raw is None:
            raise NotFound("No commit with that id exists.")
        return deserialize(raw)

    def exists(self, key: str, kind: ObjectKind | None = None) -> bool:
        if kind == "blob":
            return key in self.blobs
        if kind == "commit":
            return key in self.commits_kv
        return key in self.commits_kv or key in self.blobs

    def resolve_prefix(self, partial: str) -> str:
        """Expand an abbreviated commit id to a full digest.

        Raises:
            NotFound: No commit starts with ``partial``.
            AmbiguousId: More than one commit starts with ``partial``.
        """
        if partial in self.commits_kv:
            return partial
        matches = [key for key in self.commits_kv.keys() if key.startswith(partial)]
        if not matches:
            raise NotFound("No commit with that id exists.")
        if len(matches) > 1:
            raise AmbiguousId(partial, matches)
        return matches[0]

    def commits(self) -> Iterator[Commit]:
        """Every stored commit, ordered by digest."""
        for key in sorted(self.commits_kv.keys()):
            yield self.get_commit(key)

    # -- Replication --

    def copy_commit(self, key: str, dest: "ObjectStore") -> int:
        """Copy a commit and its blobs into ``dest``.

        Missing blobs are written in one batch before the commit so
        ``dest`` never holds a commit with dangling references. Returns
        the number of objects actually written (0 when ``dest`` already
        had everything).
        """
        commit = self.get_commit(key)
        missing = sorted(k for k in set(commit.files.values()) if k not in dest.blobs)
        written = 0
        if missing:
            found = self.blobs.get_many(*missing)
            lost = [k for k in missing if k not in found]
            if lost:
                raise NotFound(f"No blob with id {lost[0]}.")
            dest.blobs.set_many(**found)
            written += len(found)
            logger.debug("copied %d blobs for commit %s", len(found), key)
        if not dest.exists(key, "commit"):
            dest.put_commit(commit)
            written += 1
        return written

    def close(self) -> None:
        self.blobs.close()
        self.commits_kv.close()
