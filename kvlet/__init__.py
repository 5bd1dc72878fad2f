"""kvlet: Content-addressed version control over a KV store."""

from .errors import (
    AmbiguousId,
    Diverged,
    KvletError,
    NotFound,
    NotInitialized,
    UntrackedFileInTheWay,
)
from .graph import CommitGraph
from .kv.base import KVStore
from .merge import MergePlan, MergeResult, plan_merge
from .objects import Commit
from .remote import RemoteSynchronizer, SyncResult
from .repository import Repository, RepositoryState, repository
from .staging import StagingArea
from .status import Status, compute_status
from .store import ObjectStore

__all__ = [
    "AmbiguousId",
    "Commit",
    "CommitGraph",
    "Diverged",
    "KVStore",
    "KvletError",
    "MergePlan",
    "MergeResult",
    "NotFound",
    "NotInitialized",
    "ObjectStore",
    "RemoteSynchronizer",
    "Repository",
    "RepositoryState",
    "StagingArea",
    "Status",
    "SyncResult",
    "UntrackedFileInTheWay",
    "compute_status",
    "plan_merge",
    "repository",
]
