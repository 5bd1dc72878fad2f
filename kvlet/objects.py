"""Immutable repository objects: blobs and commits."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Mapping

from .persistence import digest, serialize

Blob = bytes
"""A blob is the raw content of one file at staging time."""

ObjectKind = Literal["blob", "commit"]

INITIAL_MESSAGE = "initial commit"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def format_timestamp(moment: datetime | None = None) -> str:
    """Format a moment as e.g. ``Thu Jan 1 00:00:00 1970 +0000``.

    Naive or missing moments are taken as local time.
    """
    if moment is None:
        moment = datetime.now()
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return f"{moment:%a %b} {moment.day} {moment:%H:%M:%S %Y %z}"


def _content_hash(
    message: str,
    timestamp: str,
    parent: str | None,
    merge_parent: str | None,
    files: Mapping[str, str],
) -> str:
    """Compute a content-addressable commit hash over every other field."""
    return digest(
        serialize(
            (message, timestamp, parent, merge_parent, sorted(files.items()))
        )
    )


@dataclass(frozen=True)
class Commit:
    """An immutable snapshot node in the commit DAG.

    ``files`` is the full tracked-file snapshot (path -> blob digest),
    not a delta against the parent.
    """

    digest: str
    message: str
    timestamp: str
    parent: str | None = None
    merge_parent: str | None = None
    files: dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        message: str,
        files: Mapping[str, str],
        parent: str | None = None,
        merge_parent: str | None = None,
        *,
        timestamp: str | None = None,
    ) -> "Commit":
        """Build a commit, deriving its digest from the other fields."""
        if merge_parent is not None and parent is None:
            raise ValueError("A merge commit needs a primary parent")
        if timestamp is None:
            timestamp = format_timestamp()
        ordered = dict(sorted(files.items()))
        return cls(
            digest=_content_hash(message, timestamp, parent, merge_parent, ordered),
            message=message,
            timestamp=timestamp,
            parent=parent,
            merge_parent=merge_parent,
            files=ordered,
        )

    @classmethod
    def initial(cls) -> "Commit":
        """The root commit shared by every freshly initialised repository."""
        return cls.create(INITIAL_MESSAGE, {}, timestamp=format_timestamp(EPOCH))

    @property
    def is_merge(self) -> bool:
        return self.merge_parent is not None

    @property
    def parents(self) -> tuple[str, ...]:
        """Primary parent first, then the merged-in parent (if any)."""
        return tuple(p for p in (self.parent, self.merge_parent) if p is not None)

    def log_entry(self) -> str:
        lines = ["===", f"commit {self.digest}"]
        if self.is_merge:
            assert self.parent is not None and self.merge_parent is not None
            lines.append(f"Merge: {self.parent[:7]} {self.merge_parent[:7]}")
        lines.append(f"Date: {self.timestamp}")
        lines.append(self.message)
        return "\n".join(lines) + "\n"
