"""Low-level primitives: hashing, serialization, and file I/O."""

import hashlib
import os
import pickle
import tempfile
from pathlib import Path
from typing import Any


def digest(data: bytes) -> str:
    """SHA-1 hex digest of raw bytes (40 lowercase hex chars)."""
    return hashlib.sha1(data).hexdigest()


def serialize(obj: Any) -> bytes:
    return pickle.dumps(obj)


def deserialize(raw: bytes) -> Any:
    return pickle.loads(raw)


def read_file(path: str | Path) -> bytes:
    return Path(path).read_bytes()


def write_file(path: str | Path, data: bytes) -> None:
    """Atomically replace ``path`` with ``data``.

    Writes to a temporary file in the same directory, then renames it
    over the target so readers never observe a partial record.
    """
    path = Path(path)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
