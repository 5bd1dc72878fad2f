"""Tests for commits and the content-addressed ObjectStore."""

import pytest

from kvlet import AmbiguousId, Commit, NotFound, ObjectStore
from kvlet.kv.memory import Memory
from kvlet.persistence import digest


class TestCommit:
    def test_initial_commit_is_deterministic(self):
        a = Commit.initial()
        b = Commit.initial()
        assert a.digest == b.digest
        assert a.timestamp == "Thu Jan 1 00:00:00 1970 +0000"
        assert a.parent is None
        assert a.files == {}

    def test_digest_covers_every_field(self):
        base = Commit.create("msg", {"a": "1" * 40}, timestamp="t")
        assert Commit.create("other", {"a": "1" * 40}, timestamp="t").digest != base.digest
        assert Commit.create("msg", {"b": "1" * 40}, timestamp="t").digest != base.digest
        assert Commit.create("msg", {"a": "1" * 40}, timestamp="u").digest != base.digest
        assert (
            Commit.create("msg", {"a": "1" * 40}, parent="p", timestamp="t").digest
            != base.digest
        )

    def test_files_are_ordered(self):
        c = Commit.create("m", {"b": "2", "a": "1"}, timestamp="t")
        assert list(c.files) == ["a", "b"]

    def test_merge_commit(self):
        c = Commit.create("m", {}, parent="p1", merge_parent="p2", timestamp="t")
        assert c.is_merge
        assert c.parents == ("p1", "p2")

    def test_merge_commit_needs_primary_parent(self):
        with pytest.raises(ValueError):
            Commit.create("m", {}, merge_parent="p2")

    def test_log_entry(self):
        c = Commit.create("hello", {}, parent="a" * 40, timestamp="when")
        assert c.log_entry() == f"===\ncommit {c.digest}\nDate: when\nhello\n"

    def test_log_entry_merge_line(self):
        c = Commit.create(
            "merged", {}, parent="a" * 40, merge_parent="b" * 40, timestamp="when"
        )
        assert "Merge: aaaaaaa bbbbbbb\n" in c.log_entry()


class TestObjectStorePut:
    def test_blob_round_trip(self):
        s = ObjectStore()
        key = s.put(b"\x00binary\xff")
        assert key == digest(b"\x00binary\xff")
        assert s.get(key, "blob") == b"\x00binary\xff"

    def test_put_is_idempotent(self):
        s = ObjectStore()
        k1 = s.put(b"same")
        size = len(s)
        k2 = s.put(b"same")
        assert k1 == k2
        assert len(s) == size

    def test_commit_round_trip(self):
        s = ObjectStore()
        blob = s.put(b"content")
        c = Commit.create("m", {"f.txt": blob})
        assert s.put(c) == c.digest
        assert s.get(c.digest, "commit") == c

    def test_commit_with_missing_blob_rejected(self):
        s = ObjectStore()
        c = Commit.create("m", {"f.txt": "f" * 40})
        with pytest.raises(NotFound):
            s.put(c)
        assert not s.exists(c.digest)

    def test_put_rejects_other_types(self):
        with pytest.raises(TypeError):
            ObjectStore().put("text")  # type: ignore

    def test_get_missing(self):
        s = ObjectStore()
        with pytest.raises(NotFound):
            s.get("0" * 40, "blob")
        with pytest.raises(NotFound):
            s.get("0" * 40, "commit")

    def test_exists_by_kind(self):
        s = ObjectStore()
        key = s.put(b"x")
        assert s.exists(key)
        assert s.exists(key, "blob")
        assert not s.exists(key, "commit")


class TestResolvePrefix:
    def _store_with(self, *keys):
        commits = Memory()
        for key in keys:
            commits.set(key, b"")
        return ObjectStore(commits=commits)

    def test_full_id(self):
        s = ObjectStore()
        c = Commit.initial()
        s.put(c)
        assert s.resolve_prefix(c.digest) == c.digest

    def test_unique_prefix(self):
        s = self._store_with("abc123", "def456")
        assert s.resolve_prefix("ab") == "abc123"

    def test_no_match(self):
        s = self._store_with("abc123")
        with pytest.raises(NotFound):
            s.resolve_prefix("zz")

    def test_ambiguous(self):
        s = self._store_with("abc123", "abd456")
        with pytest.raises(AmbiguousId) as exc:
            s.resolve_prefix("ab")
        assert exc.value.matches == ["abc123", "abd456"]


class TestCopy:
    def test_copy_commit_writes_blobs_and_commit(self):
        src, dest = ObjectStore(), ObjectStore()
        c = Commit.create("m", {"a": src.put(b"A"), "b": src.put(b"B")})
        src.put(c)
        assert src.copy_commit(c.digest, dest) == 3
        assert dest.get_commit(c.digest) == c
        assert dest.get_blob(c.files["a"]) == b"A"

    def test_copy_again_writes_nothing(self):
        src, dest = ObjectStore(), ObjectStore()
        c = Commit.create("m", {"a": src.put(b"A")})
        src.put(c)
        src.copy_commit(c.digest, dest)
        assert src.copy_commit(c.digest, dest) == 0

    def test_copy_batches_missing_blobs(self, monkeypatch):
        src, dest = ObjectStore(), ObjectStore()
        shared = src.put(b"shared")
        dest.put(b"shared")
        c = Commit.create("m", {"a": shared, "b": src.put(b"B"), "c": src.put(b"C")})
        src.put(c)
        batches = []
        original = dest.blobs.set_many

        def recording_set_many(**kwargs):
            batches.append(sorted(kwargs))
            original(**kwargs)

        monkeypatch.setattr(dest.blobs, "set_many", recording_set_many)
        assert src.copy_commit(c.digest, dest) == 3
        assert batches == [sorted([c.files["b"], c.files["c"]])]

    def test_copy_between_disk_stores(self, tmp_path):
        src = ObjectStore.open(tmp_path / "src")
        dest = ObjectStore.open(tmp_path / "dest")
        c = Commit.create("m", {"a": src.put(b"A")})
        src.put(c)
        assert src.copy_commit(c.digest, dest) == 2
        assert dest.get_commit(c.digest) == c
        src.close()
        dest.close()

    def test_commits_sorted_by_digest(self):
        s = ObjectStore()
        for msg in ("one", "two", "three"):
            s.put(Commit.create(msg, {}))
        digests = [c.digest for c in s.commits()]
        assert digests == sorted(digests)
        assert len(digests) == 3


class TestDiskObjectStore:
    def test_persists_across_open(self, tmp_path):
        s = ObjectStore.open(tmp_path)
        key = s.put(b"durable")
        s2 = ObjectStore.open(tmp_path)
        assert s2.get_blob(key) == b"durable"
        assert (tmp_path / "blobs").is_dir()
        assert (tmp_path / "commits").is_dir()

    def test_disk_requires_path(self):
        with pytest.raises(ValueError, match="path is required"):
            ObjectStore.open(storage="disk")

    def test_unknown_storage(self):
        with pytest.raises(ValueError, match="Unknown storage"):
            ObjectStore.open(storage="cloud")  # type: ignore
