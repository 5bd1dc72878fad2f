"""Tests for the command-line front end."""

import pytest

from kvlet.cli import COMMANDS, main, split_options


@pytest.fixture
def run(tmp_path, capsys):
    def _run(*argv):
        code = main(["-C", str(tmp_path), *argv])
        return code, capsys.readouterr().out

    return _run


@pytest.fixture
def initialized(run):
    assert run("init") == (0, "")
    return run


class TestDispatch:
    def test_no_command(self, capsys):
        assert main([]) == 1
        assert capsys.readouterr().out == "Please enter a command.\n"

    def test_unknown_command(self, run):
        assert run("frobnicate") == (1, "No command with that name exists.\n")

    def test_every_command_registered(self):
        assert set(COMMANDS) == {
            "init", "add", "commit", "rm", "checkout", "log", "global-log",
            "find", "branch", "rm-branch", "status", "reset", "merge",
            "add-remote", "rm-remote", "push", "fetch", "pull",
        }

    def test_split_options_keeps_double_dash(self):
        options, rest = split_options(["-C", "dir", "-v", "checkout", "--", "a.txt"])
        assert options == ["-C", "dir", "-v"]
        assert rest == ["checkout", "--", "a.txt"]


class TestErrors:
    def test_not_initialized(self, run):
        assert run("status") == (1, "Not in an initialized kvlet directory.\n")

    def test_incorrect_operands(self, initialized):
        assert initialized("branch") == (1, "Incorrect operands.\n")
        assert initialized("checkout", "a", "b") == (1, "Incorrect operands.\n")

    def test_commit_without_message(self, initialized):
        assert initialized("commit") == (1, "Please enter a commit message.\n")

    def test_init_twice(self, initialized):
        code, out = initialized("init")
        assert code == 1
        assert out.startswith("A kvlet version-control system already exists")


class TestCommands:
    def test_status_after_init(self, initialized):
        code, out = initialized("status")
        assert code == 0
        assert out == (
            "=== Branches ===\n*master\n\n"
            "=== Staged Files ===\n\n"
            "=== Removed Files ===\n\n"
            "=== Modifications Not Staged For Commit ===\n\n"
            "=== Untracked Files ===\n"
        )

    def test_add_commit_log(self, initialized, tmp_path):
        (tmp_path / "a.txt").write_text("A")
        assert initialized("add", "a.txt") == (0, "")
        assert initialized("commit", "first") == (0, "")
        code, out = initialized("log")
        assert code == 0
        assert out.count("===\ncommit ") == 2
        assert "\nfirst\n" in out

    def test_find_prints_ids(self, initialized):
        code, out = initialized("find", "initial commit")
        assert code == 0
        assert len(out.strip()) == 40

    def test_checkout_file(self, initialized, tmp_path):
        (tmp_path / "a.txt").write_text("A")
        initialized("add", "a.txt")
        initialized("commit", "first")
        (tmp_path / "a.txt").write_text("changed")
        assert initialized("checkout", "--", "a.txt") == (0, "")
        assert (tmp_path / "a.txt").read_text() == "A"

    def test_merge_conflict_notice(self, initialized, tmp_path):
        (tmp_path / "a.txt").write_text("base")
        initialized("add", "a.txt")
        initialized("commit", "base")
        initialized("branch", "feature")
        (tmp_path / "a.txt").write_text("hello")
        initialized("add", "a.txt")
        initialized("commit", "first")
        initialized("checkout", "feature")
        (tmp_path / "a.txt").write_text("world")
        initialized("add", "a.txt")
        initialized("commit", "second")
        initialized("checkout", "master")

        assert initialized("merge", "feature") == (0, "Encountered a merge conflict.\n")

    def test_already_merged_notice(self, initialized):
        initialized("branch", "old")
        assert initialized("merge", "old") == (
            0,
            "Given branch is an ancestor of the current branch.\n",
        )
