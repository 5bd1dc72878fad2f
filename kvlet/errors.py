"""kvlet error types.

Every failure the engine reports is a ``KvletError``. The ``kind``
attribute names the failure class so the boundary layer can decide
presentation without string matching.
"""


class KvletError(Exception):
    """Base class for all reported repository errors.

    Attributes:
        kind: Short machine-readable error kind.
        message: Human-readable message shown at the boundary.
    """

    kind = "error"
    default_message = "Repository error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotInitialized(KvletError):
    kind = "not_initialized"
    default_message = "Not in an initialized kvlet directory."


class AlreadyInitialized(KvletError):
    kind = "already_initialized"
    default_message = (
        "A kvlet version-control system already exists in the current directory."
    )


class NotFound(KvletError):
    """Raised when a digest, branch, remote, or commit cannot be resolved."""

    kind = "not_found"
    default_message = "Not found."


class AmbiguousId(KvletError):
    """Raised when an abbreviated commit id matches more than one commit.

    Attributes:
        matches: The sorted candidate digests.
    """

    kind = "ambiguous_id"

    def __init__(self, prefix: str, matches: list[str]) -> None:
        self.prefix = prefix
        self.matches = sorted(matches)
        super().__init__(
            f"Ambiguous commit id {prefix!r} matches {len(self.matches)} commits."
        )


class FileNotFound(KvletError):
    kind = "file_not_found"
    default_message = "File does not exist."


class NothingToRemove(KvletError):
    kind = "nothing_to_remove"
    default_message = "No reason to remove the file."


class EmptyStagingArea(KvletError):
    kind = "empty_staging_area"
    default_message = "No changes added to the commit."


class MissingMessage(KvletError):
    kind = "missing_message"
    default_message = "Please enter a commit message."


class BranchExists(KvletError):
    kind = "branch_exists"
    default_message = "A branch with that name already exists."


class RemoteExists(KvletError):
    kind = "remote_exists"
    default_message = "A remote with that name already exists."


class CannotRemoveCurrentBranch(KvletError):
    kind = "cannot_remove_current_branch"
    default_message = "Cannot remove the current branch."


class AlreadyOnBranch(KvletError):
    kind = "already_on_branch"
    default_message = "No need to checkout the current branch."


class UncommittedChanges(KvletError):
    kind = "uncommitted_changes"
    default_message = "You have uncommitted changes."


class MergeWithSelf(KvletError):
    kind = "merge_with_self"
    default_message = "Cannot merge a branch with itself."


class UntrackedFileInTheWay(KvletError):
    """Raised when a checkout or merge would overwrite an untracked file.

    Attributes:
        paths: The untracked paths that would be overwritten.
    """

    kind = "untracked_file_in_the_way"
    default_message = (
        "There is an untracked file in the way; "
        "delete it, or add and commit it first."
    )

    def __init__(self, paths: list[str] | None = None) -> None:
        self.paths = sorted(paths or [])
        super().__init__()


class Diverged(KvletError):
    kind = "diverged"
    default_message = "Please pull down remote changes before pushing."


class RemoteNotFound(KvletError):
    kind = "remote_not_found"
    default_message = "Remote directory not found."


class IncorrectOperands(KvletError):
    kind = "incorrect_operands"
    default_message = "Incorrect operands."
