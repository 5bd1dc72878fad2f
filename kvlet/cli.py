"""Command-line front end.

Maps each command 1:1 onto a ``Repository`` operation. This is the only
layer that prints or chooses an exit status.
"""

import argparse
import logging
import sys
from typing import Callable, Sequence

from .errors import IncorrectOperands, KvletError, MissingMessage
from .merge import MergeResult
from .repository import Repository

Handler = Callable[[Repository, list[str]], None]


def _arity(operands: list[str], n: int) -> None:
    if len(operands) != n:
        raise IncorrectOperands()


def cmd_init(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 0)
    repo.init()


def cmd_add(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 1)
    repo.add(operands[0])


def cmd_commit(repo: Repository, operands: list[str]) -> None:
    if not operands:
        raise MissingMessage()
    _arity(operands, 1)
    repo.commit(operands[0])


def cmd_rm(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 1)
    repo.rm(operands[0])


def cmd_checkout(repo: Repository, operands: list[str]) -> None:
    if len(operands) == 1:
        repo.checkout_branch(operands[0])
    elif len(operands) == 2 and operands[0] == "--":
        repo.checkout_file(operands[1])
    elif len(operands) == 3 and operands[1] == "--":
        repo.checkout_file_at(operands[0], operands[2])
    else:
        raise IncorrectOperands()


def cmd_log(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 0)
    print(repo.log(), end="")


def cmd_global_log(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 0)
    print(repo.global_log(), end="")


def cmd_find(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 1)
    for key in repo.find(operands[0]):
        print(key)


def cmd_branch(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 1)
    repo.branch(operands[0])


def cmd_rm_branch(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 1)
    repo.rm_branch(operands[0])


def cmd_status(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 0)
    print(repo.status().render(), end="")


def cmd_reset(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 1)
    repo.reset(operands[0])


def _report(result: MergeResult) -> None:
    if result.message:
        print(result.message)


def cmd_merge(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 1)
    _report(repo.merge(operands[0]))


def cmd_add_remote(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 2)
    repo.add_remote(operands[0], operands[1])


def cmd_rm_remote(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 1)
    repo.rm_remote(operands[0])


def cmd_push(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 2)
    repo.push(operands[0], operands[1])


def cmd_fetch(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 2)
    repo.fetch(operands[0], operands[1])


def cmd_pull(repo: Repository, operands: list[str]) -> None:
    _arity(operands, 2)
    _report(repo.pull(operands[0], operands[1]))


COMMANDS: dict[str, Handler] = {
    "init": cmd_init,
    "add": cmd_add,
    "commit": cmd_commit,
    "rm": cmd_rm,
    "checkout": cmd_checkout,
    "log": cmd_log,
    "global-log": cmd_global_log,
    "find": cmd_find,
    "branch": cmd_branch,
    "rm-branch": cmd_rm_branch,
    "status": cmd_status,
    "reset": cmd_reset,
    "merge": cmd_merge,
    "add-remote": cmd_add_remote,
    "rm-remote": cmd_rm_remote,
    "push": cmd_push,
    "fetch": cmd_fetch,
    "pull": cmd_pull,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kvlet",
        description="A small content-addressed version-control system.",
        epilog="Commands: " + ", ".join(COMMANDS),
    )
    parser.add_argument(
        "-C",
        dest="root",
        default=".",
        help="Run as if started in this directory.",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log debug output to stderr."
    )
    return parser


def split_options(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Split leading global options from the command and its operands.

    Operands are kept verbatim so ``checkout -- <file>`` survives.
    """
    args = list(argv)
    options: list[str] = []
    while args and args[0].startswith("-") and args[0] != "--":
        options.append(args.pop(0))
        if options[-1] == "-C" and args:
            options.append(args.pop(0))
    return options, args


def main(argv: Sequence[str] | None = None) -> int:
    options, rest = split_options(sys.argv[1:] if argv is None else argv)
    args = build_parser().parse_args(options)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not rest:
        print("Please enter a command.")
        return 1
    command, operands = rest[0], rest[1:]
    handler = COMMANDS.get(command)
    if handler is None:
        print("No command with that name exists.")
        return 1

    try:
        handler(Repository(args.root), operands)
    except KvletError as e:
        print(e.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
