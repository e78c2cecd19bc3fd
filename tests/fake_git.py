"""In-memory stand-in for ``GitRunner`` used by unit tests.

Responses are keyed by the exact argument tuple, optionally scoped to a
working directory. Unregistered calls fail like a real git error so tests
notice unexpected commands.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from stashtree.errors import CommandError
from stashtree.git.runner import CommandResult

STASH_LIST_ARGS = ("stash", "list", "--format=%ci %h %s")
STASH_METADATA_ARGS = ("stash", "list", "-z", "--format=%H %P%x09%N")


def name_status_args(index: int) -> tuple[str, ...]:
    return ("stash", "show", "--name-status", "-z", f"stash@{{{index}}}")


def untracked_args(index: int) -> tuple[str, ...]:
    return ("ls-tree", "-r", "-z", "--name-only", f"stash@{{{index}}}^3")


def missing_third_parent(index: int) -> CommandError:
    return CommandError(
        128,
        "",
        f"fatal: Not a valid object name stash@{{{index}}}^3\n",
        ("git", *untracked_args(index)),
    )


class FakeGitRunner:
    def __init__(self) -> None:
        self.responses: dict[tuple[str | None, tuple[str, ...]], CommandResult | BaseException] = {}
        self.calls: list[tuple[tuple[str, ...], Path]] = []

    def respond(
        self,
        args: Sequence[str],
        stdout: str = "",
        *,
        raw: bytes | None = None,
        cwd: Path | str | None = None,
    ) -> None:
        key = (None if cwd is None else str(cwd), tuple(args))
        self.responses[key] = CommandResult(
            exit_code=0,
            stdout=stdout,
            stderr="",
            raw_stdout=stdout.encode("utf-8") if raw is None else raw,
        )

    def fail(self, args: Sequence[str], error: BaseException, *, cwd: Path | str | None = None) -> None:
        self.responses[(None if cwd is None else str(cwd), tuple(args))] = error

    def count(self, args: Sequence[str]) -> int:
        return sum(1 for call_args, _cwd in self.calls if call_args == tuple(args))

    async def git(self, args: Sequence[str], cwd: Path | str) -> CommandResult:
        key_args = tuple(args)
        self.calls.append((key_args, Path(cwd)))
        response = self.responses.get((str(cwd), key_args))
        if response is None:
            response = self.responses.get((None, key_args))
        if response is None:
            raise CommandError(128, "", f"fatal: unexpected git call {key_args}", ("git", *key_args))
        if isinstance(response, BaseException):
            raise response
        return response
