"""Exception types shared by git access, parsing, and diff resolution."""

from __future__ import annotations

from collections.abc import Sequence


class StashTreeError(Exception):
    """Base class for every error raised by stashtree."""


class LaunchError(StashTreeError):
    """The command binary could not be started (missing, not executable, ...)."""

    def __init__(self, executable: str, message: str) -> None:
        super().__init__(f"{executable}: {message}")
        self.executable = executable
        self.message = message


class CommandError(StashTreeError):
    """A command ran but exited with a nonzero status.

    Callers decide whether the failure is real or one of the known benign
    conditions (no untracked parent, nothing to stash, ...).
    """

    def __init__(
        self,
        exit_code: int,
        stdout: str,
        stderr: str,
        args: Sequence[str] = (),
    ) -> None:
        detail = stderr.strip() or stdout.strip() or f"exit code {exit_code}"
        super().__init__(detail)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.command_args = tuple(args)

    @property
    def output(self) -> str:
        """Combined stdout/stderr transcript, stdout first."""
        parts = [part.strip() for part in (self.stdout, self.stderr) if part.strip()]
        return "\n\n".join(parts)


class ParseError(StashTreeError):
    """One listing line did not match the expected shape.

    Raised only inside the parser; listings log it and skip the line.
    """

    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f"{reason}: {line!r}")
        self.line = line
        self.reason = reason


class InvalidNodeError(StashTreeError):
    """A node kind is not covered by content or diff resolution."""


__all__ = [
    "StashTreeError",
    "LaunchError",
    "CommandError",
    "ParseError",
    "InvalidNodeError",
]
