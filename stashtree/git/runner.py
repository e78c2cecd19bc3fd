"""Buffered asynchronous process execution.

``CommandRunner`` is a thin transport: it launches a process, collects stdout
and stderr independently, decodes them, and reports failure by raising. It
never retries and never interprets output; callers classify errors.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from ..errors import CommandError, LaunchError
from ..logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Completed process output."""

    exit_code: int
    stdout: str
    stderr: str
    raw_stdout: bytes = b""


class CommandRunner:
    """Run external commands with fully buffered output."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding

    def _decode(self, data: bytes) -> str:
        return data.decode(self.encoding, errors="replace")

    async def run(self, executable: str, args: Sequence[str], cwd: Path | str | None = None) -> CommandResult:
        """Run ``executable`` with ``args`` in ``cwd`` and return its output.

        Raises ``LaunchError`` when the process cannot be started and
        ``CommandError`` when it exits with a nonzero status.
        """
        argv = [executable, *args]
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=None if cwd is None else str(cwd),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise LaunchError(executable, exc.strerror or str(exc)) from exc

        raw_stdout, raw_stderr = await process.communicate()
        exit_code = process.returncode if process.returncode is not None else -1
        stdout = self._decode(raw_stdout)
        stderr = self._decode(raw_stderr)
        logger.debug("command finished", argv=argv, cwd=str(cwd) if cwd else None, exit_code=exit_code)

        if exit_code != 0:
            raise CommandError(exit_code, stdout, stderr, argv)
        return CommandResult(exit_code=exit_code, stdout=stdout, stderr=stderr, raw_stdout=raw_stdout)


class GitRunner:
    """``CommandRunner`` bound to one git executable."""

    def __init__(self, runner: CommandRunner | None = None, executable: str = "git") -> None:
        self.runner = runner or CommandRunner()
        self.executable = executable

    async def git(self, args: Sequence[str], cwd: Path | str) -> CommandResult:
        return await self.runner.run(self.executable, args, cwd)


__all__ = ["CommandResult", "CommandRunner", "GitRunner"]
