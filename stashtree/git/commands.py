"""State-changing stash commands and their outcome classification.

Each command builds git arguments from the node it is given at call time
(``stash@{index}`` uses the index the caller holds right now) and returns a
``CommandOutcome``: success, success with a caveat (conflicts, nothing to
stash), or failure. Failures are never swallowed; the transcript keeps the raw
git output for display.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import CommandError, LaunchError
from ..logger import get_logger
from .runner import GitRunner
from .stash_git import stash_ref

if TYPE_CHECKING:
    from ..stash_node.model import FileEntity, RepositoryEntity, StashEntity

logger = get_logger(__name__)

OUTCOME_SUCCESS = "success"
OUTCOME_CAVEAT = "caveat"
OUTCOME_FAILURE = "failure"

ISSUE_CONFLICT = "conflict"
ISSUE_EMPTY = "empty"

CONFLICT_MARKER = "CONFLICT ("
NOTHING_TO_STASH_MARKER = "No local changes to save"
SUMMARY_MAX_CHARS = 300

STASH_TYPE_SIMPLE = "simple"
STASH_TYPE_KEEP_INDEX = "keep-index"
STASH_TYPE_INCLUDE_UNTRACKED = "include-untracked"
STASH_TYPE_INCLUDE_UNTRACKED_KEEP_INDEX = "include-untracked-keep-index"
STASH_TYPE_ALL = "all"
STASH_TYPE_ALL_KEEP_INDEX = "all-keep-index"

STASH_TYPE_FLAGS: dict[str, tuple[str, ...]] = {
    STASH_TYPE_SIMPLE: (),
    STASH_TYPE_KEEP_INDEX: ("--keep-index",),
    STASH_TYPE_INCLUDE_UNTRACKED: ("--include-untracked",),
    STASH_TYPE_INCLUDE_UNTRACKED_KEEP_INDEX: ("--include-untracked", "--keep-index"),
    STASH_TYPE_ALL: ("--all",),
    STASH_TYPE_ALL_KEEP_INDEX: ("--all", "--keep-index"),
}


@dataclass(frozen=True)
class CommandTranscript:
    """What ran and everything it printed."""

    cwd: Path
    args: tuple[str, ...]
    output: str

    def command_line(self) -> str:
        return "git " + " ".join(self.args)


@dataclass(frozen=True)
class CommandOutcome:
    kind: str
    summary: str
    transcript: CommandTranscript
    issue: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind != OUTCOME_FAILURE


def find_result_issue(output: str) -> str | None:
    """Detect conflict or nothing-to-stash markers in command output."""
    for line in output.splitlines():
        if line.startswith(CONFLICT_MARKER):
            return ISSUE_CONFLICT
        if line.startswith(NOTHING_TO_STASH_MARKER):
            return ISSUE_EMPTY
    return None


def failure_summary(error_text: str) -> str:
    """Short excerpt of an error: text after the first colon, capped."""
    excerpt = error_text[error_text.find(":") + 1 :].strip() if ":" in error_text else error_text.strip()
    return (excerpt or error_text.strip())[:SUMMARY_MAX_CHARS]


def _joined_output(stdout: str, stderr: str) -> str:
    return "\n\n".join(part.strip() for part in (stdout, stderr) if part.strip())


class StashCommands:
    """Run stash mutations and classify the results."""

    def __init__(self, git: GitRunner) -> None:
        self.git = git

    async def execute(self, cwd: Path, args: Sequence[str], success_message: str) -> CommandOutcome:
        args = tuple(args)
        try:
            result = await self.git.git(args, cwd)
        except LaunchError as exc:
            outcome = CommandOutcome(
                kind=OUTCOME_FAILURE,
                summary=failure_summary(str(exc)),
                transcript=CommandTranscript(cwd, args, str(exc)),
            )
        except CommandError as exc:
            output = exc.output
            transcript = CommandTranscript(cwd, args, output)
            if find_result_issue(output) == ISSUE_CONFLICT:
                outcome = CommandOutcome(
                    kind=OUTCOME_CAVEAT,
                    summary=f"{success_message} with conflicts",
                    transcript=transcript,
                    issue=ISSUE_CONFLICT,
                )
            else:
                outcome = CommandOutcome(
                    kind=OUTCOME_FAILURE,
                    summary=failure_summary(output or str(exc)),
                    transcript=transcript,
                )
        else:
            output = _joined_output(result.stdout, result.stderr)
            transcript = CommandTranscript(cwd, args, output)
            issue = find_result_issue(output)
            if issue == ISSUE_CONFLICT:
                outcome = CommandOutcome(OUTCOME_CAVEAT, f"{success_message} with conflicts", transcript, issue)
            elif issue == ISSUE_EMPTY:
                outcome = CommandOutcome(OUTCOME_CAVEAT, NOTHING_TO_STASH_MARKER, transcript, issue)
            else:
                outcome = CommandOutcome(OUTCOME_SUCCESS, success_message, transcript)

        log = logger.error if outcome.kind == OUTCOME_FAILURE else logger.info
        log(outcome.summary, cwd=str(cwd), command=transcript.command_line(), outcome=outcome.kind)
        return outcome

    async def stash(
        self,
        repository: RepositoryEntity,
        stash_type: str = STASH_TYPE_SIMPLE,
        message: str | None = None,
    ) -> CommandOutcome:
        if stash_type not in STASH_TYPE_FLAGS:
            raise ValueError(f"unknown stash type: {stash_type!r}")
        args = ["stash", "push", *STASH_TYPE_FLAGS[stash_type]]
        if message:
            args.extend(["-m", message])
        return await self.execute(repository.path, args, "Stash created")

    async def push_files(
        self,
        repository_paths: Sequence[Path],
        file_paths: Sequence[Path],
        message: str | None = None,
    ) -> list[CommandOutcome]:
        """Stash selected files, one ``git stash push`` per owning repository.

        Each file goes to the deepest repository that contains it; files outside
        every repository are ignored.
        """
        grouped: dict[Path, list[str]] = {}
        for file_path in file_paths:
            resolved = Path(file_path).resolve()
            owners = [repo for repo in repository_paths if resolved.is_relative_to(repo)]
            if not owners:
                logger.warning("file outside known repositories", path=str(resolved))
                continue
            owner = max(owners, key=lambda repo: len(Path(repo).parts))
            grouped.setdefault(Path(owner), []).append(str(resolved))

        args = ["stash", "push"]
        if message:
            args.extend(["-m", message])
        outcomes: list[CommandOutcome] = []
        for repository_path in sorted(grouped):
            outcomes.append(
                await self.execute(
                    repository_path,
                    [*args, "--", *grouped[repository_path]],
                    "Selected files stashed",
                )
            )
        return outcomes

    async def clear(self, repository: RepositoryEntity) -> CommandOutcome:
        return await self.execute(repository.path, ["stash", "clear"], "Stash list cleared")

    async def pop(self, stash: StashEntity, with_index: bool = False) -> CommandOutcome:
        args = ["stash", "pop", *(["--index"] if with_index else []), stash_ref(stash.index)]
        return await self.execute(stash.path, args, "Stash popped")

    async def apply(self, stash: StashEntity, with_index: bool = False) -> CommandOutcome:
        args = ["stash", "apply", *(["--index"] if with_index else []), stash_ref(stash.index)]
        return await self.execute(stash.path, args, "Stash applied")

    async def branch(self, stash: StashEntity, name: str) -> CommandOutcome:
        return await self.execute(stash.path, ["stash", "branch", name, stash_ref(stash.index)], "Stash branched")

    async def drop(self, stash: StashEntity) -> CommandOutcome:
        return await self.execute(stash.path, ["stash", "drop", stash_ref(stash.index)], "Stash dropped")

    async def apply_file(self, file: FileEntity) -> CommandOutcome:
        """Restore one stashed file's content into the working copy."""
        args = ["checkout", stash_ref(file.parent.index), "--", file.name]
        return await self.execute(file.repository_path, args, "Changes from file applied")

    async def create_file(self, file: FileEntity) -> CommandOutcome:
        """Recreate an untracked file from the stash's third parent."""
        args = ["checkout", stash_ref(file.parent.index, 3), "--", file.name]
        return await self.execute(file.repository_path, args, "File created")


__all__ = [
    "CommandOutcome",
    "CommandTranscript",
    "ISSUE_CONFLICT",
    "ISSUE_EMPTY",
    "OUTCOME_CAVEAT",
    "OUTCOME_FAILURE",
    "OUTCOME_SUCCESS",
    "STASH_TYPE_FLAGS",
    "StashCommands",
    "failure_summary",
    "find_result_issue",
]
