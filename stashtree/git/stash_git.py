"""Stash listing and blob retrieval through the git binary.

Wraps the git commands the stash tree needs and feeds their output to the
pure parsers. Stashes are addressed as ``stash@{index}``; indices are only
valid for the listing they came from.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from ..errors import CommandError
from ..logger import get_logger
from .parser import (
    StashedFiles,
    parse_name_status,
    parse_stash_list,
    parse_stash_metadata,
    parse_tree_listing,
)
from .runner import GitRunner

logger = get_logger(__name__)

FILE_STAGE_PARENT = "p"
FILE_STAGE_CHANGE = "c"

CONTENT_SOURCE_STASH = "stash"
CONTENT_SOURCE_PARENT = "parent"
CONTENT_SOURCE_UNTRACKED = "untracked"

STASH_LIST_FORMAT = "--format=%ci %h %s"
STASH_METADATA_FORMAT = "--format=%H %P%x09%N"

# Leading stderr text git prints when a stash has no third (untracked) parent.
MISSING_PARENT_MARKERS = (
    "fatal: Not a valid object name",
    "fatal: not a tree object",
    "fatal: ambiguous argument",
)


@dataclass(frozen=True)
class Stash:
    """One stash entry with its metadata resolved."""

    index: int
    hash: str
    short_hash: str
    date: datetime
    subject: str
    description: str
    branch: str | None = None
    note: str | None = None
    parent_hashes: tuple[str, ...] = ()


def stash_ref(index: int, parent: int | None = None) -> str:
    ref = f"stash@{{{index}}}"
    return ref if parent is None else f"{ref}^{parent}"


def is_missing_parent_error(error: CommandError) -> bool:
    stderr = error.stderr.lstrip()
    return any(stderr.startswith(marker) for marker in MISSING_PARENT_MARKERS)


class StashGit:
    """Read-only stash queries for one git executable."""

    def __init__(self, git: GitRunner) -> None:
        self.git = git

    async def get_raw_stash(self, cwd: Path | str) -> str | None:
        """Return the untouched ``git stash list`` text, or ``None`` without stashes."""
        result = await self.git.git(["stash", "list"], cwd)
        return result.stdout.strip() or None

    async def get_stashes(self, cwd: Path | str) -> list[Stash]:
        result = await self.git.git(["stash", "list", STASH_LIST_FORMAT], cwd)
        parsed = parse_stash_list(result.stdout.strip("\n"))
        if not parsed:
            return []

        metadata_result = await self.git.git(["stash", "list", "-z", STASH_METADATA_FORMAT], cwd)
        metadata = parse_stash_metadata(metadata_result.stdout)

        stashes: list[Stash] = []
        for entry in parsed:
            meta = metadata[entry.index] if entry.index < len(metadata) else None
            if meta is not None and not meta.hash.startswith(entry.short_hash):
                logger.warning("stash metadata out of step with listing", index=entry.index, cwd=str(cwd))
                meta = None
            stashes.append(
                Stash(
                    index=entry.index,
                    hash=meta.hash if meta else entry.short_hash,
                    short_hash=entry.short_hash,
                    date=entry.date,
                    subject=entry.subject,
                    description=entry.description,
                    branch=entry.branch,
                    note=meta.note if meta else None,
                    parent_hashes=meta.parent_hashes if meta else (),
                )
            )
        return stashes

    async def get_stashed_files(self, cwd: Path | str, index: int) -> StashedFiles:
        """Classify the files changed by ``stash@{index}``, untracked included."""
        result = await self.git.git(["stash", "show", "--name-status", "-z", stash_ref(index)], cwd)
        files = parse_name_status(result.stdout)
        files.untracked = await self.get_untracked(cwd, index)
        return files

    async def get_untracked(self, cwd: Path | str, index: int) -> list[str]:
        """List files stored in the stash's third parent.

        A stash without untracked files has no third parent and git fails; that
        case is an empty result, not an error.
        """
        try:
            result = await self.git.git(["ls-tree", "-r", "-z", "--name-only", stash_ref(index, 3)], cwd)
        except CommandError as exc:
            if not is_missing_parent_error(exc):
                logger.warning(
                    "untracked listing failed",
                    cwd=str(cwd),
                    index=index,
                    exit_code=exc.exit_code,
                    stderr=exc.stderr.strip(),
                )
            return []
        return parse_tree_listing(result.stdout)

    async def _show(self, cwd: Path | str, revision: str, path: str) -> bytes:
        result = await self.git.git(["show", f"{revision}:{path}"], cwd)
        return result.raw_stdout

    async def get_stash_contents(self, cwd: Path | str, index: int, path: str) -> bytes:
        """Content as stored in the stash (added, modified, renamed files)."""
        return await self._show(cwd, stash_ref(index), path)

    async def get_parent_contents(self, cwd: Path | str, index: int, path: str) -> bytes:
        """Content right before the stash was taken (deleted, modified, renamed files)."""
        return await self._show(cwd, stash_ref(index, 1), path)

    async def get_third_parent_contents(self, cwd: Path | str, index: int, path: str) -> bytes:
        """Content of an untracked file stored in the stash's third parent."""
        return await self._show(cwd, stash_ref(index, 3), path)

    async def get_contents(self, source: str, cwd: Path | str, index: int, path: str) -> bytes:
        """Dispatch on a content source name (``stash``, ``parent``, ``untracked``)."""
        if source == CONTENT_SOURCE_PARENT:
            return await self.get_parent_contents(cwd, index, path)
        if source == CONTENT_SOURCE_UNTRACKED:
            return await self.get_third_parent_contents(cwd, index, path)
        return await self.get_stash_contents(cwd, index, path)


__all__ = [
    "CONTENT_SOURCE_PARENT",
    "CONTENT_SOURCE_STASH",
    "CONTENT_SOURCE_UNTRACKED",
    "FILE_STAGE_CHANGE",
    "FILE_STAGE_PARENT",
    "MISSING_PARENT_MARKERS",
    "Stash",
    "StashGit",
    "is_missing_parent_error",
    "stash_ref",
]
