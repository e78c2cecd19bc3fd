"""Diff resource resolution for stashed files.

Given a file node and a requested view, decide which stored snapshots to
fetch and where each one goes. A stash diff with only one existing side opens
that side alone; two sides open a two-pane diff, before on the left. Working
copy comparisons pair one stashed side with the file on disk, and
``working_copy_on_left`` only changes placement.

Text sides are handed out as content URIs the viewer resolves lazily. Image
files cannot be streamed as text, so their bytes are written to fresh
temporary files that are removed when the interpreter exits.
"""

from __future__ import annotations

import atexit
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .content_uri import build_content_uri
from .errors import InvalidNodeError
from .git.stash_git import FILE_STAGE_CHANGE, FILE_STAGE_PARENT
from .logger import get_logger
from .stash_node.model import (
    FILE_KIND_ADDED,
    FILE_KIND_DELETED,
    FILE_KIND_MODIFIED,
    FILE_KIND_RENAMED,
    FILE_KIND_UNTRACKED,
    FileEntity,
)
from .stash_node.repository import NodeRepository

logger = get_logger(__name__)

BINARY_EXTENSIONS = frozenset({".bmp", ".gif", ".jpe", ".jpg", ".jpeg", ".png", ".webp"})
TEMP_FILE_PREFIX = "stashtree-"

# kind -> (stage for the before side, stage for the after side); None = side absent
DIFF_SIDES: dict[str, tuple[str | None, str | None]] = {
    FILE_KIND_ADDED: (None, FILE_STAGE_CHANGE),
    FILE_KIND_UNTRACKED: (None, FILE_STAGE_CHANGE),
    FILE_KIND_DELETED: (FILE_STAGE_PARENT, None),
    FILE_KIND_MODIFIED: (FILE_STAGE_PARENT, FILE_STAGE_CHANGE),
    FILE_KIND_RENAMED: (FILE_STAGE_PARENT, FILE_STAGE_CHANGE),
}

_temp_files: list[Path] = []
_cleanup_registered = False


@dataclass(frozen=True)
class DiffMode:
    """Requested comparison.

    ``stage`` picks parent or stashed content for modified and renamed files
    when comparing against the working copy; other kinds have one side only.
    """

    compare_working_copy: bool = False
    working_copy_on_left: bool = False
    stage: str = FILE_STAGE_CHANGE


@dataclass(frozen=True)
class StashContentResource:
    uri: str


@dataclass(frozen=True)
class TempFileResource:
    path: Path


@dataclass(frozen=True)
class WorkingCopyResource:
    path: Path


@dataclass(frozen=True)
class MissingResource:
    """Placeholder for a side that does not exist on disk."""

    path: Path


DiffResource = StashContentResource | TempFileResource | WorkingCopyResource | MissingResource


@dataclass(frozen=True)
class SingleFileView:
    file: FileEntity
    resource: DiffResource
    title: str
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class TwoPaneView:
    file: FileEntity
    left: DiffResource
    right: DiffResource
    title: str
    warnings: tuple[str, ...] = ()


DiffView = SingleFileView | TwoPaneView


def is_binary_name(name: str) -> bool:
    return os.path.splitext(name)[1].lower() in BINARY_EXTENSIONS


def diff_title(file: FileEntity, hint: str) -> str:
    """``name (hint) stash@{i}`` style title for viewers."""
    return f"{os.path.basename(file.name)} ({hint}) stash@{{{file.parent.index}}}"


def working_copy_path(file: FileEntity) -> Path:
    """Current on-disk path of ``file``; renamed files are looked up by their old name."""
    if file.kind == FILE_KIND_RENAMED and file.old_name:
        return file.repository_path / file.old_name
    return file.path


def _cleanup_temp_files() -> None:
    while _temp_files:
        path = _temp_files.pop()
        try:
            path.unlink()
        except OSError:
            pass


def write_temp_file(content: bytes, name: str) -> Path:
    """Write ``content`` to a new uniquely named temp file keeping ``name``'s suffix."""
    global _cleanup_registered

    suffix = os.path.splitext(name)[1]
    with tempfile.NamedTemporaryFile(delete=False, prefix=TEMP_FILE_PREFIX, suffix=suffix) as handle:
        handle.write(content)
        path = Path(handle.name)
    _temp_files.append(path)
    if not _cleanup_registered:
        atexit.register(_cleanup_temp_files)
        _cleanup_registered = True
    return path


class DiffResolver:
    """Turn a file node plus a ``DiffMode`` into viewer resources."""

    def __init__(self, node_repository: NodeRepository) -> None:
        self.node_repository = node_repository

    async def resource_for(self, file: FileEntity, stage: str) -> DiffResource:
        """One stored side of ``file``: a content URI, or a temp file for images."""
        if is_binary_name(file.name):
            content = await self.node_repository.get_content(file, stage)
            return TempFileResource(write_temp_file(content, file.name))
        return StashContentResource(build_content_uri(file, stage))

    async def resolve(self, file: FileEntity, mode: DiffMode | None = None) -> DiffView:
        mode = mode or DiffMode()
        if mode.compare_working_copy:
            return await self.resolve_working_copy_diff(file, mode)
        return await self.resolve_stash_diff(file)

    async def resolve_stash_diff(self, file: FileEntity) -> DiffView:
        try:
            before_stage, after_stage = DIFF_SIDES[file.kind]
        except KeyError:
            raise InvalidNodeError(f"unsupported file kind: {file.kind!r}") from None

        title = diff_title(file, file.kind)
        if before_stage is None and after_stage is None:
            raise InvalidNodeError(f"no content for {file.kind!r} file {file.name!r}")
        if before_stage is None or after_stage is None:
            stage = before_stage or after_stage
            return SingleFileView(file=file, resource=await self.resource_for(file, stage), title=title)

        before = await self.resource_for(file, before_stage)
        after = await self.resource_for(file, after_stage)
        return TwoPaneView(file=file, left=before, right=after, title=title)

    async def resolve_working_copy_diff(self, file: FileEntity, mode: DiffMode) -> TwoPaneView:
        """Compare one stashed side with the file currently on disk.

        A missing working-copy file is not fatal: it is logged, recorded on the
        view, and stands in as a ``MissingResource``.
        """
        if file.kind not in DIFF_SIDES:
            raise InvalidNodeError(f"unsupported file kind: {file.kind!r}")
        if file.kind in (FILE_KIND_MODIFIED, FILE_KIND_RENAMED):
            stage = mode.stage
        else:
            before_stage, after_stage = DIFF_SIDES[file.kind]
            stage = before_stage or after_stage or FILE_STAGE_CHANGE
        stashed = await self.resource_for(file, stage)

        current_path = working_copy_path(file)
        warnings: list[str] = []
        current: DiffResource
        if current_path.exists():
            current = WorkingCopyResource(current_path)
        else:
            message = f"File {current_path} not found"
            logger.warning("working copy file missing", path=str(current_path), kind=file.kind)
            warnings.append(message)
            current = MissingResource(current_path)

        left, right = (current, stashed) if mode.working_copy_on_left else (stashed, current)
        return TwoPaneView(
            file=file,
            left=left,
            right=right,
            title=diff_title(file, "current"),
            warnings=tuple(warnings),
        )


__all__ = [
    "BINARY_EXTENSIONS",
    "DIFF_SIDES",
    "DiffMode",
    "DiffResolver",
    "DiffResource",
    "DiffView",
    "MissingResource",
    "SingleFileView",
    "StashContentResource",
    "TempFileResource",
    "TwoPaneView",
    "WorkingCopyResource",
    "is_binary_name",
    "working_copy_path",
    "write_temp_file",
]
