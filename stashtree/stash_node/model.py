"""Stash tree node datatypes.

The tree is repository → stash → changed file, plus message leaves for empty
states. Nodes hold data only; the node repository populates children. Parent
links are non-owning back references and are left out of repr. Repositories
compare by path and stashes by hash; files also key on their repository and
stash, so rebuilt subtrees compare equal while same-named files elsewhere do
not.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from ..errors import InvalidNodeError
from ..git.stash_git import (
    CONTENT_SOURCE_PARENT,
    CONTENT_SOURCE_STASH,
    CONTENT_SOURCE_UNTRACKED,
    FILE_STAGE_PARENT,
)

FILE_KIND_ADDED = "added"
FILE_KIND_MODIFIED = "modified"
FILE_KIND_DELETED = "deleted"
FILE_KIND_RENAMED = "renamed"
FILE_KIND_UNTRACKED = "untracked"

FILE_KINDS = (
    FILE_KIND_ADDED,
    FILE_KIND_MODIFIED,
    FILE_KIND_DELETED,
    FILE_KIND_RENAMED,
    FILE_KIND_UNTRACKED,
)


def content_source(kind: str, stage: str | None = None) -> tuple[str, bool]:
    """Which stored snapshot holds one side of a file, and whether it uses ``old_name``.

    Added files only exist in the stash, deleted files only in the parent,
    untracked files in the third parent. Modified and renamed files read the
    parent for the parent stage and the stash otherwise.
    """
    if kind == FILE_KIND_ADDED:
        return CONTENT_SOURCE_STASH, False
    if kind == FILE_KIND_DELETED:
        return CONTENT_SOURCE_PARENT, False
    if kind == FILE_KIND_UNTRACKED:
        return CONTENT_SOURCE_UNTRACKED, False
    if kind == FILE_KIND_MODIFIED:
        return (CONTENT_SOURCE_PARENT if stage == FILE_STAGE_PARENT else CONTENT_SOURCE_STASH), False
    if kind == FILE_KIND_RENAMED:
        if stage == FILE_STAGE_PARENT:
            return CONTENT_SOURCE_PARENT, True
        return CONTENT_SOURCE_STASH, False
    raise InvalidNodeError(f"unsupported file kind: {kind!r}")


@dataclass
class RepositoryEntity:
    """A git repository root; ``children`` is ``None`` until stashes are loaded."""

    path: Path
    name: str = field(default="", compare=False)
    children: list[StashEntity] | None = field(default=None, compare=False, repr=False)

    @property
    def children_count(self) -> int | None:
        return None if self.children is None else len(self.children)


@dataclass
class StashEntity:
    """One stash entry.

    ``index`` is only meaningful relative to the listing it was parsed from;
    ``hash`` is the stable identity.
    """

    index: int = field(compare=False)
    hash: str
    short_hash: str = field(compare=False)
    date: datetime = field(compare=False)
    subject: str = field(compare=False)
    description: str = field(compare=False)
    parent: RepositoryEntity = field(compare=False, repr=False)
    branch: str | None = field(default=None, compare=False)
    note: str | None = field(default=None, compare=False)
    parent_hashes: tuple[str, ...] = field(default=(), compare=False)
    children: list[FileEntity] | None = field(default=None, compare=False, repr=False)

    @property
    def path(self) -> Path:
        """Repository path the stash belongs to."""
        return self.parent.path

    @property
    def children_count(self) -> int | None:
        return None if self.children is None else len(self.children)


@dataclass(frozen=True, eq=False)
class FileEntity:
    """A file changed by a stash, relative to the repository root.

    Equality and hashing follow ``identity``: the same name in another stash
    or repository is a different file.
    """

    name: str
    kind: str
    parent: StashEntity = field(repr=False)
    old_name: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in FILE_KINDS:
            raise ValueError(f"unknown file kind: {self.kind!r}")
        if (self.old_name is not None) != (self.kind == FILE_KIND_RENAMED):
            raise ValueError("old_name must be set exactly for renamed files")

    @property
    def identity(self) -> tuple[Path, str, str, str, str | None]:
        return (self.repository_path, self.parent.hash, self.kind, self.name, self.old_name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FileEntity):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    @property
    def date(self) -> datetime:
        return self.parent.date

    @property
    def path(self) -> Path:
        """Working-copy path of the file under its current name."""
        return self.parent.parent.path / self.name

    @property
    def repository_path(self) -> Path:
        return self.parent.parent.path


@dataclass(frozen=True)
class MessageEntity:
    """Placeholder row such as "No stashes found."; never has children."""

    text: str


StashTreeNode = RepositoryEntity | StashEntity | FileEntity | MessageEntity


def node_id(node: StashTreeNode) -> str:
    """Stable key for ``node`` that survives subtree rebuilds."""
    if isinstance(node, RepositoryEntity):
        return f"R.{node.path}"
    if isinstance(node, StashEntity):
        return f"S.{node.path}.{node.hash}"
    if isinstance(node, FileEntity):
        return f"F-{node.kind}.{node.repository_path}.{node.parent.hash}.{node.name}"
    return f"M.{node.text}"


__all__ = [
    "CONTENT_SOURCE_PARENT",
    "CONTENT_SOURCE_STASH",
    "CONTENT_SOURCE_UNTRACKED",
    "FILE_KINDS",
    "FILE_KIND_ADDED",
    "FILE_KIND_DELETED",
    "FILE_KIND_MODIFIED",
    "FILE_KIND_RENAMED",
    "FILE_KIND_UNTRACKED",
    "FileEntity",
    "MessageEntity",
    "RepositoryEntity",
    "StashEntity",
    "StashTreeNode",
    "content_source",
    "node_id",
]
