"""Stash tree model: node datatypes, the git-backed node repository, and the
lazy tree-children provider.
"""

from __future__ import annotations

from .model import (
    FILE_KINDS,
    FILE_KIND_ADDED,
    FILE_KIND_DELETED,
    FILE_KIND_MODIFIED,
    FILE_KIND_RENAMED,
    FILE_KIND_UNTRACKED,
    FileEntity,
    MessageEntity,
    RepositoryEntity,
    StashEntity,
    StashTreeNode,
    content_source,
    node_id,
)
from .repository import NodeRepository
from .tree import NO_REPOSITORIES_MESSAGE, NO_STASHES_MESSAGE, StashTreeProvider

__all__ = [
    "FILE_KINDS",
    "FILE_KIND_ADDED",
    "FILE_KIND_DELETED",
    "FILE_KIND_MODIFIED",
    "FILE_KIND_RENAMED",
    "FILE_KIND_UNTRACKED",
    "FileEntity",
    "MessageEntity",
    "NO_REPOSITORIES_MESSAGE",
    "NO_STASHES_MESSAGE",
    "NodeRepository",
    "RepositoryEntity",
    "StashEntity",
    "StashTreeNode",
    "StashTreeProvider",
    "content_source",
    "node_id",
]
