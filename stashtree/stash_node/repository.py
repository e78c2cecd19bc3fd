"""Node repository: populates the stash tree from git on demand.

This is the single entry point presentation code uses for tree data and file
bytes. Every listing is a fresh git call; callers cache results on the nodes.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from ..errors import CommandError
from ..git.runner import GitRunner
from ..git.stash_git import Stash, StashGit
from ..git.workspace import RepositoryDiscovery, Workspace, WorkspaceGit
from ..logger import get_logger
from .model import (
    FILE_KIND_ADDED,
    FILE_KIND_DELETED,
    FILE_KIND_MODIFIED,
    FILE_KIND_RENAMED,
    FILE_KIND_UNTRACKED,
    FileEntity,
    MessageEntity,
    RepositoryEntity,
    StashEntity,
    content_source,
)

logger = get_logger(__name__)


class NodeRepository:
    """Builds repository, stash, and file nodes from git output."""

    def __init__(
        self,
        discover_roots: RepositoryDiscovery,
        stash_git: StashGit,
        workspace: Workspace | None = None,
        search_depth: int = 0,
    ) -> None:
        self.discover_roots = discover_roots
        self.stash_git = stash_git
        self.workspace = workspace or Workspace(())
        self.search_depth = search_depth

    @classmethod
    def for_workspace(cls, workspace: Workspace, git: GitRunner, search_depth: int = 0) -> NodeRepository:
        workspace_git = WorkspaceGit(workspace, git)
        return cls(workspace_git.discover_roots, StashGit(git), workspace, search_depth)

    def create_repository_node(self, path: Path) -> RepositoryEntity:
        return RepositoryEntity(path=path, name=self.workspace.display_name_for(path))

    @staticmethod
    def create_stash_node(stash: Stash, repository: RepositoryEntity) -> StashEntity:
        return StashEntity(
            index=stash.index,
            hash=stash.hash,
            short_hash=stash.short_hash,
            date=stash.date,
            subject=stash.subject,
            description=stash.description,
            parent=repository,
            branch=stash.branch,
            note=stash.note,
            parent_hashes=stash.parent_hashes,
        )

    async def list_repositories(self, eager: bool = False) -> list[RepositoryEntity]:
        """Discover repositories; with ``eager`` also load every stash list.

        Stash lists are fetched concurrently. A repository whose listing fails
        is logged and left out; the others are still returned. A git binary
        that cannot be started is not a per-repository failure and propagates.
        """
        paths = await self.discover_roots(self.search_depth)
        repositories = [self.create_repository_node(path) for path in paths]
        if not eager:
            return repositories

        results = await asyncio.gather(
            *(self.list_stashes(repository) for repository in repositories),
            return_exceptions=True,
        )
        loaded: list[RepositoryEntity] = []
        for repository, result in zip(repositories, results):
            if isinstance(result, CommandError):
                logger.warning("omitting repository", path=str(repository.path), error=str(result))
                continue
            if isinstance(result, BaseException):
                raise result
            repository.children = result
            loaded.append(repository)
        return loaded

    async def list_stashes(self, repository: RepositoryEntity) -> list[StashEntity]:
        stashes = await self.stash_git.get_stashes(repository.path)
        return [self.create_stash_node(stash, repository) for stash in stashes]

    async def list_files(self, stash: StashEntity) -> list[FileEntity]:
        """Changed files of ``stash``; kinds are concatenated, untracked keep tool order."""
        stashed = await self.stash_git.get_stashed_files(stash.path, stash.index)

        files: list[FileEntity] = []
        files.extend(FileEntity(name, FILE_KIND_ADDED, stash) for name in stashed.added)
        files.extend(FileEntity(name, FILE_KIND_MODIFIED, stash) for name in stashed.modified)
        files.extend(
            FileEntity(renamed.new, FILE_KIND_RENAMED, stash, old_name=renamed.old)
            for renamed in stashed.renamed
        )
        files.extend(FileEntity(name, FILE_KIND_UNTRACKED, stash) for name in stashed.untracked)
        files.extend(FileEntity(name, FILE_KIND_DELETED, stash) for name in stashed.deleted)
        return files

    async def get_content(self, file: FileEntity, stage: str | None = None) -> bytes:
        """Raw bytes for one side of ``file``.

        ``stage`` only matters for modified and renamed files: the parent stage
        reads the pre-stash content, anything else reads the stashed content.
        """
        source, use_old_name = content_source(file.kind, stage)
        path = (file.old_name or file.name) if use_old_name else file.name
        return await self.stash_git.get_contents(source, file.repository_path, file.parent.index, path)

    async def get_raw_listing(self, repository_path: Path) -> str | None:
        return await self.stash_git.get_raw_stash(repository_path)

    @staticmethod
    def message_node(text: str) -> MessageEntity:
        return MessageEntity(text)


__all__ = ["NodeRepository"]
