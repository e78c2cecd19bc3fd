"""Workspace folders and git repository discovery.

Candidate directories come from the workspace folders and the configured
search depth; each candidate is resolved to its repository top level with
``git rev-parse --show-toplevel``. One failing candidate never blocks the rest.
"""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable, Iterable
from pathlib import Path

from ..errors import CommandError
from ..logger import get_logger
from .runner import GitRunner

logger = get_logger(__name__)

GIT_METADATA_DIRNAME = ".git"

RepositoryDiscovery = Callable[[int], Awaitable[list[Path]]]


class Workspace:
    """Ordered set of workspace folders."""

    def __init__(self, folders: Iterable[Path]) -> None:
        seen: list[Path] = []
        for folder in folders:
            resolved = Path(folder).resolve()
            if resolved not in seen:
                seen.append(resolved)
        self.folders = seen

    def existing_folders(self) -> list[Path]:
        return [folder for folder in self.folders if folder.is_dir()]

    def folder_for(self, path: Path) -> Path | None:
        """Return the deepest workspace folder containing ``path``."""
        resolved = Path(path).resolve()
        matches = [folder for folder in self.folders if resolved == folder or resolved.is_relative_to(folder)]
        if not matches:
            return None
        return max(matches, key=lambda folder: len(folder.parts))

    def display_name_for(self, path: Path) -> str:
        """Name of the enclosing workspace folder, else the path's base name.

        Ancestors reached through a negative search depth are outside every
        folder and fall back to their base name.
        """
        folder = self.folder_for(path)
        if folder is not None:
            return folder.name or str(folder)
        return path.name or str(path)

    def root_paths(self, search_depth: int) -> list[Path]:
        """Candidate directories for repository discovery.

        ``0`` returns the folders, negative values add up to ``-search_depth``
        ancestor levels (outermost first), positive values add that many levels
        of subdirectories, skipping git metadata directories.
        """
        folders = self.existing_folders()
        if search_depth < 0:
            return _ancestor_paths(folders, -search_depth)
        if search_depth > 0:
            roots: list[Path] = []
            for folder in folders:
                roots.append(folder)
                _collect_subdirectories(folder, search_depth, roots)
            return roots
        return folders


def _ancestor_paths(folders: list[Path], levels: int) -> list[Path]:
    roots: list[Path] = []
    for folder in folders:
        chain = [folder]
        current = folder
        for _ in range(levels):
            parent = current.parent
            if parent == current:
                break
            chain.insert(0, parent)
            current = parent
        for path in chain:
            if path not in roots:
                roots.append(path)
    return roots


def _collect_subdirectories(directory: Path, levels: int, out: list[Path]) -> None:
    if levels <= 0:
        return
    try:
        with os.scandir(directory) as entries:
            children = sorted(
                Path(entry.path)
                for entry in entries
                if entry.name != GIT_METADATA_DIRNAME and entry.is_dir(follow_symlinks=False)
            )
    except OSError as exc:
        logger.debug("cannot scan directory", directory=str(directory), error=str(exc))
        return
    for child in children:
        out.append(child)
        _collect_subdirectories(child, levels - 1, out)


class WorkspaceGit:
    """Discover repository roots for a workspace."""

    def __init__(self, workspace: Workspace, git: GitRunner) -> None:
        self.workspace = workspace
        self.git = git

    async def repository_root(self, directory: Path) -> Path | None:
        """Return the canonical top level of the repository containing ``directory``."""
        result = await self.git.git(["rev-parse", "--show-toplevel"], directory)
        top_level = result.stdout.strip()
        if not top_level:
            return None
        return Path(top_level).resolve()

    async def discover_roots(self, search_depth: int = 0) -> list[Path]:
        """Sorted, de-duplicated repository roots reachable from the workspace."""
        roots: list[Path] = []
        for candidate in self.workspace.root_paths(search_depth):
            try:
                root = await self.repository_root(candidate)
            except CommandError as exc:
                logger.debug("not a repository", directory=str(candidate), error=str(exc))
                continue
            if root is not None and root not in roots:
                roots.append(root)
        return sorted(roots)

    async def has_repository(self, search_depth: int = 0) -> bool:
        return bool(await self.discover_roots(search_depth))


__all__ = ["GIT_METADATA_DIRNAME", "RepositoryDiscovery", "Workspace", "WorkspaceGit"]
