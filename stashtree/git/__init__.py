"""Git access layer: process runner, stash listing parsers, and stash commands.

Everything here shells out to the ``git`` binary through ``CommandRunner``;
parsing is kept in pure functions so it can be tested without a repository.
"""

from __future__ import annotations

from .commands import CommandOutcome, CommandTranscript, StashCommands
from .parser import (
    ParsedStash,
    RenamedFile,
    StashedFiles,
    StashMetadata,
    parse_name_status,
    parse_stash_list,
    parse_stash_metadata,
    parse_tree_listing,
    split_subject,
)
from .runner import CommandResult, CommandRunner, GitRunner
from .stash_git import FILE_STAGE_CHANGE, FILE_STAGE_PARENT, Stash, StashGit
from .workspace import RepositoryDiscovery, Workspace, WorkspaceGit

__all__ = [
    "CommandOutcome",
    "CommandResult",
    "CommandRunner",
    "CommandTranscript",
    "FILE_STAGE_CHANGE",
    "FILE_STAGE_PARENT",
    "GitRunner",
    "ParsedStash",
    "RenamedFile",
    "RepositoryDiscovery",
    "Stash",
    "StashCommands",
    "StashGit",
    "StashMetadata",
    "StashedFiles",
    "Workspace",
    "WorkspaceGit",
    "parse_name_status",
    "parse_stash_list",
    "parse_stash_metadata",
    "parse_tree_listing",
    "split_subject",
]
