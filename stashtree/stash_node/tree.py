"""Tree-children provider for stash explorers.

Fetches children lazily through the node repository, caches them on the
parent node, and applies the configured empty-state display mode.
"""

from __future__ import annotations

from ..config import StashConfig
from .model import FileEntity, MessageEntity, RepositoryEntity, StashEntity, StashTreeNode
from .repository import NodeRepository

NO_REPOSITORIES_MESSAGE = "No repositories found."
NO_STASHES_MESSAGE = "No stashes found."


class StashTreeProvider:
    """Children of any tree node; ``None`` stands for the invisible root."""

    def __init__(self, node_repository: NodeRepository, config: StashConfig) -> None:
        self.node_repository = node_repository
        self.config = config

    def update_config(self, config: StashConfig) -> None:
        self.config = config
        self.node_repository.search_depth = config.repository_search_depth

    async def get_children(self, node: StashTreeNode | None = None) -> list[StashTreeNode]:
        if isinstance(node, (FileEntity, MessageEntity)):
            return []
        if node is not None and node.children is not None:
            return self.prepare_children(node, list(node.children))

        children: list[StashTreeNode]
        if node is None:
            children = list(await self.node_repository.list_repositories(self.config.eager_load_stashes))
        elif isinstance(node, RepositoryEntity):
            stashes = await self.node_repository.list_stashes(node)
            node.children = stashes
            children = list(stashes)
        else:
            files = await self.node_repository.list_files(node)
            node.children = files
            children = list(files)
        return self.prepare_children(node, children)

    def prepare_children(
        self,
        parent: RepositoryEntity | StashEntity | None,
        children: list[StashTreeNode],
    ) -> list[StashTreeNode]:
        """Apply ``item_display_mode`` to a freshly loaded or cached child list."""
        mode = self.config.item_display_mode
        if parent is None and mode == "hide-empty" and self.config.eager_load_stashes:
            children = [
                child for child in children if isinstance(child, RepositoryEntity) and child.children_count
            ]

        if children:
            return children

        if mode == "indicate-empty":
            if parent is None:
                return [self.node_repository.message_node(NO_REPOSITORIES_MESSAGE)]
            if isinstance(parent, RepositoryEntity):
                return [self.node_repository.message_node(NO_STASHES_MESSAGE)]
        return []


__all__ = ["NO_REPOSITORIES_MESSAGE", "NO_STASHES_MESSAGE", "StashTreeProvider"]
