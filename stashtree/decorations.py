"""Badge and color decorations for stashed file rows."""

from __future__ import annotations

from dataclasses import dataclass

from .stash_node.model import (
    FILE_KIND_ADDED,
    FILE_KIND_DELETED,
    FILE_KIND_MODIFIED,
    FILE_KIND_RENAMED,
    FILE_KIND_UNTRACKED,
)

DECORATION_NONE = "none"

KIND_DECORATIONS: dict[str, tuple[str, str]] = {
    FILE_KIND_UNTRACKED: ("U", "gitDecoration.untrackedResourceForeground"),
    FILE_KIND_ADDED: ("A", "gitDecoration.addedResourceForeground"),
    FILE_KIND_DELETED: ("D", "gitDecoration.deletedResourceForeground"),
    FILE_KIND_MODIFIED: ("M", "gitDecoration.modifiedResourceForeground"),
    FILE_KIND_RENAMED: ("R", "gitDecoration.renamedResourceForeground"),
}


@dataclass(frozen=True)
class FileDecoration:
    badge: str | None = None
    color: str | None = None


def decoration_for(kind: str, mode: str = "badge, color") -> FileDecoration | None:
    """Decoration for a file of ``kind`` under the ``decorations`` setting.

    ``mode`` lists the enabled parts (``"badge, color"``, ``"badge"``,
    ``"color"``); ``"none"`` and unknown kinds produce no decoration.
    """
    if mode == DECORATION_NONE:
        return None
    entry = KIND_DECORATIONS.get(kind)
    if entry is None:
        return None
    badge, color = entry
    return FileDecoration(
        badge=badge if "badge" in mode else None,
        color=color if "color" in mode else None,
    )


__all__ = ["FileDecoration", "KIND_DECORATIONS", "decoration_for"]
