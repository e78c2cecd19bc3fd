"""Plain-text and ANSI rendering of stash tree rows and command outcomes.

Themes are small ANSI palettes. Decoration colors are named with the
``gitDecoration.*`` keys from ``decorations`` and mapped to ANSI here, so the
badge/color setting behaves the same in every renderer.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .decorations import FileDecoration, decoration_for
from .git.commands import OUTCOME_CAVEAT, OUTCOME_FAILURE, CommandOutcome
from .stash_node.model import (
    FILE_KIND_RENAMED,
    FileEntity,
    MessageEntity,
    RepositoryEntity,
    StashEntity,
    StashTreeNode,
)

STASH_DATE_DISPLAY_FORMAT = "%Y-%m-%d %H:%M"
INDENT = "  "


@dataclass(frozen=True)
class StashTheme:
    """Semantic ANSI palette used by renderers."""

    name: str
    reset: str
    repository: str
    repository_path: str
    stash_ref: str
    stash_meta: str
    file_dir: str
    message: str
    outcome_success: str
    outcome_caveat: str
    outcome_failure: str
    decoration_colors: dict[str, str]


_DEFAULT_DECORATION_COLORS = {
    "gitDecoration.untrackedResourceForeground": "\033[38;5;42m",
    "gitDecoration.addedResourceForeground": "\033[38;5;70m",
    "gitDecoration.deletedResourceForeground": "\033[38;5;203m",
    "gitDecoration.modifiedResourceForeground": "\033[38;5;214m",
    "gitDecoration.renamedResourceForeground": "\033[38;5;81m",
}

DEFAULT_THEME = StashTheme(
    name="default",
    reset="\033[0m",
    repository="\033[1;34m",
    repository_path="\033[2;38;5;250m",
    stash_ref="\033[38;5;44m",
    stash_meta="\033[2;38;5;250m",
    file_dir="\033[2;38;5;250m",
    message="\033[2m",
    outcome_success="\033[38;5;42m",
    outcome_caveat="\033[38;5;214m",
    outcome_failure="\033[1;38;5;203m",
    decoration_colors=_DEFAULT_DECORATION_COLORS,
)

OCEAN_THEME = StashTheme(
    name="ocean",
    reset="\033[0m",
    repository="\033[1;38;5;45m",
    repository_path="\033[2;38;5;110m",
    stash_ref="\033[38;5;39m",
    stash_meta="\033[2;38;5;110m",
    file_dir="\033[2;38;5;110m",
    message="\033[2;38;5;31m",
    outcome_success="\033[38;5;84m",
    outcome_caveat="\033[38;5;215m",
    outcome_failure="\033[1;38;5;203m",
    decoration_colors={
        **_DEFAULT_DECORATION_COLORS,
        "gitDecoration.modifiedResourceForeground": "\033[38;5;215m",
        "gitDecoration.untrackedResourceForeground": "\033[38;5;84m",
    },
)

PLAIN_THEME = StashTheme(
    name="plain",
    reset="",
    repository="",
    repository_path="",
    stash_ref="",
    stash_meta="",
    file_dir="",
    message="",
    outcome_success="",
    outcome_caveat="",
    outcome_failure="",
    decoration_colors={},
)

_THEMES: dict[str, StashTheme] = {
    DEFAULT_THEME.name: DEFAULT_THEME,
    OCEAN_THEME.name: OCEAN_THEME,
}


def available_theme_names() -> tuple[str, ...]:
    """Return selectable non-plain theme names."""
    return tuple(sorted(_THEMES.keys()))


def resolve_theme(name: str | None, *, no_color: bool = False) -> StashTheme:
    """Return concrete theme for requested name and color mode."""
    if no_color:
        return PLAIN_THEME
    candidate = (name or "").strip().lower()
    return _THEMES.get(candidate, DEFAULT_THEME)


def _paint(text: str, color: str, theme: StashTheme) -> str:
    if not color:
        return text
    return f"{color}{text}{theme.reset}"


def format_badge(decoration: FileDecoration | None, theme: StashTheme) -> str:
    """``[M]``-style badge, colored when the decoration carries a color."""
    if decoration is None:
        return ""
    color = theme.decoration_colors.get(decoration.color or "", "")
    if decoration.badge is None:
        return ""
    return _paint(f"[{decoration.badge}]", color, theme) + " "


def format_repository_row(repository: RepositoryEntity, theme: StashTheme) -> str:
    count = repository.children_count
    suffix = f" ({count})" if count is not None else ""
    label = repository.name or os.path.basename(str(repository.path))
    return (
        _paint(label, theme.repository, theme)
        + suffix
        + " "
        + _paint(str(repository.path), theme.repository_path, theme)
    )


def format_stash_row(stash: StashEntity, theme: StashTheme) -> str:
    ref = _paint(f"stash@{{{stash.index}}}", theme.stash_ref, theme)
    label = f"{stash.branch}: {stash.description}" if stash.branch else stash.subject
    meta = f"{stash.short_hash}, {stash.date.strftime(STASH_DATE_DISPLAY_FORMAT)}"
    if stash.note:
        meta = f"{meta}, {stash.note}"
    return f"{ref} {label} " + _paint(f"({meta})", theme.stash_meta, theme)


def format_file_row(file: FileEntity, theme: StashTheme, decorations: str = "badge, color") -> str:
    decoration = decoration_for(file.kind, decorations)
    color = ""
    if decoration is not None and decoration.color is not None:
        color = theme.decoration_colors.get(decoration.color, "")

    directory, filename = os.path.split(file.name)
    text = _paint(filename, color, theme)
    if directory:
        text = f"{text} " + _paint(f"{directory}/", theme.file_dir, theme)
    if file.kind == FILE_KIND_RENAMED and file.old_name:
        text = f"{text} " + _paint(f"← {file.old_name}", theme.file_dir, theme)
    return format_badge(decoration, theme) + text


def format_message_row(message: MessageEntity, theme: StashTheme) -> str:
    return _paint(message.text, theme.message, theme)


def format_node(node: StashTreeNode, theme: StashTheme, decorations: str = "badge, color") -> str:
    if isinstance(node, RepositoryEntity):
        return format_repository_row(node, theme)
    if isinstance(node, StashEntity):
        return format_stash_row(node, theme)
    if isinstance(node, FileEntity):
        return format_file_row(node, theme, decorations)
    return format_message_row(node, theme)


def render_tree_rows(
    rows: list[tuple[int, StashTreeNode]],
    theme: StashTheme,
    decorations: str = "badge, color",
) -> str:
    """Render ``(depth, node)`` rows as indented lines."""
    out: list[str] = []
    for depth, node in rows:
        out.append(f"{INDENT * depth}{format_node(node, theme, decorations)}\n")
    return "".join(out)


def format_outcome(outcome: CommandOutcome, theme: StashTheme, verbose: bool = False) -> str:
    """Outcome summary line; ``verbose`` (or failure) appends the git transcript."""
    if outcome.kind == OUTCOME_FAILURE:
        color = theme.outcome_failure
    elif outcome.kind == OUTCOME_CAVEAT:
        color = theme.outcome_caveat
    else:
        color = theme.outcome_success

    lines = [_paint(outcome.summary, color, theme)]
    if verbose or outcome.kind == OUTCOME_FAILURE:
        transcript = outcome.transcript
        lines.append(_paint(f"$ {transcript.command_line()}  ({transcript.cwd})", theme.stash_meta, theme))
        if transcript.output:
            lines.append(transcript.output)
    return "\n".join(lines) + "\n"


__all__ = [
    "DEFAULT_THEME",
    "OCEAN_THEME",
    "PLAIN_THEME",
    "StashTheme",
    "available_theme_names",
    "format_badge",
    "format_file_row",
    "format_message_row",
    "format_node",
    "format_outcome",
    "format_repository_row",
    "format_stash_row",
    "render_tree_rows",
    "resolve_theme",
]
