"""Parsers for git stash listing formats.

All functions here are pure: they take raw command output and return typed
records. Stash lines are sliced at fixed offsets matched to the ``%ci`` date
format because subjects may contain spaces, colons, and braces that collide
with git's own delimiters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime

from ..errors import ParseError
from ..logger import get_logger

logger = get_logger(__name__)

# ``%ci`` renders as ``2024-01-01 10:00:00 +0000``.
STASH_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"
STASH_DATE_LENGTH = 25
STASH_HASH_OFFSET = STASH_DATE_LENGTH + 1

_HEX_RE = re.compile(r"^[0-9a-f]{4,64}$")
_SUBJECT_RE = re.compile(r"^(?:WIP on|On) (?P<branch>[^:]+): (?P<description>.*)$", re.DOTALL)

STATUS_ADDED = "A"
STATUS_DELETED = "D"
STATUS_MODIFIED = "M"
STATUS_RENAMED = "R"
STATUS_COPIED = "C"


@dataclass(frozen=True)
class ParsedStash:
    """One ``git stash list`` line."""

    index: int
    date: datetime
    short_hash: str
    subject: str
    description: str
    branch: str | None = None


@dataclass(frozen=True)
class StashMetadata:
    """Full hash, parents, and note for one stash entry."""

    hash: str
    parent_hashes: tuple[str, ...] = ()
    note: str | None = None


@dataclass(frozen=True)
class RenamedFile:
    old: str
    new: str


@dataclass
class StashedFiles:
    """Changed files of one stash grouped by classification."""

    added: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    renamed: list[RenamedFile] = field(default_factory=list)
    untracked: list[str] = field(default_factory=list)


def split_subject(subject: str) -> tuple[str, str | None]:
    """Split ``"WIP on <branch>: <desc>"`` / ``"On <branch>: <desc>"``.

    Returns ``(description, branch)``; subjects without that prefix are
    returned unchanged with ``branch=None``.
    """
    match = _SUBJECT_RE.match(subject)
    if match is None:
        return subject, None
    return match.group("description"), match.group("branch")


def _parse_stash_line(index: int, line: str) -> ParsedStash:
    if len(line) <= STASH_HASH_OFFSET:
        raise ParseError(line, "line shorter than date and hash prefix")
    try:
        date = datetime.strptime(line[:STASH_DATE_LENGTH], STASH_DATE_FORMAT)
    except ValueError as exc:
        raise ParseError(line, "invalid date prefix") from exc
    if line[STASH_DATE_LENGTH] != " ":
        raise ParseError(line, "missing separator after date")

    short_hash, _sep, subject = line[STASH_HASH_OFFSET:].partition(" ")
    if _HEX_RE.match(short_hash) is None:
        raise ParseError(line, "invalid short hash")

    subject = subject.strip()
    description, branch = split_subject(subject)
    return ParsedStash(
        index=index,
        date=date,
        short_hash=short_hash,
        subject=subject,
        description=description,
        branch=branch,
    )


def parse_stash_list(text: str) -> list[ParsedStash]:
    """Parse ``git stash list --format='%ci %h %s'`` output.

    ``index`` is the line position, so it keeps matching ``stash@{index}``
    even when malformed lines are skipped.
    """
    stashes: list[ParsedStash] = []
    for index, line in enumerate(text.splitlines()):
        try:
            stashes.append(_parse_stash_line(index, line))
        except ParseError as exc:
            logger.warning("skipping malformed stash line", index=index, line=exc.line, reason=exc.reason)
    return stashes


def parse_stash_metadata(text: str) -> list[StashMetadata | None]:
    """Parse NUL-separated ``%H %P%x09%N`` records.

    Entries that cannot be parsed stay in the list as ``None`` so positions
    keep lining up with ``parse_stash_list`` indices.
    """
    out: list[StashMetadata | None] = []
    for record in _nul_records(text):
        head, _sep, note = record.lstrip("\n").partition("\t")
        tokens = head.split()
        if not tokens or any(_HEX_RE.match(token) is None for token in tokens):
            out.append(None)
            continue
        out.append(
            StashMetadata(
                hash=tokens[0],
                parent_hashes=tuple(tokens[1:]),
                note=note.strip() or None,
            )
        )
    return out


def _nul_records(text: str) -> list[str]:
    records = text.split("\0")
    if records and not records[-1].strip():
        records.pop()
    return records


def parse_name_status(text: str) -> StashedFiles:
    """Classify ``git stash show --name-status -z`` records.

    Each record is a status token followed by one path, or by the old and new
    paths for renames and copies. Paths are taken verbatim: ``-z`` output is
    never quoted, so spaces, tabs, and non-ASCII names survive. Unknown status
    letters are skipped so newer git output does not break the listing.
    """
    files = StashedFiles()
    tokens = _nul_records(text)
    position = 0
    while position < len(tokens):
        status = tokens[position].strip()
        position += 1
        if not status:
            continue
        letter = status[0]
        path_count = 2 if letter in (STATUS_RENAMED, STATUS_COPIED) else 1
        paths = tokens[position : position + path_count]
        position += path_count
        if len(paths) < path_count or not all(paths):
            logger.warning("skipping truncated status record", status=status)
            continue

        if letter == STATUS_ADDED:
            files.added.append(paths[0])
        elif letter == STATUS_DELETED:
            files.deleted.append(paths[0])
        elif letter == STATUS_MODIFIED:
            files.modified.append(paths[0])
        elif letter == STATUS_RENAMED:
            files.renamed.append(RenamedFile(old=paths[0], new=paths[1]))
        else:
            logger.debug("ignoring unknown file status", status=status, paths=paths)
    return files


def parse_tree_listing(text: str) -> list[str]:
    """Parse ``git ls-tree -r -z --name-only`` output, keeping tool order."""
    return [name for name in _nul_records(text) if name]


__all__ = [
    "ParsedStash",
    "RenamedFile",
    "STASH_DATE_FORMAT",
    "STASH_DATE_LENGTH",
    "StashMetadata",
    "StashedFiles",
    "parse_name_status",
    "parse_stash_list",
    "parse_stash_metadata",
    "parse_tree_listing",
    "split_subject",
]
