"""Addressable URIs for stashed file content.

A content URI carries everything needed to fetch one side of a stashed file
without holding on to tree nodes: repository path, stash index, file path,
previous path for renames, file kind and stage. Viewers that stream text
resolve the URI back to bytes on demand.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from urllib.parse import parse_qs, quote, urlencode

from .git.stash_git import StashGit
from .logger import get_logger
from .stash_node.model import FILE_KINDS, FILE_KIND_RENAMED, FileEntity, content_source

logger = get_logger(__name__)

CONTENT_SCHEME = "gitstash-stashed-contents"
EMPTY_SCHEME = "gitstash-no-contents"
EMPTY_URI = f"{EMPTY_SCHEME}:"


@dataclass(frozen=True)
class ContentRequest:
    """Decoded content URI."""

    cwd: str
    index: int
    path: str
    kind: str
    old_path: str | None = None
    side: str | None = None


def build_content_uri(file: FileEntity, stage: str | None = None) -> str:
    """Encode ``file`` and ``stage`` into a ``gitstash-stashed-contents:`` URI.

    The ``t`` parameter is a millisecond timestamp so repeated requests for the
    same side are distinct documents.
    """
    query = urlencode(
        {
            "cwd": str(file.repository_path),
            "index": str(file.parent.index),
            "path": file.name,
            "oldPath": file.old_name or "",
            "type": file.kind,
            "side": stage or "",
            "t": str(int(time.time() * 1000)),
        }
    )
    return f"{CONTENT_SCHEME}:{quote(str(file.path))}?{query}"


def parse_content_uri(uri: str) -> ContentRequest | None:
    """Decode a content URI; ``None`` for the empty scheme or malformed input."""
    scheme, _, rest = uri.partition(":")
    if scheme != CONTENT_SCHEME:
        return None
    _, _, query = rest.partition("?")
    params = {key: values[0] for key, values in parse_qs(query, keep_blank_values=True).items()}

    cwd = params.get("cwd", "")
    path = params.get("path", "")
    kind = params.get("type", "")
    try:
        index = int(params.get("index", "-1"))
    except ValueError:
        index = -1
    if not cwd or not path or index < 0 or kind not in FILE_KINDS:
        return None

    old_path = params.get("oldPath") or None
    if kind == FILE_KIND_RENAMED and old_path is None:
        return None
    return ContentRequest(
        cwd=cwd,
        index=index,
        path=path,
        kind=kind,
        old_path=old_path,
        side=params.get("side") or None,
    )


async def resolve_content_uri(uri: str, stash_git: StashGit) -> bytes:
    """Fetch the bytes a content URI points at.

    The empty URI resolves to no content. A malformed URI is logged and also
    resolves to no content; git failures propagate.
    """
    if uri.startswith(f"{EMPTY_SCHEME}:"):
        return b""
    request = parse_content_uri(uri)
    if request is None:
        logger.warning("unresolvable content uri", uri=uri)
        return b""

    source, use_old_name = content_source(request.kind, request.side)
    path = (request.old_path or request.path) if use_old_name else request.path
    return await stash_git.get_contents(source, request.cwd, request.index, path)


__all__ = [
    "CONTENT_SCHEME",
    "ContentRequest",
    "EMPTY_SCHEME",
    "EMPTY_URI",
    "build_content_uri",
    "parse_content_uri",
    "resolve_content_uri",
]
