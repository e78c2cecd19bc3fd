"""Stash change watch signatures.

Computes cheap hashes over the git files that change whenever a stash is
pushed, popped, or dropped. Pollers compare signatures and feed passive
refresh triggers when a repository's signature moves.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from .errors import CommandError
from .git.runner import GitRunner
from .logger import get_logger

logger = get_logger(__name__)

STASH_REF_FILES = ("refs/stash", "logs/refs/stash")


def _update_digest(digest, token: str) -> None:
    """Append a token plus separator byte to a hash digest."""
    digest.update(token.encode("utf-8", errors="surrogateescape"))
    digest.update(b"\0")


def _path_stat_signature(path: Path) -> tuple[str, int, int, int]:
    """Return a stable stat tuple describing ``path`` existence and metadata."""
    try:
        st = path.stat()
    except FileNotFoundError:
        return ("missing", 0, 0, 0)
    except OSError:
        return ("error", 0, 0, 0)
    return ("ok", st.st_mtime_ns, st.st_size, st.st_mode)


async def resolve_git_dir(repository: Path, git: GitRunner) -> Path | None:
    """Locate the git dir of ``repository``; ``None`` when git cannot tell.

    Linked worktrees share the common dir's stash ref, so the common dir is
    what gets watched.
    """
    try:
        result = await git.git(["rev-parse", "--git-common-dir"], repository)
    except CommandError as exc:
        logger.debug("git dir lookup failed", path=str(repository), error=str(exc))
        return None

    raw = result.stdout.strip()
    if not raw:
        return None
    git_dir = Path(raw)
    if not git_dir.is_absolute():
        git_dir = repository / git_dir
    return git_dir.resolve()


def build_stash_watch_signature(git_dir: Path | None) -> str:
    """Digest over the stash ref and its reflog."""
    digest = hashlib.blake2b(digest_size=20)
    if git_dir is None:
        _update_digest(digest, "git:none")
        return digest.hexdigest()

    _update_digest(digest, f"git_dir:{git_dir}")
    for name in STASH_REF_FILES:
        state, mtime_ns, size, mode = _path_stat_signature(git_dir / name)
        _update_digest(digest, f"{name}:{state}:{mtime_ns}:{size}:{mode}")
    return digest.hexdigest()


__all__ = ["STASH_REF_FILES", "build_stash_watch_signature", "resolve_git_dir"]
