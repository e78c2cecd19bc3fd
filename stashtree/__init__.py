"""Browse and manage git stashes across the repositories of a workspace.

The git layer lives in ``stashtree.git`` and the stash tree model in
``stashtree.stash_node``; ``main`` runs the command-line front end.
"""

from __future__ import annotations


def main(*args, **kwargs):
    """Run the CLI; imported on first call so ``import stashtree`` stays cheap."""
    from .cli import main as _main

    return _main(*args, **kwargs)


__all__ = ["main"]
